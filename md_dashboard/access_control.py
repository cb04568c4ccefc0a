import logging
from typing import Dict, List, Optional

from fastapi import HTTPException

from md_dashboard.auth import DEMO_USER, is_synthetic
from md_dashboard.forms.models import MD_FIELD, MD_ID_FIELD
from md_dashboard.models import User
from md_dashboard.store.client import StoreError, StubStore, formula_eq, formula_or

logger = logging.getLogger(__name__)

MSG_NOT_FOUND = "레코드를 찾을 수 없습니다."


def scope_formula(user: User, match_id: bool = False) -> Optional[str]:
    """Store-side filter restricting a listing to the caller's own rows; None for admins."""
    if user.is_admin:
        return None
    by_name = formula_eq(MD_FIELD, user.name)
    if match_id:
        return formula_or(by_name, formula_eq(MD_ID_FIELD, user.id))
    return by_name


def is_visible(record: Dict, user: User, match_id: bool = False) -> bool:
    if user.is_admin:
        return True
    fields = record.get("fields", {})
    if fields.get(MD_FIELD) == user.name:
        return True
    return match_id and fields.get(MD_ID_FIELD) == user.id


def scoped(records: List[Dict], user: User, match_id: bool = False) -> List[Dict]:
    return [r for r in records if is_visible(r, user, match_id)]


def uses_samples(user: User, store) -> bool:
    """Demo always sees the fixed samples; the synthetic admin only when no store is configured."""
    if user.id == DEMO_USER.id:
        return True
    return is_synthetic(user) and isinstance(store, StubStore)


def store_failure(exc: StoreError, message: str, what: str) -> HTTPException:
    if exc.status_code == 404:
        return HTTPException(status_code=404, detail=MSG_NOT_FOUND)
    logger.error("%s failed: %s", what, exc.message, exc_info=exc)
    return HTTPException(status_code=500, detail=message)
