from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from md_dashboard import demo
from md_dashboard.access_control import MSG_NOT_FOUND, is_visible, scope_formula, scoped, store_failure, uses_samples
from md_dashboard.auth import get_current_user, is_synthetic
from md_dashboard.forms.models import COMPANY_FIELD, MD_FIELD, MD_ID_FIELD
from md_dashboard.models import Record, RecordsResponse, UpdateResponse, User
from md_dashboard.store.client import StoreError, sort_spec
from md_dashboard.store.db import get_store
from md_dashboard.utils import narrow_records

logger = logging.getLogger(__name__)

COMPANY_TABLE = "업체"
STATUS_FIELD = "상태"
COMPANY_STATUSES = ["정상운영", "이탈우려"]

MSG_LIST_FAILED = "업체 목록을 불러오는 중 오류가 발생했습니다."
MSG_GET_FAILED = "업체 정보를 불러오는 중 오류가 발생했습니다."
MSG_UPDATE_FAILED = "업체 정보 수정 중 오류가 발생했습니다."
MSG_ID_REQUIRED = "레코드 ID가 필요합니다."

# Ownership is assigned by the store, never through this API.
_SERVER_OWNED = {"id", MD_FIELD, MD_ID_FIELD}

router = APIRouter()


@router.get("", response_model=RecordsResponse)
def list_companies(status: Optional[str] = None, q: Optional[str] = None,
                   user: User = Depends(get_current_user), store=Depends(get_store)):
    if uses_samples(user, store):
        records = demo.sample_records("companies")
    else:
        try:
            records = store.list_records(
                COMPANY_TABLE,
                filter_by_formula=scope_formula(user, match_id=True),
                sort=sort_spec(COMPANY_FIELD, "asc"),
            )
        except StoreError as e:
            raise store_failure(e, MSG_LIST_FAILED, "companies fetch")
    records = scoped(records, user, match_id=True)
    return {"records": narrow_records(records, COMPANY_FIELD, STATUS_FIELD, status, q)}


def _fetch_visible(record_id: str, user: User, store, message: str) -> Dict[str, Any]:
    try:
        record = store.get_record(COMPANY_TABLE, record_id)
    except StoreError as e:
        raise store_failure(e, message, "company fetch")
    if not is_visible(record, user, match_id=True):
        raise HTTPException(status_code=404, detail=MSG_NOT_FOUND)
    return record


@router.get("/{record_id}", response_model=Record)
def get_company(record_id: str, user: User = Depends(get_current_user), store=Depends(get_store)):
    if uses_samples(user, store):
        return demo.sample_record("companies", record_id)
    return _fetch_visible(record_id, user, store, MSG_GET_FAILED)


def _update(record_id: str, body: Dict[str, Any], user: User, store) -> Dict[str, Any]:
    fields = {k: v for k, v in body.items() if k not in _SERVER_OWNED}
    if is_synthetic(user):
        return {"id": record_id, "fields": fields, "message": "업데이트 성공 (데모 모드)"}
    _fetch_visible(record_id, user, store, MSG_UPDATE_FAILED)
    try:
        record = store.update_record(COMPANY_TABLE, record_id, fields)
    except StoreError as e:
        raise store_failure(e, MSG_UPDATE_FAILED, "company update")
    logger.info("Company %s updated by %s: %s", record_id, user.name, sorted(fields))
    return {"id": record.get("id", record_id), "fields": record.get("fields", {}), "message": "업데이트 성공"}


@router.patch("/{record_id}", response_model=UpdateResponse)
def update_company(record_id: str, body: Dict[str, Any] = Body(...),
                   user: User = Depends(get_current_user), store=Depends(get_store)):
    return _update(record_id, body, user, store)


@router.patch("", response_model=UpdateResponse)
def update_company_by_body(body: Dict[str, Any] = Body(...),
                           user: User = Depends(get_current_user), store=Depends(get_store)):
    record_id = body.get("id")
    if not record_id:
        raise HTTPException(status_code=400, detail=MSG_ID_REQUIRED)
    fields = body.get("fields") if isinstance(body.get("fields"), dict) else body
    return _update(str(record_id), fields, user, store)
