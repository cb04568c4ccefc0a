from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError

from md_dashboard import demo
from md_dashboard.access_control import scope_formula, scoped, store_failure, uses_samples
from md_dashboard.auth import get_current_user, is_synthetic
from md_dashboard.models import RecordsResponse, SubmitResponse, UpdateResponse, User
from md_dashboard.store.client import StoreError, sort_spec
from md_dashboard.store.db import get_store
from md_dashboard.utils import narrow_records, now_iso, today_iso
from .models import (
    ADMIN_ONLY_FIELDS,
    BonusUpdate,
    COMPANY_FIELD,
    FORMS,
    FormSpec,
    LIVE_COMPLETE,
    MD_FIELD,
    MD_ID_FIELD,
)

logger = logging.getLogger(__name__)

MSG_FETCH_FAILED = "데이터를 불러오는 중 오류가 발생했습니다."
MSG_SUBMIT_FAILED = "폼 제출 중 오류가 발생했습니다."
MSG_BONUS_FAILED = "보너스 저장 중 오류가 발생했습니다."
MSG_REQUIRED = "필수 항목을 모두 입력해주세요."
MSG_ID_REQUIRED = "레코드 ID가 필요합니다."
MSG_NOTHING_TO_UPDATE = "수정할 수 있는 항목이 없습니다."
MSG_NOT_OWNER = "본인 담당 건만 수정할 수 있습니다."
MSG_BAD_AMOUNT = "보너스 금액은 숫자여야 합니다."
DEMO_SUFFIX = " (데모 모드)"

router = APIRouter()


def _form(slug: str) -> FormSpec:
    spec = FORMS.get(slug)
    if not spec:
        raise HTTPException(status_code=404, detail="알 수 없는 폼입니다.")
    return spec


def _missing(spec: FormSpec, body: Dict[str, Any]):
    return [f for f in spec.required if not str(body.get(f) or "").strip()]


def build_submission(spec: FormSpec, body: Dict[str, Any], user: User) -> Dict[str, Any]:
    """Client fields plus the server-owned stamps, which always win over client values."""
    fields = {k: v for k, v in body.items() if k != "id"}
    if not user.is_admin:
        for key in ADMIN_ONLY_FIELDS:
            fields.pop(key, None)
    fields[MD_FIELD] = user.name
    fields[MD_ID_FIELD] = user.id
    if not spec.client_date:
        fields[spec.date_field] = today_iso()
    if spec.timestamp_field:
        fields[spec.timestamp_field] = now_iso()
    if spec.initial_status:
        fields[spec.status_field] = spec.initial_status
    return fields


@router.get("/{slug}", response_model=RecordsResponse)
def list_forms(slug: str, status: Optional[str] = None, q: Optional[str] = None,
               user: User = Depends(get_current_user), store=Depends(get_store)):
    spec = _form(slug)
    if uses_samples(user, store):
        logger.debug("Serving sample %s records to %s", slug, user.id)
        records = demo.sample_records(slug)
    else:
        try:
            records = store.list_records(
                spec.read_table,
                filter_by_formula=scope_formula(user),
                sort=sort_spec(spec.date_field, "desc"),
            )
        except StoreError as e:
            raise store_failure(e, MSG_FETCH_FAILED, f"{slug} fetch")
    records = scoped(records, user)
    return {"records": narrow_records(records, COMPANY_FIELD, spec.status_field, status, q)}


@router.post("/{slug}", response_model=SubmitResponse)
def submit_form(slug: str, body: Dict[str, Any] = Body(...),
                user: User = Depends(get_current_user), store=Depends(get_store)):
    spec = _form(slug)
    missing = _missing(spec, body)
    if missing:
        raise HTTPException(status_code=400, detail={"message": MSG_REQUIRED, "required": spec.required, "missing": missing})
    if not spec.initial_status:
        value = body.get(spec.status_field)
        if value not in spec.statuses:
            raise HTTPException(status_code=400, detail=f"알 수 없는 상태값입니다: {value}")

    fields = build_submission(spec, body, user)
    if is_synthetic(user):
        return {
            "success": True,
            "message": spec.success_message + DEMO_SUFFIX,
            "record": {"id": demo.demo_id(slug), "fields": fields},
        }
    try:
        record = store.create_record(spec.write_table, fields)
    except StoreError as e:
        raise store_failure(e, MSG_SUBMIT_FAILED, f"{slug} submit")
    logger.info("%s submitted by %s: %s", slug, user.name, record.get("id"))
    return {"success": True, "message": spec.success_message, "record": record}


@router.patch("/live-complete", response_model=UpdateResponse)
def update_bonus(body: Dict[str, Any] = Body(...),
                 user: User = Depends(get_current_user), store=Depends(get_store)):
    try:
        update = BonusUpdate.from_body(body)
    except ValidationError:
        raise HTTPException(status_code=400, detail=MSG_BAD_AMOUNT)
    if not update.id:
        raise HTTPException(status_code=400, detail=MSG_ID_REQUIRED)
    fields = update.writable_fields(user.is_admin)
    if not fields:
        raise HTTPException(status_code=400, detail=MSG_NOTHING_TO_UPDATE)

    if is_synthetic(user):
        return {"id": update.id, "fields": fields, "message": "보너스가 저장되었습니다." + DEMO_SUFFIX}
    try:
        if not user.is_admin:
            current = store.get_record(LIVE_COMPLETE.read_table, update.id)
            if current.get("fields", {}).get(MD_FIELD) != user.name:
                raise HTTPException(status_code=403, detail=MSG_NOT_OWNER)
        record = store.update_record(LIVE_COMPLETE.write_table, update.id, fields)
    except StoreError as e:
        raise store_failure(e, MSG_BONUS_FAILED, "bonus update")
    logger.info("Bonus updated by %s on %s: %s", user.name, update.id, sorted(fields))
    return {"id": record.get("id", update.id), "fields": record.get("fields", fields), "message": "보너스가 저장되었습니다."}
