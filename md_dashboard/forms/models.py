from __future__ import annotations
from enum import Enum
from typing import Dict, List, Optional, Type

from pydantic import BaseModel


class ChurnStatus(str, Enum):
    RECEIVED = "접수"
    RESPONDING = "대응중"
    MONITORING = "모니터링"
    RESOLVED = "해결완료"
    CHURNED = "이탈확정"


class CSStatus(str, Enum):
    RECEIVED = "접수완료"
    IN_PROGRESS = "처리중"
    DONE = "완료"


class InboundResult(str, Enum):
    MEETING_SCHEDULED = "미팅예정"
    MEETING_DONE = "미팅완료"
    CONTRACT_IN_PROGRESS = "계약진행중"
    CONTRACTED = "계약완료"
    ON_HOLD = "보류"
    REJECTED = "거절"


class LiveStatus(str, Enum):
    LIVE = "입점완료"


CHURN_REASONS = ["수수료불만", "매출부진", "서비스불만", "경쟁사이동", "폐업예정", "기타"]
CS_TYPES = ["결제문의", "예약변경", "취소/환불", "서비스불만", "시스템오류", "기타"]
INBOUND_SOURCES = ["홈페이지", "제휴문의", "전화문의", "소개", "이벤트", "기타"]

MD_FIELD = "담당MD"
MD_ID_FIELD = "담당MD_ID"
COMPANY_FIELD = "업체명"

MD_BONUS = "MD보너스"
ADMIN_BONUS = "관리자보너스"
ADMIN_BONUS_NOTE = "관리자보너스메모"
ADMIN_ONLY_FIELDS = (ADMIN_BONUS, ADMIN_BONUS_NOTE)


class FormSpec(BaseModel):
    """How one form type maps onto its Airtable table."""
    slug: str
    label: str
    read_table: str
    write_table: str
    date_field: str
    status_field: str
    status_enum: Type[Enum]
    initial_status: Optional[str] = None
    required: List[str]
    # live-complete keeps the client's completion date and adds a submission timestamp instead
    timestamp_field: Optional[str] = None
    client_date: bool = False
    success_message: str

    model_config = {"arbitrary_types_allowed": True}

    @property
    def statuses(self) -> List[str]:
        return [s.value for s in self.status_enum]


CHURN_RISK = FormSpec(
    slug="churn-risk",
    label="이탈/해지 우려",
    read_table="이탈해지우려",
    write_table="이탈해지우려",
    date_field="접수일",
    status_field="현재상태",
    status_enum=ChurnStatus,
    initial_status=ChurnStatus.RECEIVED.value,
    required=["업체명", "이탈사유", "상세내용"],
    success_message="이탈/해지 우려가 등록되었습니다.",
)

CS = FormSpec(
    slug="cs",
    label="CS 접수",
    read_table="CS접수",
    write_table="CS접수",
    date_field="접수일",
    status_field="처리상태",
    status_enum=CSStatus,
    initial_status=CSStatus.RECEIVED.value,
    required=["업체명", "CS유형", "내용"],
    success_message="CS 접수가 완료되었습니다.",
)

# Reads come from the lead DB, submissions land in the results table.
INBOUND = FormSpec(
    slug="inbound",
    label="인바운드 결과",
    read_table="인바운드 캠핑장 DB",
    write_table="인바운드결과",
    date_field="인입일자",
    status_field="미팅결과",
    status_enum=InboundResult,
    required=["업체명", "인입경로", "미팅결과"],
    success_message="인바운드 결과가 등록되었습니다.",
)

LIVE_COMPLETE = FormSpec(
    slug="live-complete",
    label="라이브(입점) 완료",
    read_table="라이브완료",
    write_table="라이브완료",
    date_field="입점완료일",
    status_field="상태",
    status_enum=LiveStatus,
    initial_status=LiveStatus.LIVE.value,
    required=["업체명", "입점완료일"],
    timestamp_field="제출일시",
    client_date=True,
    success_message="라이브 완료 폼이 제출되었습니다.",
)

FORMS: Dict[str, FormSpec] = {f.slug: f for f in (CHURN_RISK, CS, INBOUND, LIVE_COMPLETE)}


class BonusUpdate(BaseModel):
    id: Optional[str] = None
    md_bonus: Optional[float] = None
    admin_bonus: Optional[float] = None
    admin_bonus_note: Optional[str] = None

    @classmethod
    def from_body(cls, body: Dict) -> "BonusUpdate":
        return cls(
            id=str(body["id"]) if body.get("id") else None,
            md_bonus=body.get(MD_BONUS),
            admin_bonus=body.get(ADMIN_BONUS),
            admin_bonus_note=body.get(ADMIN_BONUS_NOTE),
        )

    def writable_fields(self, is_admin: bool) -> Dict:
        fields: Dict = {}
        if self.md_bonus is not None:
            fields[MD_BONUS] = self.md_bonus
        if is_admin:
            if self.admin_bonus is not None:
                fields[ADMIN_BONUS] = self.admin_bonus
            if self.admin_bonus_note is not None:
                fields[ADMIN_BONUS_NOTE] = self.admin_bonus_note
        return fields
