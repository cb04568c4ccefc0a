"""Display-side aggregates over an already fetched record set.

Everything here is pure: records in, numbers out. The dashboard pages compute
the same figures in the browser; the summary endpoint uses these directly.
"""
from __future__ import annotations
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from md_dashboard.forms.models import ADMIN_BONUS, InboundResult, LIVE_COMPLETE, MD_BONUS
from md_dashboard.utils import parse_date, to_number, utc_now

PAYMENT_DAY = 5
PAYMENT_LAG_MONTHS = 2
PERIOD_DAYS = {"daily": 1, "weekly": 7, "monthly": 30}

COMPLETED = {InboundResult.CONTRACTED.value}
REJECTED = {InboundResult.REJECTED.value}
PENDING = {
    InboundResult.MEETING_SCHEDULED.value,
    InboundResult.MEETING_DONE.value,
    InboundResult.CONTRACT_IN_PROGRESS.value,
}


def _fields(record: Dict) -> Dict[str, Any]:
    return record.get("fields", {}) or {}


def company_stats(records: Iterable[Dict]) -> Dict[str, Any]:
    records = list(records)
    active = at_risk = 0
    revenue = 0.0
    for r in records:
        f = _fields(r)
        if f.get("상태") == "정상운영" or f.get("계약상태") == "정상":
            active += 1
        if f.get("상태") == "이탈우려" or f.get("계약상태") == "주의":
            at_risk += 1
        revenue += to_number(f.get("월매출"))
    return {
        "totalCompanies": len(records),
        "activeCompanies": active,
        "atRiskCompanies": at_risk,
        "totalRevenue": revenue,
    }


def filter_companies(records: Iterable[Dict], search: str = "", status: str = "all") -> List[Dict]:
    needle = (search or "").lower()
    out = []
    for r in records:
        f = _fields(r)
        if needle and needle not in str(f.get("업체명") or "").lower():
            continue
        if status and status != "all" and f.get("상태") != status:
            continue
        out.append(r)
    return out


def status_counts(records: Iterable[Dict], status_field: str, statuses: Iterable[str]) -> Dict[str, int]:
    counts = {s: 0 for s in statuses}
    for r in records:
        value = _fields(r).get(status_field)
        if value in counts:
            counts[value] += 1
    return counts


def payment_date(accrual: date) -> date:
    month_index = accrual.month - 1 + PAYMENT_LAG_MONTHS
    return date(accrual.year + month_index // 12, month_index % 12 + 1, PAYMENT_DAY)


def accrual_date(record: Dict) -> Optional[date]:
    f = _fields(record)
    return parse_date(f.get(LIVE_COMPLETE.date_field)) or parse_date(f.get(LIVE_COMPLETE.timestamp_field))


def bonus_schedule(records: Iterable[Dict]) -> List[Dict[str, Any]]:
    """Group live-complete records by payout date and total both bonus columns.

    Records without a usable accrual date are left out.
    """
    groups: Dict[date, Dict[str, Any]] = {}
    for r in records:
        accrued = accrual_date(r)
        if accrued is None:
            continue
        paid = payment_date(accrued)
        g = groups.setdefault(paid, {"paymentDate": paid.isoformat(), "records": [], "mdBonusTotal": 0.0, "adminBonusTotal": 0.0})
        f = _fields(r)
        g["records"].append(r)
        g["mdBonusTotal"] += to_number(f.get(MD_BONUS))
        g["adminBonusTotal"] += to_number(f.get(ADMIN_BONUS))
    return [groups[k] for k in sorted(groups)]


def success_rate(completed: int, rejected: int) -> float:
    decided = completed + rejected
    if decided == 0:
        return 0.0
    return round(completed / decided * 100, 1)


def progress_rate(completed: int, pending: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round((completed + pending) / total * 100, 1)


def period_start(period: str, now: Optional[datetime] = None) -> date:
    if period not in PERIOD_DAYS:
        raise ValueError(f"unknown period: {period}")
    now = now or utc_now()
    return (now - timedelta(days=PERIOD_DAYS[period])).date()


def inbound_analytics(records: Iterable[Dict], period: str = "monthly", now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or utc_now()
    start = period_start(period, now)
    end = now.date()
    bucket = []
    for r in records:
        d = parse_date(_fields(r).get("인입일자"))
        if d is not None and start <= d <= end:
            bucket.append(r)
    counts = status_counts(bucket, "미팅결과", [s.value for s in InboundResult])
    completed = sum(counts[s] for s in COMPLETED)
    rejected = sum(counts[s] for s in REJECTED)
    pending = sum(counts[s] for s in PENDING)
    return {
        "period": period,
        "from": start.isoformat(),
        "to": end.isoformat(),
        "total": len(bucket),
        "counts": counts,
        "successRate": success_rate(completed, rejected),
        "progressRate": progress_rate(completed, pending, len(bucket)),
    }
