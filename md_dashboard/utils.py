from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def today_iso() -> str:
    return utc_now().date().isoformat()

def now_iso() -> str:
    return utc_now().isoformat(timespec="milliseconds").replace("+00:00", "Z")

def parse_date(value: Any) -> Optional[date]:
    """Accept 'YYYY-MM-DD' or a full ISO timestamp; anything else yields None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None

def to_number(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).replace(",", ""))
    except ValueError:
        return 0.0

def narrow_records(records: List[Dict], name_field: str, status_field: Optional[str],
                   status: Optional[str] = None, q: Optional[str] = None) -> List[Dict]:
    out = records
    if status and status != "all" and status_field:
        out = [r for r in out if r.get("fields", {}).get(status_field) == status]
    if q:
        needle = q.strip().lower()
        out = [r for r in out if needle in str(r.get("fields", {}).get(name_field) or "").lower()]
    return out
