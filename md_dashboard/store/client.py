from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from md_dashboard.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_ERROR = "Airtable API 오류"
BATCH_LIMIT = 10  # Airtable rejects PATCH bodies with more records than this


class StoreError(Exception):
    """Raised for any non-2xx response or transport failure from the record store."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def formula_escape(value: Any) -> str:
    return str(value).replace("\\", "\\\\").replace('"', '\\"')


def formula_eq(field: str, value: Any) -> str:
    return f'{{{field}}} = "{formula_escape(value)}"'


def formula_or(*parts: str) -> str:
    return "OR(" + ", ".join(parts) + ")"


def sort_spec(field: str, direction: str = "desc") -> List[Dict[str, str]]:
    return [{"field": field, "direction": direction}]


class AirtableClient:
    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.base_url = f"{settings.airtable_api_url}/{settings.airtable_base_id}"
        self.timeout = settings.airtable_timeout
        self.session = session or requests.Session()
        self.headers = {
            "Authorization": f"Bearer {settings.airtable_api_key}",
            "Content-Type": "application/json",
        }

    def _url(self, table: str, record_id: Optional[str] = None) -> str:
        url = f"{self.base_url}/{quote(table, safe='')}"
        if record_id:
            url += f"/{quote(record_id, safe='')}"
        return url

    def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            resp = self.session.request(method, url, headers=self.headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise StoreError(f"{DEFAULT_ERROR}: {e}") from e
        if not resp.ok:
            message = DEFAULT_ERROR
            try:
                err = resp.json().get("error")
                if isinstance(err, dict) and err.get("message"):
                    message = err["message"]
                elif isinstance(err, str):
                    message = err
            except ValueError:
                pass
            logger.warning("Airtable %s %s -> %s: %s", method, url, resp.status_code, message)
            raise StoreError(message, status_code=resp.status_code)
        return resp.json()

    def list_records(
        self,
        table: str,
        filter_by_formula: Optional[str] = None,
        max_records: Optional[int] = None,
        view: Optional[str] = None,
        sort: Optional[List[Dict[str, str]]] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {}
        if filter_by_formula:
            params["filterByFormula"] = filter_by_formula
        if max_records:
            params["maxRecords"] = str(max_records)
        if view:
            params["view"] = view
        for i, s in enumerate(sort or []):
            params[f"sort[{i}][field]"] = s["field"]
            params[f"sort[{i}][direction]"] = s.get("direction", "asc")

        records: List[Dict[str, Any]] = []
        offset = None
        while True:
            page_params = dict(params)
            if offset:
                page_params["offset"] = offset
            data = self._request("GET", self._url(table), params=page_params)
            records.extend(data.get("records", []))
            offset = data.get("offset")
            if not offset or (max_records and len(records) >= max_records):
                break
        if max_records:
            records = records[:max_records]
        return records

    def get_record(self, table: str, record_id: str) -> Dict[str, Any]:
        return self._request("GET", self._url(table, record_id))

    def create_record(self, table: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", self._url(table), json={"fields": fields})

    def update_record(self, table: str, record_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", self._url(table, record_id), json={"fields": fields})

    def update_records(self, table: str, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        updated: List[Dict[str, Any]] = []
        for start in range(0, len(records), BATCH_LIMIT):
            chunk = [{"id": r["id"], "fields": r["fields"]} for r in records[start:start + BATCH_LIMIT]]
            data = self._request("PATCH", self._url(table), json={"records": chunk})
            updated.extend(data.get("records", []))
        return updated

    def delete_record(self, table: str, record_id: str) -> Dict[str, Any]:
        return self._request("DELETE", self._url(table, record_id))


class StubStore:
    """Stand-in used when no Airtable credentials are configured.

    Demo and admin accounts never reach the store, so they keep working;
    everything else fails the same way an unreachable store would.
    """

    def _fail(self, *args, **kwargs):
        raise StoreError("Airtable credentials are not configured")

    list_records = _fail
    get_record = _fail
    create_record = _fail
    update_record = _fail
    update_records = _fail
    delete_record = _fail
