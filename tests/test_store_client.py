import pytest
import requests

from md_dashboard.config import Settings
from md_dashboard.store.client import AirtableClient, StoreError, StubStore, formula_eq, formula_or


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body if body is not None else {}

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt

    def close(self):
        pass


def make_client(*responses):
    settings = Settings(airtable_api_key="key123", airtable_base_id="appBASE")
    session = FakeSession(responses)
    return AirtableClient(settings, session=session), session


def test_list_records_passes_filter_and_sort():
    client, session = make_client(FakeResponse(body={"records": [{"id": "rec1", "fields": {}}]}))
    records = client.list_records(
        "업체",
        filter_by_formula='{담당MD} = "김MD"',
        max_records=5,
        sort=[{"field": "업체명", "direction": "asc"}],
    )
    assert [r["id"] for r in records] == ["rec1"]
    method, url, kwargs = session.requests[0]
    assert method == "GET"
    assert url == "https://api.airtable.com/v0/appBASE/%EC%97%85%EC%B2%B4"
    assert kwargs["params"] == {
        "filterByFormula": '{담당MD} = "김MD"',
        "maxRecords": "5",
        "sort[0][field]": "업체명",
        "sort[0][direction]": "asc",
    }
    assert kwargs["headers"]["Authorization"] == "Bearer key123"


def test_list_records_follows_offset():
    client, session = make_client(
        FakeResponse(body={"records": [{"id": "a"}], "offset": "next1"}),
        FakeResponse(body={"records": [{"id": "b"}]}),
    )
    records = client.list_records("CS접수")
    assert [r["id"] for r in records] == ["a", "b"]
    assert session.requests[1][2]["params"]["offset"] == "next1"


def test_list_records_stops_at_max_records():
    client, session = make_client(FakeResponse(body={"records": [{"id": "a"}, {"id": "b"}], "offset": "more"}))
    records = client.list_records("CS접수", max_records=1)
    assert [r["id"] for r in records] == ["a"]
    assert len(session.requests) == 1


def test_error_message_from_remote():
    client, _ = make_client(FakeResponse(422, {"error": {"type": "INVALID_FILTER", "message": "Invalid formula"}}))
    with pytest.raises(StoreError) as exc:
        client.list_records("업체")
    assert exc.value.message == "Invalid formula"
    assert exc.value.status_code == 422


def test_error_without_body_uses_default_message():
    client, _ = make_client(FakeResponse(500, ValueError("no json")))
    with pytest.raises(StoreError) as exc:
        client.get_record("업체", "rec1")
    assert exc.value.message == "Airtable API 오류"


def test_network_failure_raises_store_error():
    client, _ = make_client(requests.ConnectionError("down"))
    with pytest.raises(StoreError):
        client.create_record("업체", {"업체명": "A"})


def test_create_update_delete_shapes():
    client, session = make_client(
        FakeResponse(body={"id": "rec1", "fields": {"업체명": "A"}}),
        FakeResponse(body={"id": "rec1", "fields": {"업체명": "B"}}),
        FakeResponse(body={"id": "rec1", "deleted": True}),
    )
    client.create_record("업체", {"업체명": "A"})
    client.update_record("업체", "rec1", {"업체명": "B"})
    assert client.delete_record("업체", "rec1") == {"id": "rec1", "deleted": True}
    (m1, _, k1), (m2, u2, k2), (m3, u3, _) = session.requests
    assert (m1, k1["json"]) == ("POST", {"fields": {"업체명": "A"}})
    assert (m2, k2["json"]) == ("PATCH", {"fields": {"업체명": "B"}})
    assert u2.endswith("/rec1") and m3 == "DELETE" and u3.endswith("/rec1")


def test_update_records_is_chunked():
    batch = [{"id": f"rec{i}", "fields": {"n": i}} for i in range(12)]
    client, session = make_client(
        FakeResponse(body={"records": batch[:10]}),
        FakeResponse(body={"records": batch[10:]}),
    )
    updated = client.update_records("라이브완료", batch)
    assert len(updated) == 12
    assert [len(req[2]["json"]["records"]) for req in session.requests] == [10, 2]


def test_formula_helpers_escape_quotes():
    assert formula_eq("담당MD", 'a"b') == '{담당MD} = "a\\"b"'
    assert formula_or("A", "B") == "OR(A, B)"


def test_stub_store_always_fails():
    with pytest.raises(StoreError):
        StubStore().list_records("업체")
