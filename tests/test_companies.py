from md_dashboard.companies.routes import COMPANY_TABLE


def seed(store):
    store.add(COMPANY_TABLE, {"업체명": "캠핑장 A", "상태": "정상운영", "담당MD": "김MD"}, "recA")
    store.add(COMPANY_TABLE, {"업체명": "글램핑 B", "상태": "이탈우려", "담당MD": "이MD"}, "recB")
    store.add(COMPANY_TABLE, {"업체명": "펜션 C", "상태": "이탈우려", "담당MD_ID": "recMD1"}, "recC")


def test_md_sees_only_own_companies(client, store, md_headers):
    seed(store)
    r = client.get("/api/companies", headers=md_headers)
    assert r.status_code == 200
    assert [c["id"] for c in r.json()["records"]] == ["recA", "recC"]
    _, _, formula, sort = store.calls[0]
    assert formula == 'OR({담당MD} = "김MD", {담당MD_ID} = "recMD1")'
    assert sort == [{"field": "업체명", "direction": "asc"}]


def test_admin_sees_everything_unfiltered(client, store, admin_headers):
    seed(store)
    r = client.get("/api/companies", headers=admin_headers)
    assert len(r.json()["records"]) == 3
    assert store.calls[0][2] is None


def test_query_narrowing(client, store, admin_headers):
    seed(store)
    r = client.get("/api/companies", params={"status": "이탈우려", "q": "펜션"}, headers=admin_headers)
    assert [c["id"] for c in r.json()["records"]] == ["recC"]


def test_demo_gets_samples(client, store, demo_headers):
    r = client.get("/api/companies", headers=demo_headers)
    assert len(r.json()["records"]) == 4
    assert store.calls == []


def test_store_error_is_500(client, store, md_headers):
    store.fail = True
    r = client.get("/api/companies", headers=md_headers)
    assert r.status_code == 500
    assert r.json()["message"] == "업체 목록을 불러오는 중 오류가 발생했습니다."


def test_get_foreign_company_is_404(client, store, md_headers):
    seed(store)
    assert client.get("/api/companies/recA", headers=md_headers).status_code == 200
    assert client.get("/api/companies/recB", headers=md_headers).status_code == 404
    assert client.get("/api/companies/nope", headers=md_headers).status_code == 404


def test_patch_updates_but_keeps_ownership(client, store, md_headers):
    seed(store)
    r = client.patch("/api/companies/recA", json={"상태": "이탈우려", "담당MD": "해커"}, headers=md_headers)
    assert r.status_code == 200
    assert r.json()["fields"]["상태"] == "이탈우려"
    assert store.updated == [(COMPANY_TABLE, "recA", {"상태": "이탈우려"})]


def test_patch_foreign_company_is_rejected(client, store, md_headers):
    seed(store)
    r = client.patch("/api/companies/recB", json={"상태": "정상운영"}, headers=md_headers)
    assert r.status_code == 404
    assert store.updated == []


def test_patch_by_body_requires_id(client, store, md_headers):
    seed(store)
    assert client.patch("/api/companies", json={"상태": "정상운영"}, headers=md_headers).status_code == 400
    r = client.patch("/api/companies", json={"id": "recA", "메모": "확인"}, headers=md_headers)
    assert r.status_code == 200
    assert store.updated == [(COMPANY_TABLE, "recA", {"메모": "확인"})]


def test_demo_patch_is_echoed_not_persisted(client, store, demo_headers):
    r = client.patch("/api/companies/rec1", json={"메모": "데모"}, headers=demo_headers)
    assert r.status_code == 200
    assert r.json()["fields"] == {"메모": "데모"}
    assert "데모 모드" in r.json()["message"]
    assert store.updated == []
