import pytest

from md_dashboard.forms.models import LIVE_COMPLETE


def test_demo_summary(client, demo_headers):
    r = client.get("/api/dashboard/summary", headers=demo_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["companies"]["totalCompanies"] == 4
    assert body["companies"]["atRiskCompanies"] == 1
    assert body["churnRisk"]["대응중"] == 1
    assert [g["paymentDate"] for g in body["bonusSchedule"]] == ["2026-02-05", "2026-03-05"]
    assert body["bonusSchedule"][1]["mdBonusTotal"] == 100000
    assert body["inbound"]["period"] == "monthly"


def test_summary_scopes_md_records(client, store, md_headers):
    store.add(LIVE_COMPLETE.read_table, {"업체명": "A", "담당MD": "김MD", "입점완료일": "2026-01-06", "MD보너스": 10})
    store.add(LIVE_COMPLETE.read_table, {"업체명": "B", "담당MD": "이MD", "입점완료일": "2026-01-06", "MD보너스": 99})
    r = client.get("/api/dashboard/summary", headers=md_headers)
    assert r.json()["bonusSchedule"] == [
        {"paymentDate": "2026-03-05", "mdBonusTotal": 10.0, "adminBonusTotal": 0.0, "count": 1}
    ]


def test_summary_rejects_unknown_period(client, demo_headers):
    r = client.get("/api/dashboard/summary", params={"period": "yearly"}, headers=demo_headers)
    assert r.status_code == 400


@pytest.mark.parametrize("path", [
    "/",
    "/dashboard",
    "/dashboard/companies",
    "/dashboard/forms/churn-risk",
    "/dashboard/forms/cs",
    "/dashboard/forms/inbound",
    "/dashboard/forms/live-complete",
    "/dashboard/bonus",
])
def test_pages_render(client, path):
    r = client.get(path)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")


def test_form_page_lists_required_inputs(client):
    html = client.get("/dashboard/forms/cs").text
    assert "name='CS유형' required" in html
    assert "name='담당MD'" not in html


def test_unknown_form_page_is_404(client):
    assert client.get("/dashboard/forms/nope").status_code == 404


@pytest.mark.parametrize("path", ["/dashboard/companies", "/dashboard/bonus"])
def test_record_ids_are_escaped_in_markup(client, path):
    html = client.get(path).text
    assert "data-id='${esc(" in html
    assert "${r.id}" not in html
    assert "${c.id}" not in html


def test_bonus_save_sends_md_bonus_only_when_entered(client):
    html = client.get("/dashboard/bonus").text
    assert "if(md !== '') body.MD보너스 = Number(md);" in html
    assert "MD보너스: Number(" not in html
