from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse

from md_dashboard.auth import get_current_user
from md_dashboard.companies.routes import COMPANY_STATUSES, list_companies
from md_dashboard.forms.models import CHURN_RISK, FORMS
from md_dashboard.forms.routes import list_forms
from md_dashboard.models import User
from md_dashboard.store.db import get_store
from md_dashboard.utils import utc_now
from . import pages, stats

router = APIRouter()
api_router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def login_ui():
    return pages.login_page()


@router.get("/dashboard", response_class=HTMLResponse)
async def overview_ui():
    return pages.overview_page()


@router.get("/dashboard/companies", response_class=HTMLResponse)
async def companies_ui():
    return pages.companies_page(COMPANY_STATUSES)


@router.get("/dashboard/forms/{slug}", response_class=HTMLResponse)
async def form_ui(slug: str):
    spec = FORMS.get(slug)
    if not spec:
        raise HTTPException(status_code=404, detail="알 수 없는 폼입니다.")
    return pages.form_page(spec)


@router.get("/dashboard/bonus", response_class=HTMLResponse)
async def bonus_ui():
    return pages.bonus_page()


@api_router.get("/summary")
def summary(period: str = "monthly", user: User = Depends(get_current_user), store=Depends(get_store)):
    if period not in stats.PERIOD_DAYS:
        raise HTTPException(status_code=400, detail=f"period must be one of {', '.join(stats.PERIOD_DAYS)}")
    companies = list_companies(status=None, q=None, user=user, store=store)["records"]
    churn = list_forms("churn-risk", status=None, q=None, user=user, store=store)["records"]
    inbound = list_forms("inbound", status=None, q=None, user=user, store=store)["records"]
    live = list_forms("live-complete", status=None, q=None, user=user, store=store)["records"]
    schedule = [
        {k: v for k, v in group.items() if k != "records"} | {"count": len(group["records"])}
        for group in stats.bonus_schedule(live)
    ]
    return {
        "companies": stats.company_stats(companies),
        "churnRisk": stats.status_counts(churn, CHURN_RISK.status_field, CHURN_RISK.statuses),
        "inbound": stats.inbound_analytics(inbound, period, utc_now()),
        "bonusSchedule": schedule,
    }
