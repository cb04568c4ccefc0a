import logging

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from md_dashboard import auth
from md_dashboard.config import Settings, get_settings
from md_dashboard.models import LoginRequest, TokenResponse, User
from md_dashboard.store.db import get_store
from md_dashboard.companies import routes as companies
from md_dashboard.forms import routes as forms
from md_dashboard.dashboard import routes as dashboard

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logging.getLogger("urllib3").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

MSG_SERVER_ERROR = "요청 처리 중 오류가 발생했습니다."
MSG_BAD_REQUEST = "요청 형식이 올바르지 않습니다."

app = FastAPI(title="MD Dashboard")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(companies.router, prefix="/api/companies")
app.include_router(forms.router, prefix="/api/forms")
app.include_router(dashboard.api_router, prefix="/api/dashboard")
app.include_router(dashboard.router)


@app.exception_handler(StarletteHTTPException)
async def _http_exc(request: Request, exc: StarletteHTTPException):
    body = exc.detail if isinstance(exc.detail, dict) else {"message": exc.detail}
    return JSONResponse(body, status_code=exc.status_code, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def _validation_exc(request: Request, exc: RequestValidationError):
    return JSONResponse({"message": MSG_BAD_REQUEST}, status_code=400)


@app.exception_handler(Exception)
async def _exc(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"message": MSG_SERVER_ERROR}, status_code=500)


def log_config_warnings(cfg: Settings):
    if not cfg.store_configured:
        logger.warning("AIRTABLE_API_KEY/AIRTABLE_BASE_ID not set; only demo and admin accounts can sign in")
    if not (cfg.admin_email and cfg.admin_password):
        logger.warning("ADMIN_EMAIL/ADMIN_PASSWORD not set; the admin account cannot sign in until both are configured")


@app.on_event("startup")
async def startup():
    log_config_warnings(settings)


@app.post("/api/auth/login", response_model=TokenResponse)
def login(req: LoginRequest, store=Depends(get_store), settings: Settings = Depends(get_settings)):
    user = auth.authenticate_user(req.email, req.password, store, settings)
    token = auth.create_access_token(user, settings)
    return TokenResponse(token=token, user=user)


@app.get("/api/auth/me", response_model=User)
async def me(user: User = Depends(auth.get_current_user)):
    return user
