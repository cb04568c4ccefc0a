from __future__ import annotations
import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class Settings(BaseModel):
    airtable_api_key: str = ""
    airtable_base_id: str = ""
    airtable_api_url: str = "https://api.airtable.com/v0"
    airtable_timeout: float = 30.0
    jwt_secret: str = "dev_secret_change_me"
    jwt_alg: str = "HS256"
    access_token_expire_days: int = 7
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @property
    def store_configured(self) -> bool:
        return bool(self.airtable_api_key and self.airtable_base_id)

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            airtable_api_key=os.getenv("AIRTABLE_API_KEY", ""),
            airtable_base_id=os.getenv("AIRTABLE_BASE_ID", ""),
            airtable_api_url=os.getenv("AIRTABLE_API_URL", "https://api.airtable.com/v0").rstrip("/"),
            airtable_timeout=float(os.getenv("AIRTABLE_TIMEOUT", "30")),
            jwt_secret=os.getenv("JWT_SECRET", "dev_secret_change_me"),
            jwt_alg=os.getenv("JWT_ALG", "HS256"),
            access_token_expire_days=int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "7")),
            admin_email=os.getenv("ADMIN_EMAIL") or None,
            admin_password=os.getenv("ADMIN_PASSWORD") or None,
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()] or ["*"],
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv()
    return Settings.from_env()
