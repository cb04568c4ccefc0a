from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

ROLE_MD = "md"
ROLE_ADMIN = "admin"

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

class User(BaseModel):
    id: str
    email: str
    name: str
    role: str = ROLE_MD

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

class TokenResponse(BaseModel):
    token: str
    user: User

class Record(BaseModel):
    id: str
    fields: Dict[str, Any] = Field(default_factory=dict)
    createdTime: Optional[str] = None

class RecordsResponse(BaseModel):
    records: List[Record]

class SubmitResponse(BaseModel):
    success: bool = True
    message: str
    record: Record

class UpdateResponse(BaseModel):
    id: str
    fields: Dict[str, Any] = Field(default_factory=dict)
    message: Optional[str] = None
