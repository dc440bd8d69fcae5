# file: models/auth.py

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel

from app.errors import ValidationError


class EmailRequest(BaseModel):
    email: Optional[str] = None


class VerifyCodeRequest(BaseModel):
    email: Optional[str] = None
    code: Optional[str] = None


def normalize_email(email: Optional[str]) -> str:
    normalized = (email or "").strip().lower()
    if not normalized:
        raise ValidationError("Email is required")
    return normalized


@dataclass(frozen=True)
class AuthSession:
    email: str
    code: str

    @classmethod
    def from_request(cls, payload: VerifyCodeRequest) -> "AuthSession":
        code = (payload.code or "").strip()
        if not (payload.email or "").strip() or not code:
            raise ValidationError("Email and code are required")
        return cls(email=normalize_email(payload.email), code=code)
