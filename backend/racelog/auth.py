from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request, HTTPException, Depends
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from .settings import settings

SUPERADMIN = "superadmin"
ADMIN = "admin"

def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(settings.RACELOG_SECRET_KEY, salt="racelog-auth")

@dataclass
class CurrentUser:
    email: str
    role: str  # "superadmin" | "admin"

    @property
    def is_superadmin(self) -> bool:
        return self.role == SUPERADMIN

    @property
    def created_by_filter(self) -> str | None:
        # admins only see the students they registered
        return None if self.is_superadmin else self.email

def issue_token(*, email: str, role: str) -> str:
    return _serializer().dumps({"e": email, "r": role})

def get_current_user(request: Request) -> CurrentUser | None:
    header = request.headers.get("Authorization") or ""
    scheme, _, raw = header.partition(" ")
    if scheme.lower() != "bearer" or not raw:
        return None
    try:
        data = _serializer().loads(raw, max_age=settings.RACELOG_TOKEN_MAX_AGE)
    except (SignatureExpired, BadSignature):
        return None
    return CurrentUser(email=str(data.get("e") or ""), role=str(data.get("r") or ""))

def staff_required(user: CurrentUser | None = Depends(get_current_user)) -> CurrentUser:
    if not user:
        raise HTTPException(status_code=401, detail="Token required")
    if user.role not in (SUPERADMIN, ADMIN):
        raise HTTPException(status_code=403, detail="Unauthorized access")
    return user

def superadmin_required(user: CurrentUser = Depends(staff_required)) -> CurrentUser:
    if not user.is_superadmin:
        raise HTTPException(status_code=403, detail="Superadmin required")
    return user
