import uuid
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import BaseModel
from venuebook.core.config import settings

http_bearer = HTTPBearer(auto_error=False)

STAFF_ROLES = {"admin", "owner", "staff"}

class Principal(BaseModel):
    user_id: uuid.UUID
    roles: list[str] = []
    scopes: list[str] = []

    @property
    def is_staff(self) -> bool:
        return bool(STAFF_ROLES.intersection(self.roles))

def _decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG], audience=settings.REQUIRED_AUDIENCE)
    except JWTError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}")

async def get_principal(creds: HTTPAuthorizationCredentials | None = Depends(http_bearer)) -> Principal:
    # local dev runs without tokens as a full-scope admin
    if creds is None and settings.ENV == "local":
        return Principal(user_id=uuid.UUID(int=0), roles=["admin"], scopes=["*"])
    if creds is None:
        raise HTTPException(status_code=401, detail="Missing token")

    data = _decode_token(creds.credentials)
    try:
        user_id = uuid.UUID(str(data.get("sub") or data.get("user_id")))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token subject")
    return Principal(user_id=user_id, roles=data.get("roles", []), scopes=data.get("scopes", []))

def require_scopes(*needed: str):
    def dep(principal: Principal = Depends(get_principal)) -> Principal:
        if "*" in principal.scopes:
            return principal
        if not set(needed).issubset(set(principal.scopes)):
            raise HTTPException(status_code=403, detail="Insufficient scopes")
        return principal
    return dep

def ensure_acting_for(principal: Principal, customer_id: uuid.UUID) -> None:
    """Customers act only for themselves; front-desk staff may act for anyone."""
    if principal.is_staff:
        return
    if principal.user_id != customer_id:
        raise HTTPException(status_code=403, detail="Cannot act on behalf of another customer")
