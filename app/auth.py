import re
from fastapi import HTTPException
from app.config import ADMIN_SECRET

ID_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_-]{0,63}$")


def safe_id(value: str, what: str = "id") -> str:
    value = (value or "").strip()
    if not ID_RE.match(value):
        raise HTTPException(status_code=400, detail=f"invalid {what}")
    return value


def auth_header_key(x_admin_key: str | None):
    if x_admin_key != ADMIN_SECRET:
        raise HTTPException(status_code=401, detail="invalid key")
