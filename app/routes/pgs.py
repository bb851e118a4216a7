from fastapi import APIRouter, HTTPException, Header
from fastapi.responses import JSONResponse
from app.auth import safe_id, auth_header_key
from app.models import PropertyCreate
from app.storage import (
    PropertyExistsError,
    list_enquiries,
    list_properties,
    get_property,
    create_property,
    delete_property,
)

router = APIRouter(prefix="/api/pgs", tags=["pgs"])


@router.get("")
def api_pg_list():
    items = list_properties()
    return {"ok": True, "pgs": items, "count": len(items)}


@router.post("")
def api_pg_create(
    payload: PropertyCreate, key: str | None = None, x_admin_key: str | None = Header(default=None)
):
    auth_header_key(x_admin_key or key)
    try:
        rec = create_property(payload)
    except PropertyExistsError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return JSONResponse({"ok": True, "pg": rec}, status_code=201)


@router.get("/{pg_id}")
def api_pg_get(pg_id: str):
    pg_id = safe_id(pg_id, "pg id")
    rec = get_property(pg_id)
    if rec is None:
        raise HTTPException(status_code=404, detail="pg not found")
    return {"ok": True, "pg": rec}


@router.delete("/{pg_id}")
def api_pg_delete(pg_id: str, key: str | None = None, x_admin_key: str | None = Header(default=None)):
    auth_header_key(x_admin_key or key)
    pg_id = safe_id(pg_id, "pg id")
    if not delete_property(pg_id):
        raise HTTPException(status_code=404, detail="pg not found")
    return {"ok": True, "pgId": pg_id}


@router.get("/{pg_id}/enquiries")
def api_pg_enquiries(pg_id: str, key: str | None = None, x_admin_key: str | None = Header(default=None)):
    auth_header_key(x_admin_key or key)
    pg_id = safe_id(pg_id, "pg id")
    return {"ok": True, "pgId": pg_id, "enquiries": list_enquiries(pg_id=pg_id)}
