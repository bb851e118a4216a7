import logging
import re
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Header, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from app.auth import safe_id, auth_header_key
from app.config import RETRY_AFTER_S
from app.models import EnquiryCreate, EnquiryStatusPayload, ENQUIRY_STATUSES, PLACEHOLDER_PG_IDS
from app.security import AdmissionController, client_id_from_request
from app.storage import (
    DuplicateEnquiryError,
    UnknownPropertyError,
    submit_enquiry,
    list_enquiries,
    get_enquiry,
    update_enquiry_status,
    enquiry_stats,
)

router = APIRouter(prefix="/api/enquiries", tags=["enquiries"])
logger = logging.getLogger(__name__)

DEFAULT_OCCUPATION = "Student/Professional"
DEFAULT_ROOM_TYPE = "SINGLE"


def get_enquiry_limiter(request: Request) -> AdmissionController:
    return request.app.state.enquiry_limiter


def _clean(value):
    return value.strip() if isinstance(value, str) else value


def _normalize_payload(body: dict) -> dict:
    pg_id = _clean(body.get("pgId")) or None
    if isinstance(pg_id, str) and pg_id in PLACEHOLDER_PG_IDS:
        pg_id = None
    phone = body.get("phone")
    if isinstance(phone, str):
        phone = re.sub(r"\D", "", phone)
    email = _clean(body.get("email")) or None
    if isinstance(email, str):
        email = email.lower()
    room_type = body.get("roomSharing") or body.get("roomType") or DEFAULT_ROOM_TYPE
    return {
        "pgId": pg_id,
        "name": _clean(body.get("name")),
        "phone": phone,
        "email": email,
        "occupation": _clean(body.get("occupation")) or DEFAULT_OCCUPATION,
        "roomType": _clean(room_type),
        "moveInDate": body.get("moveInDate") or datetime.now(timezone.utc).isoformat(),
        "message": _clean(body.get("message")) or None,
    }


def _field_errors(exc: ValidationError) -> dict:
    out: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc") or ()
        field = str(loc[0]) if loc else "_"
        out.setdefault(field, []).append(err.get("msg", "invalid value"))
    return out


def _fail(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse({"success": False, "message": message, **extra}, status_code=status_code)


def _invalid_input(errors: dict) -> JSONResponse:
    return _fail(400, "Please check your input and try again", errors=errors)


@router.post("")
async def api_enquiry_submit(
    request: Request, limiter: AdmissionController = Depends(get_enquiry_limiter)
):
    client_id = client_id_from_request(request)
    if not limiter.allow(client_id):
        return JSONResponse(
            {"success": False, "message": "Too many requests. Please try again later."},
            status_code=429,
            headers={"Retry-After": str(RETRY_AFTER_S)},
        )

    try:
        body = await request.json()
    except ValueError:
        return _invalid_input({"_": ["request body must be JSON"]})
    if not isinstance(body, dict):
        return _invalid_input({"_": ["request body must be a JSON object"]})

    try:
        data = EnquiryCreate.model_validate(_normalize_payload(body))
    except ValidationError as e:
        errors = _field_errors(e)
        logger.warning("enquiry rejected: client=%s fields=%s", client_id, sorted(errors))
        return _invalid_input(errors)

    try:
        rec = submit_enquiry(data)
    except UnknownPropertyError:
        logger.warning("enquiry rejected: client=%s unknown pg=%s", client_id, data.pgId)
        return _fail(400, "The selected PG is no longer available. Please choose another.")
    except DuplicateEnquiryError:
        logger.warning("enquiry rejected: client=%s duplicate pg=%s", client_id, data.pgId)
        return _fail(
            400,
            "You already submitted an enquiry for this PG recently. "
            "Please wait 24 hours before submitting again.",
            code="DUPLICATE_ENQUIRY",
        )
    except Exception:
        logger.exception("enquiry submission failed: client=%s", client_id)
        return _fail(
            500,
            "We encountered an issue processing your request. Please try again later.",
            code="SERVER_ERROR",
        )

    return JSONResponse(
        {"success": True, "enquiryId": rec["id"], "message": "Enquiry submitted successfully"},
        status_code=201,
    )


def _safe_status(status: str | None) -> str | None:
    if not status:
        return None
    if status not in ENQUIRY_STATUSES:
        raise HTTPException(status_code=400, detail="invalid status")
    return status


@router.get("")
def api_enquiry_list(
    status: str | None = None,
    limit: int | None = None,
    offset: int = 0,
    key: str | None = None,
    x_admin_key: str | None = Header(default=None),
):
    auth_header_key(x_admin_key or key)
    status = _safe_status(status)
    if limit is not None:
        limit = max(1, min(int(limit), 1000))
    items = list_enquiries(status=status, limit=limit, offset=max(0, int(offset or 0)))
    return {"ok": True, "enquiries": items}


@router.get("/stats")
def api_enquiry_stats(key: str | None = None, x_admin_key: str | None = Header(default=None)):
    auth_header_key(x_admin_key or key)
    return enquiry_stats()


@router.get("/{enquiry_id}")
def api_enquiry_get(
    enquiry_id: str, key: str | None = None, x_admin_key: str | None = Header(default=None)
):
    auth_header_key(x_admin_key or key)
    enquiry_id = safe_id(enquiry_id, "enquiry id")
    rec = get_enquiry(enquiry_id)
    if rec is None:
        raise HTTPException(status_code=404, detail="enquiry not found")
    return {"ok": True, "enquiry": rec}


@router.patch("/{enquiry_id}")
def api_enquiry_update(
    enquiry_id: str,
    payload: EnquiryStatusPayload,
    key: str | None = None,
    x_admin_key: str | None = Header(default=None),
):
    auth_header_key(x_admin_key or key)
    enquiry_id = safe_id(enquiry_id, "enquiry id")
    status = _safe_status(payload.status)
    if status is None:
        raise HTTPException(status_code=400, detail="invalid status")
    rec = update_enquiry_status(enquiry_id, status)
    if rec is None:
        raise HTTPException(status_code=404, detail="enquiry not found")
    return {"success": True, "enquiry": rec}
