import json
import logging
import threading
import uuid
from collections import Counter
from datetime import datetime, timezone, timedelta
from typing import List
from app.config import DATA_DIR, DUPLICATE_WINDOW_HOURS
from app.models import EnquiryCreate, PropertyCreate

logger = logging.getLogger(__name__)

ENQUIRIES_FILE = DATA_DIR / "_enquiries.json"
PGS_FILE = DATA_DIR / "_pgs.json"
_enquiries_lock = threading.Lock()
_pgs_lock = threading.Lock()


class EnquiryError(Exception):
    pass


class DuplicateEnquiryError(EnquiryError):
    pass


class UnknownPropertyError(EnquiryError):
    pass


class PropertyExistsError(Exception):
    pass


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(value) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


# ── enquiries ──

def _load_enquiries() -> List[dict]:
    if ENQUIRIES_FILE.exists():
        try:
            data = json.loads(ENQUIRIES_FILE.read_text(encoding="utf-8"))
            if isinstance(data, list):
                return [x for x in data if isinstance(x, dict)]
        except Exception:
            logger.warning("unreadable enquiries file: %s", ENQUIRIES_FILE)
    return []


def _save_enquiries(items: List[dict]):
    ENQUIRIES_FILE.parent.mkdir(parents=True, exist_ok=True)
    tmp = ENQUIRIES_FILE.with_suffix(".json.tmp")
    tmp.write_text(json.dumps(items, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(ENQUIRIES_FILE)


def _has_recent(items: List[dict], pg_id: str | None, phone: str, since: datetime) -> bool:
    for rec in items:
        if rec.get("phone") != phone:
            continue
        # General enquiries match any earlier enquiry from the same phone.
        if pg_id and rec.get("pgId") != pg_id:
            continue
        created = _parse_ts(rec.get("createdAt"))
        if created and created >= since:
            return True
    return False


def has_recent_enquiry(pg_id: str | None, phone: str, since: datetime) -> bool:
    return _has_recent(_load_enquiries(), pg_id, phone, since)


def _new_record(data: EnquiryCreate) -> dict:
    now = _utc_now().isoformat()
    return {
        "id": str(uuid.uuid4()),
        "pgId": data.pgId,
        "name": data.name,
        "phone": data.phone,
        "email": data.email,
        "occupation": data.occupation,
        "roomType": data.roomType,
        "moveInDate": data.moveInDate.isoformat(),
        "message": data.message,
        "status": "NEW",
        "createdAt": now,
        "updatedAt": now,
    }


def create_enquiry(data: EnquiryCreate) -> dict:
    rec = _new_record(data)
    with _enquiries_lock:
        items = _load_enquiries()
        items.append(rec)
        _save_enquiries(items)
    return rec


def submit_enquiry(data: EnquiryCreate) -> dict:
    """Check the property and the duplicate window, then store the enquiry."""
    if data.pgId:
        known = known_property_ids()
        if known is not None and data.pgId not in known:
            raise UnknownPropertyError(f"unknown property: {data.pgId}")

    since = _utc_now() - timedelta(hours=DUPLICATE_WINDOW_HOURS)
    with _enquiries_lock:
        items = _load_enquiries()
        if _has_recent(items, data.pgId, data.phone, since):
            raise DuplicateEnquiryError(
                f"recent enquiry exists within {DUPLICATE_WINDOW_HOURS}h"
            )
        rec = _new_record(data)
        items.append(rec)
        _save_enquiries(items)

    logger.info(
        "enquiry created: id=%s pg=%s created=%s",
        rec["id"],
        rec["pgId"],
        rec["createdAt"],
    )
    return rec


def list_enquiries(
    status: str | None = None,
    pg_id: str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> List[dict]:
    items = _load_enquiries()
    if status:
        items = [x for x in items if x.get("status") == status]
    if pg_id:
        items = [x for x in items if x.get("pgId") == pg_id]
    if offset:
        items = items[max(0, offset):]
    if limit:
        items = items[:limit]
    return items


def get_enquiry(enquiry_id: str) -> dict | None:
    for rec in _load_enquiries():
        if rec.get("id") == enquiry_id:
            return rec
    return None


def update_enquiry_status(enquiry_id: str, status: str) -> dict | None:
    with _enquiries_lock:
        items = _load_enquiries()
        for rec in items:
            if rec.get("id") == enquiry_id:
                rec["status"] = status
                rec["updatedAt"] = _utc_now().isoformat()
                _save_enquiries(items)
                logger.info("enquiry status updated: id=%s status=%s", enquiry_id, status)
                return rec
    return None


def enquiry_stats() -> dict:
    items = _load_enquiries()
    by_status = Counter(str(x.get("status") or "") for x in items)
    week_ago = _utc_now() - timedelta(days=7)
    last_week = 0
    for rec in items:
        created = _parse_ts(rec.get("createdAt"))
        if created and created > week_ago:
            last_week += 1
    return {
        "total": len(items),
        "new": by_status.get("NEW", 0),
        "contacted": by_status.get("CONTACTED", 0),
        "closed": by_status.get("CLOSED", 0),
        "lastWeek": last_week,
    }


# ── properties ──

def _load_properties() -> List[dict] | None:
    """Entries of _pgs.json, or None when no registry exists.

    Bare string entries (hand-written registries) are read as {"id": value}.
    """
    if not PGS_FILE.exists():
        return None
    try:
        data = json.loads(PGS_FILE.read_text(encoding="utf-8"))
    except Exception:
        logger.warning("unreadable property registry: %s", PGS_FILE)
        return None
    if not isinstance(data, list):
        return None
    out = []
    for x in data:
        if isinstance(x, str) and x:
            out.append({"id": x})
        elif isinstance(x, dict) and isinstance(x.get("id"), str) and x["id"]:
            out.append(x)
    return out


def _save_properties(items: List[dict]):
    PGS_FILE.parent.mkdir(parents=True, exist_ok=True)
    tmp = PGS_FILE.with_suffix(".json.tmp")
    tmp.write_text(json.dumps(items, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(PGS_FILE)


def known_property_ids() -> set[str] | None:
    """Property ids from _pgs.json, or None when no registry is configured."""
    items = _load_properties()
    if items is None:
        return None
    return {x["id"] for x in items}


def list_properties() -> List[dict]:
    return _load_properties() or []


def get_property(pg_id: str) -> dict | None:
    for rec in list_properties():
        if rec["id"] == pg_id:
            return rec
    return None


def create_property(data: PropertyCreate) -> dict:
    rec = {
        "id": data.id or f"pg_{uuid.uuid4().hex[:12]}",
        "slug": data.slug,
        "name": data.name.strip(),
        "city": data.city.strip(),
        "createdAt": _utc_now().isoformat(),
    }
    with _pgs_lock:
        items = _load_properties() or []
        for x in items:
            if x["id"] == rec["id"]:
                raise PropertyExistsError(f"id '{rec['id']}' is already taken")
            if x.get("slug") == rec["slug"]:
                raise PropertyExistsError(f"slug '{rec['slug']}' is already taken")
        items.append(rec)
        _save_properties(items)
    logger.info("property created: id=%s slug=%s", rec["id"], rec["slug"])
    return rec


def delete_property(pg_id: str) -> bool:
    with _pgs_lock:
        items = _load_properties()
        if not items:
            return False
        kept = [x for x in items if x["id"] != pg_id]
        if len(kept) == len(items):
            return False
        _save_properties(kept)
    logger.info("property deleted: id=%s", pg_id)
    return True
