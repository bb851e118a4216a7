"""Health check endpoint."""
import logging
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from app.config import DATA_DIR, APP_VERSION

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health():
    checks = {"app": "ok"}

    # Check data directory is writable
    try:
        DATA_DIR.mkdir(parents=True, exist_ok=True)
        test_file = DATA_DIR / ".health_check"
        test_file.write_text("ok")
        test_file.unlink()
        checks["storage"] = "ok"
    except OSError as e:
        logger.error("health check: storage not writable: %s", e)
        checks["storage"] = f"error: {e}"
        return JSONResponse(
            {"status": "unhealthy", "checks": checks, "version": APP_VERSION},
            status_code=503,
        )

    return {"status": "ok", "checks": checks, "version": APP_VERSION}
