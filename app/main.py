from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from app.routes import enquiries, pgs, health
from app.config import ENQUIRY_RATE_LIMIT, ENQUIRY_RATE_WINDOW_MS, RATE_LIMIT_MAX_CLIENTS
from app.security import AdmissionController

app = FastAPI(title="pg-enquiries", docs_url=None, redoc_url=None, openapi_url=None)
app.state.enquiry_limiter = AdmissionController(
    limit=ENQUIRY_RATE_LIMIT,
    window_ms=ENQUIRY_RATE_WINDOW_MS,
    max_clients=RATE_LIMIT_MAX_CLIENTS,
)


@app.middleware("http")
async def referrer_policy_middleware(request, call_next):
    response = await call_next(request)
    response.headers["Referrer-Policy"] = "no-referrer"
    return response


@app.get("/robots.txt", include_in_schema=False)
def robots_txt():
    return PlainTextResponse(
        "User-agent: *\nDisallow: /api/\n",
        media_type="text/plain; charset=utf-8",
    )

app.include_router(health.router)
app.include_router(enquiries.router)
app.include_router(pgs.router)
