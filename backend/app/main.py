from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import FRONTEND_URL, LOG_LEVEL, SEED_DEMO_DATA
from .db import init_db, now_iso
from .routes import alerts, auth, heatmap, help_points, patrols, reports, safe_routes, stats, users
from .seed import seed_accounts, seed_demo_data

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
log = logging.getLogger(__name__)

app = FastAPI(title="CaminoSeguro API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL],
    allow_credentials=FRONTEND_URL != "*",
    allow_methods=["*"],
    allow_headers=["*"],
)

for module in (auth, users, reports, help_points, safe_routes, alerts, heatmap, stats, patrols):
    app.include_router(module.router)


@app.on_event("startup")
def startup() -> None:
    init_db()
    seed_accounts()
    if SEED_DEMO_DATA:
        seed_demo_data()


@app.exception_handler(StarletteHTTPException)
async def http_exc_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_exc_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part not in ("body", "query", "path")),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"success": False, "errors": errors})


@app.exception_handler(Exception)
async def any_exc_handler(request: Request, exc: Exception):
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "message": "Internal server error"})


@app.get("/health")
def health():
    return {"status": "OK", "timestamp": now_iso(), "service": "CaminoSeguro API"}


@app.get("/")
def root():
    return {
        "message": "CaminoSeguro API - road safety reporting",
        "version": app.version,
        "endpoints": {
            "auth": "/api/auth",
            "users": "/api/users",
            "reports": "/api/reports",
            "helpPoints": "/api/help-points",
            "routes": "/api/routes",
            "alerts": "/api/alerts",
            "heatmap": "/api/heatmap",
            "stats": "/api/stats",
            "patrols": "/api/patrols",
        },
    }
