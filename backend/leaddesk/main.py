"""LeadDesk backend entrypoint."""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.leaddesk.api import classes, lead_history, leads, login, metrics, my_leads, users
from backend.leaddesk.core.dev_seed import ensure_default_dev_users
from backend.leaddesk.core.logging import configure_logging
from backend.leaddesk.core.settings import get_settings
from backend.leaddesk.db.base import Base
from backend.leaddesk.db.session import SessionLocal, engine
from backend.leaddesk.services.events import EventBus

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version=settings.api_version)
app.state.event_bus = EventBus()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(login.router)
app.include_router(users.router)
app.include_router(leads.router)
app.include_router(my_leads.router)
app.include_router(lead_history.router)
app.include_router(metrics.router)
app.include_router(classes.router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


@app.get("/")
def read_root():
    return {"app": "LeadDesk backend", "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def init_database():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_default_dev_users(db)
    finally:
        db.close()
