# Freelance Ledger backend entrypoint: FastAPI app wiring.

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api import clients
from backend.app.api import invoices
from backend.app.api import login
from backend.app.api import profile
from backend.app.api import projects
from backend.app.api import register
from backend.app.api import time_entries
from backend.app.core.errors import register_exception_handlers
from backend.app.core.logging_config import configure_logging
from backend.app.core.settings import get_settings
from backend.app.db.base import Base
from backend.app.db.session import engine

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title=settings.app_name, version=settings.api_version)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(register.router)
app.include_router(login.router)
app.include_router(profile.router)
app.include_router(clients.router)
app.include_router(projects.router)
app.include_router(time_entries.router)
app.include_router(invoices.router)


@app.get("/")
def read_root():
    return {"app": "Freelance Ledger backend", "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def create_tables():
    Base.metadata.create_all(bind=engine)
