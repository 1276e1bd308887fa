from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .env_settings import EnvSettings, get_env
from .log_config import setup_logging
from .routers import verify

log = logging.getLogger(__name__)


def create_app(env: EnvSettings | None = None) -> FastAPI:
    env = env or get_env()
    setup_logging(level=env.log_level, log_dir=env.log_dir, retention_days=env.log_retention_days)
    log.info("Directory settings: %s", env.presence_report())

    app = FastAPI(title="LDAP Verify")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=env.cors_origins or ["*"],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.include_router(verify.router)
    return app


app = create_app()
