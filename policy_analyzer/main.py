"""
FastAPI application entry point.
Mounts the router, CORS and the result cache. Loads env vars.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env from project root, regardless of where the app is started from
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))

from policy_analyzer.cache import ResultCache
from policy_analyzer.config import VERSION, get_settings
from policy_analyzer.router import router


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Health Policy Analyzer", version=VERSION)

    # CORS must be added before routes
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    app.state.cache = ResultCache(
        max_entries=settings.cache_max_entries,
        ttl_seconds=settings.cache_ttl_seconds,
    )
    app.include_router(router)
    return app


app = create_app()


@app.get("/")
def read_root():
    return {"message": "Health Policy Analyzer is running"}
