from __future__ import annotations  # FastAPI server exposing the screening webhook

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from config import CONVERSE_KEY, EVALUATE_KEY, bind_model, is_bound, load_config, resolve_route
from config.settings import settings
from llm_gateway import model_callable
from messaging import build_outbox
from services.turns import TurnService
from storage.jobs import seed_demo_job
from storage.migrate import migrate


logger = logging.getLogger(__name__)


def bind_default_models(config_path: Optional[Path] = None) -> None:  # Wire registry keys to configured LLM routes
    cfg = load_config(config_path or Path(settings.LLM_CONFIG_PATH))
    for key in (CONVERSE_KEY, EVALUATE_KEY):
        if is_bound(key):
            continue
        route = resolve_route(cfg, key)
        bind_model(key, model_callable(route))
        logger.info("Bound %s to route=%s model=%s", key, route.name, route.model)


def create_app(turn_service: Optional[TurnService] = None) -> FastAPI:  # Build the application with storage and models ready
    migrate(settings.DB_PATH)
    if settings.SEED_DEMO_JOB:
        seed_demo_job()
    bind_default_models()

    app = FastAPI(title="Screening Interview API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.turn_service = turn_service or TurnService(outbox=build_outbox(settings))
    app.include_router(router)
    return app


app = create_app()
