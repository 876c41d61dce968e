"""LLM route configuration loaded from JSON."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field


class LlmRoute(BaseModel):  # LLM endpoint configuration
    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(default=20.0, ge=0.1)
    temperature: Optional[float] = None
    api_key_env: str | None = None
    response_format: str | None = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)
    sequential: bool = False
    enforce_json: bool = False


class AppConfig(BaseModel):  # Application configuration root
    llm_routes: Dict[str, LlmRoute]
    registry: Dict[str, str]


def default_config() -> AppConfig:
    """OpenAI-compatible routes used when no config file is present."""

    model = os.getenv("OPENAI_MODEL", "gpt-4o")
    return AppConfig(
        llm_routes={
            "converse": LlmRoute(
                name="converse",
                base_url="https://api.openai.com",
                endpoint="/v1/chat/completions",
                model=model,
                temperature=0.3,
                api_key_env="OPENAI_API_KEY",
            ),
            "evaluate": LlmRoute(
                name="evaluate",
                base_url="https://api.openai.com",
                endpoint="/v1/chat/completions",
                model=model,
                temperature=0.2,
                timeout_s=45.0,
                api_key_env="OPENAI_API_KEY",
            ),
        },
        registry={"models.converse": "converse", "models.evaluate": "evaluate"},
    )


def load_config(path: Path) -> AppConfig:  # Load configuration from disk
    if not path.exists():
        return default_config()
    data = path.read_text(encoding="utf-8")
    return AppConfig.model_validate_json(data)


def resolve_route(cfg: AppConfig, target: str) -> LlmRoute:  # Look up the route bound to a registry key
    if target not in cfg.registry:
        raise KeyError(f"Registry entry missing for '{target}'")
    route_id = cfg.registry[target]
    if route_id not in cfg.llm_routes:
        raise KeyError(f"Route '{route_id}' missing for '{target}'")
    return cfg.llm_routes[route_id]
