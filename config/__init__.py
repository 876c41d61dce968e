"""Configuration package for the screening interview service."""
from .locales import MessageCatalog, catalog, t
from .registry import CONVERSE_KEY, EVALUATE_KEY, bind_model, get_model, is_bound
from .routes import AppConfig, LlmRoute, default_config, load_config, resolve_route
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "default_config",
    "load_config",
    "resolve_route",
    "MessageCatalog",
    "catalog",
    "t",
    "CONVERSE_KEY",
    "EVALUATE_KEY",
    "bind_model",
    "get_model",
    "is_bound",
    "Settings",
    "settings",
]
