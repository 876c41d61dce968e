"""YAML-driven message catalogue for candidate-facing text."""
from __future__ import annotations

import os
import re
import time
from typing import Any, Dict, Mapping, Optional

from config.settings import settings

DEFAULT_PATH = os.path.join(os.path.dirname(__file__), "locales.yaml")
_PLACEHOLDER = re.compile(r"\{\{(.*?)\}\}")

DEFAULT_MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "welcome": (
            "Hi 👋\n"
            "I'm Azzam, the intelligent hiring assistant for the company.\n"
            "I reviewed your application for {{title}} and will ask a few quick questions to get to know you better.\n"
            "If you're ready, let me know with any phrase like: ready, let's start, okay."
        ),
        "question_prefix": "Question {{current}} of {{total}}:\n{{question}}",
        "no_questions": "Thanks! There are no questions configured for this role yet. We'll be in touch.",
        "final": "Thank you for your time! Your answers have been recorded and our team will get back to you soon.",
        "no_active_job": "No active job configured.",
    },
    "ar": {
        "welcome": (
            "مرحبًا 👋\n"
            "أنا عزّام، المساعد الذكي للتوظيف في الشركة.\n"
            "اطلعت على طلبك لوظيفة {{title}} وبسألك كم سؤال للتعرّف عليك أكثر.\n"
            "إذا كنت جاهز، خبرني بأي كلمة مثل: جاهز، خلّنا نبدأ، تمام."
        ),
        "question_prefix": "السؤال {{current}} من {{total}}:\n{{question}}",
        "no_questions": "شكرًا لك! لا توجد أسئلة لهذه الوظيفة حاليًا. سنتواصل معك قريبًا.",
        "final": "شكرًا لوقتك! تم تسجيل إجاباتك وسيتواصل معك فريقنا قريبًا.",
        "no_active_job": "لا توجد وظيفة نشطة حاليًا.",
    },
}


def _load_yaml(path: str) -> dict:
    import yaml  # deferred until a catalogue file exists

    with open(path, "r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def render(template: str, variables: Optional[Mapping[str, Any]] = None) -> str:
    """Substitute ``{{name}}`` placeholders; unknown names render empty."""

    values = variables or {}

    def _sub(match: re.Match[str]) -> str:
        value = values.get(match.group(1).strip())
        return "" if value is None else str(value)

    return _PLACEHOLDER.sub(_sub, template or "")


class MessageCatalog:
    """Per-language message templates reloaded when the YAML file changes."""

    def __init__(self, path: Optional[str] = None):
        self.path = path or settings.LOCALES_PATH or DEFAULT_PATH
        self._mtime = 0.0
        self._messages: Dict[str, Dict[str, str]] = {}
        self.reload_if_changed(force=True)

    def reload_if_changed(self, force: bool = False) -> None:
        try:
            stat = os.stat(self.path)
            if not force and stat.st_mtime <= self._mtime:
                return
            loaded = _load_yaml(self.path)
            self._mtime = stat.st_mtime
        except FileNotFoundError:
            loaded = {}
            self._mtime = time.time()

        merged: Dict[str, Dict[str, str]] = {lang: dict(entries) for lang, entries in DEFAULT_MESSAGES.items()}
        for lang, entries in (loaded.get("messages") or {}).items():
            merged.setdefault(lang, {}).update({key: str(value) for key, value in (entries or {}).items()})
        self._messages = merged

    def text(self, lang: str, key: str, **variables: Any) -> str:
        """Render ``key`` for ``lang``, falling back to English."""

        self.reload_if_changed()
        template = self._messages.get(lang, {}).get(key)
        if template is None:
            template = self._messages.get("en", {}).get(key, "")
        return render(template, variables)


_catalog: Optional[MessageCatalog] = None


def catalog() -> MessageCatalog:
    global _catalog
    if _catalog is None:
        _catalog = MessageCatalog()
    return _catalog


def t(lang: str, key: str, **variables: Any) -> str:
    """Convenience wrapper around the shared catalogue."""

    return catalog().text(lang, key, **variables)


__all__ = ["DEFAULT_MESSAGES", "MessageCatalog", "catalog", "render", "t"]
