from __future__ import annotations  # LLM request gateway module

import json
import logging
import os
import re
import threading
from typing import Any, Callable, Dict, Optional, Protocol, Sequence

import httpx

from config.routes import LlmRoute


logger = logging.getLogger(__name__)  # Module logger setup


_MODEL_LOCKS: Dict[str, threading.Lock] = {}
_MODEL_LOCKS_GUARD = threading.Lock()

_BRACED = re.compile(r"\{[\s\S]*\}")


class HttpClient(Protocol):  # Minimal HTTP client protocol
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> "HttpResponse": ...


class HttpResponse(Protocol):  # Minimal HTTP response protocol
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


class LlmGatewayError(RuntimeError):  # Base gateway error
    pass


def _lock_for(cfg: LlmRoute) -> threading.Lock:
    key = cfg.name or f"{cfg.base_url}{cfg.endpoint}"
    with _MODEL_LOCKS_GUARD:
        lock = _MODEL_LOCKS.get(key)
        if lock is None:
            lock = threading.Lock()
            _MODEL_LOCKS[key] = lock
    return lock


def complete(
    messages: Sequence[Dict[str, str]],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
) -> str:
    """Send one chat-completions request and return the assistant content.

    Transport failures, timeouts, error statuses and non-JSON envelopes all raise
    :class:`LlmGatewayError`; nothing is retried here.
    """

    def _execute() -> str:
        payload: Dict[str, Any] = {"model": cfg.model, "messages": _normalize_messages(messages)}
        if cfg.temperature is not None:
            payload["temperature"] = cfg.temperature
        if cfg.response_format:
            payload["response_format"] = {"type": cfg.response_format}
        if options:
            payload.update(options)
        headers = {"Content-Type": "application/json"}
        if cfg.api_key_env:
            api_key = os.getenv(cfg.api_key_env)
            if not api_key:
                raise LlmGatewayError(f"API key env {cfg.api_key_env} is not set")
            headers["Authorization"] = f"Bearer {api_key}"
        headers.update(cfg.extra_headers)

        preview = _preview(payload["messages"])
        if len(preview) > 120:
            preview = preview[:117] + "..."
        logger.info("LLM request send route=%s model=%s preview=%s", cfg.name, cfg.model, preview)

        close_cb: Optional[Callable[[], None]] = None
        try:
            try:
                response, close_cb = _post(f"{cfg.base_url}{cfg.endpoint}", payload, headers, cfg.timeout_s, client)
            except Exception as exc:  # noqa: BLE001
                logger.error("LLM transport failure route=%s: %s", cfg.name, exc)
                raise LlmGatewayError("LLM transport failed") from exc
            if response.status_code >= 400:
                logger.error("LLM error status route=%s: %s", cfg.name, response.status_code)
                raise LlmGatewayError(f"LLM returned status {response.status_code}")
            try:
                data = response.json()
            except Exception as exc:  # noqa: BLE001
                logger.error("Invalid JSON envelope from LLM route=%s: %s", cfg.name, exc)
                raise LlmGatewayError("LLM payload was not JSON") from exc
        finally:
            _close_safely(close_cb)
        content = _extract_content(data)
        logger.info("LLM request done route=%s model=%s chars=%d", cfg.name, cfg.model, len(content))
        return content

    if cfg.sequential:
        with _lock_for(cfg):
            return _execute()
    return _execute()


def model_callable(route: LlmRoute, *, client: Optional[HttpClient] = None) -> Callable[..., str]:  # Adapt a route to the model registry calling convention
    def _invoke(*, system_prompt: str, inputs: Dict[str, Any]) -> str:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": json.dumps(inputs, ensure_ascii=False)},
        ]
        return complete(messages, cfg=route, client=client)

    return _invoke


def parse_json_object(raw: Any) -> Dict[str, Any]:
    """Tolerant JSON extraction used on model output.

    Dicts pass through; strings are parsed strictly first (after stripping markdown
    fences) and otherwise the first brace-delimited span is tried. Anything else
    raises ``ValueError``.
    """

    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str):
        raise ValueError(f"Unsupported model output type: {type(raw).__name__}")
    text = _strip_code_fences(raw)
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        match = _BRACED.search(text)
        if not match:
            raise ValueError("No JSON object found in model output")
        parsed = json.loads(match.group(0))
    if not isinstance(parsed, dict):
        raise ValueError("Model output JSON is not an object")
    return parsed


def _post(url: str, payload: Dict[str, Any], headers: Dict[str, str], timeout: float, client: Optional[HttpClient]):  # Dispatch HTTP request
    if client is not None:
        return client.post(url, json=payload, headers=headers, timeout=timeout), None
    http_client = httpx.Client(timeout=timeout)
    try:
        response = http_client.post(url, json=payload, headers=headers)
    except Exception:
        http_client.close()
        raise
    return response, http_client.close


def _close_safely(close_cb: Optional[Callable[[], None]]) -> None:  # Close HTTP client callback when provided
    if close_cb is not None:
        close_cb()


def _normalize_messages(messages: Sequence[Dict[str, str]]) -> list[Dict[str, str]]:  # Ensure message payload shape
    normalized: list[Dict[str, str]] = []
    for item in messages:
        if not isinstance(item, dict):
            raise TypeError("Each chat message must be a dict with role/content")
        role = str(item.get("role", "")).strip()
        content = str(item.get("content", ""))
        if not role:
            raise ValueError("Chat message missing role")
        normalized.append({"role": role, "content": content})
    return normalized


def _preview(messages: Sequence[Dict[str, str]]) -> str:  # Build preview string for logging
    for message in messages:
        text = message.get("content", "").strip()
        if text:
            return text.splitlines()[0]
    return ""


def _extract_content(data: Any) -> str:  # Extract message content from LLM response
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[0].get("message") if isinstance(choices[0], dict) else None
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str):
                return content
        if isinstance(data.get("content"), str):
            return data["content"]
    raise LlmGatewayError("LLM response missing content")


def _strip_code_fences(content: str) -> str:  # Remove common markdown fences from LLM output
    text = content.strip()
    if text.startswith("```"):
        lines = text.splitlines()[1:]
        while lines and lines[-1].strip() in ("", "```"):
            lines = lines[:-1]
        text = "\n".join(lines).strip()
    return text
