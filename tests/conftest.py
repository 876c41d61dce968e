import os
import sys
import tempfile
from pathlib import Path

import pytest

os.environ.setdefault("ENABLE_FILE_LOGS", "0")

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import config.registry as registry
from config.registry import CONVERSE_KEY, EVALUATE_KEY, bind_model
from config.settings import settings
from messaging.outbox import RecordingOutbox
from services.turns import TurnService
from session_flow.state import InboundTurn, Job
from storage.jobs import upsert_job
from storage.migrate import migrate


QUESTIONS = [
    "Tell us about your most recent role.",
    "Describe a system you designed end to end.",
    "What is your expected salary?",
]


class ScriptedModel:
    """Registry-compatible fake: returns queued payloads, then a default."""

    def __init__(self, default=None):
        self.default = default
        self.queue = []
        self.calls = []

    def push(self, *payloads):
        self.queue.extend(payloads)
        return self

    def __call__(self, *, system_prompt, inputs):
        self.calls.append({"system_prompt": system_prompt, "inputs": inputs})
        payload = self.queue.pop(0) if self.queue else self.default
        if isinstance(payload, Exception):
            raise payload
        return payload


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    monkeypatch.setattr(settings, "MAX_FOLLOW_UPS", 2, raising=False)
    monkeypatch.setattr(settings, "DEFAULT_JOB_ID", None, raising=False)
    migrate(db_path)
    try:
        yield
    finally:
        td.cleanup()


@pytest.fixture(autouse=True)
def clean_registry(monkeypatch):
    monkeypatch.setattr(registry, "_REGISTRY", {})


@pytest.fixture
def converse_model():
    model = ScriptedModel(
        default={
            "assistant_reply": "",
            "normalized_answer": None,
            "action": "ask_again",
            "follow_up_question": "Could you give a concrete example?",
        }
    )
    bind_model(CONVERSE_KEY, model)
    return model


@pytest.fixture
def evaluate_model():
    model = ScriptedModel(
        default={
            "score": 88,
            "strengths": ["clear communication"],
            "weaknesses": ["limited cloud exposure"],
            "summary": "Solid backend profile.",
            "decision": "reject",
        }
    )
    bind_model(EVALUATE_KEY, model)
    return model


@pytest.fixture
def job():
    record = Job(job_id="JOB-1", title="Backend Engineer", language="en", questions=list(QUESTIONS))
    upsert_job(record)
    return record


@pytest.fixture
def outbox():
    return RecordingOutbox()


@pytest.fixture
def service(outbox):
    return TurnService(outbox=outbox)


@pytest.fixture
def send(service):
    counter = {"n": 0}

    def _send(body, *, sender="whatsapp:+15550001", delivery_id=None, job_id=None):
        counter["n"] += 1
        turn = InboundTurn(
            channel_identity=sender,
            delivery_id=delivery_id or f"SM{counter['n']:04d}",
            body_text=body,
            job_id=job_id,
        )
        return service.handle(turn)

    return _send
