from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient
from twilio.request_validator import RequestValidator

from api.routes import router
from config.settings import settings
from messaging.outbox import RecordingOutbox
from services.turns import TurnService
from storage.jobs import get_job, upsert_job


def _client():
    outbox = RecordingOutbox()
    app = FastAPI()
    app.state.turn_service = TurnService(outbox=outbox)
    app.include_router(router)
    return TestClient(app), outbox


def _form(client, body, sid, sender="whatsapp:+15550100"):
    return client.post("/webhook", data={"From": sender, "MessageSid": sid, "Body": body})


def test_form_webhook_full_interview(job, converse_model, evaluate_model):
    client, outbox = _client()

    hello = _form(client, "hello", "SM1")
    assert hello.status_code == 200
    assert hello.json()["session_id"] is None

    start = _form(client, "ready", "SM2").json()
    assert start["current_index"] == 0
    assert start["replies"] == ["Question 1 of 3:\nTell us about your most recent role."]

    _form(client, "Platform engineer at Acme since 2021", "SM3")
    _form(client, "A billing service with idempotent webhooks", "SM4")
    done = _form(client, "Between 4000 and 5000 USD", "SM5").json()

    assert done["completed"] is True
    assert done["submission_id"]
    assert outbox.bodies("whatsapp:+15550100")[-1].startswith("Thank you for your time")

    listed = client.get(f"/api/jobs/{job.job_id}/submissions").json()
    assert [item["submission_id"] for item in listed] == [done["submission_id"]]

    detail = client.get(f"/api/submissions/{done['submission_id']}").json()
    assert detail["decision"] == "strong"
    assert detail["score"] == 88
    assert len(detail["answers"]) == 3


def test_json_webhook_and_duplicate(job, converse_model):
    client, outbox = _client()
    payload = {"channel_identity": "+15550200", "delivery_id": "D1", "body_text": "ready"}
    first = client.post("/webhook", json=payload).json()
    second = client.post("/webhook", json=payload).json()
    assert first["session_id"] == second["session_id"]
    assert second["duplicate"] is True
    assert second["replies"] == []
    assert len(outbox.sent) == 1


def test_webhook_rejects_missing_sender(job):
    client, _ = _client()
    response = client.post("/webhook", data={"MessageSid": "SM1", "Body": "ready"})
    assert response.status_code == 400


def test_webhook_unknown_job_is_404(job):
    client, _ = _client()
    response = client.post("/webhook", json={"channel_identity": "+1", "body_text": "ready", "job_id": "NOPE"})
    assert response.status_code == 404


def test_read_endpoints(job):
    client, _ = _client()
    assert client.get("/health").json() == {"status": "ok", "jobs": 1}
    jobs = client.get("/api/jobs").json()
    assert jobs[0]["job_id"] == job.job_id
    assert client.get(f"/api/jobs/{job.job_id}").json()["questions"] == job.questions
    assert client.get("/api/jobs/NOPE").status_code == 404
    assert client.get("/api/jobs/NOPE/submissions").status_code == 404
    assert client.get("/api/submissions/none").status_code == 404


def test_send_invites_new_then_all(job):
    client, outbox = _client()
    job.recipients = ["+15550301", "+15550302", "+15550301"]
    upsert_job(job)

    first = client.post(f"/api/jobs/{job.job_id}/send", json={"mode": "new"}).json()
    assert first == {"ok": True, "sent": 2, "success": 2, "failed": []}
    assert [to for to, _ in outbox.sent] == ["+15550301", "+15550302"]
    assert "Backend Engineer" in outbox.sent[0][1]

    again = client.post(f"/api/jobs/{job.job_id}/send").json()
    assert again["sent"] == 0

    job = get_job(job.job_id)
    job.recipients.append("+15550303")
    upsert_job(job)
    assert client.post(f"/api/jobs/{job.job_id}/send", json={"mode": "new"}).json()["sent"] == 1
    assert client.post(f"/api/jobs/{job.job_id}/send", json={"mode": "all"}).json()["sent"] == 3
    assert get_job(job.job_id).sent_recipients == ["+15550301", "+15550302", "+15550303"]
    assert client.post("/api/jobs/NOPE/send", json={"mode": "new"}).status_code == 404


def test_session_view(job, converse_model):
    client, _ = _client()
    start = _form(client, "ready", "SM1").json()
    _form(client, "Platform engineer at Acme since 2021", "SM2")

    view = client.get(f"/api/sessions/{start['session_id']}").json()
    assert view["candidate_id"] == "+15550100"
    assert view["current_index"] == 1
    assert view["completed_at"] is None
    assert view["answers"][0]["answer"] == "Platform engineer at Acme since 2021"
    assert view["job"] == {"title": "Backend Engineer", "language": "en", "total": 3}
    assert [entry["role"] for entry in view["transcript"]][:2] == ["user", "assistant"]
    assert client.get("/api/sessions/none").status_code == 404


def test_signed_form_webhook(job, converse_model, monkeypatch):
    monkeypatch.setattr(settings, "TWILIO_VALIDATE_SIGNATURE", True, raising=False)
    monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", "test-token", raising=False)
    client, _ = _client()
    params = {"From": "whatsapp:+15550100", "MessageSid": "SM1", "Body": "ready"}
    signature = RequestValidator("test-token").compute_signature("http://testserver/webhook", params)

    signed = client.post("/webhook", data=params, headers={"X-Twilio-Signature": signature})
    assert signed.status_code == 200
    assert signed.json()["current_index"] == 0

    unsigned = client.post("/webhook", data={**params, "MessageSid": "SM2"})
    assert unsigned.status_code == 403
    forged = client.post("/webhook", data={**params, "MessageSid": "SM3"}, headers={"X-Twilio-Signature": signature})
    assert forged.status_code == 403


def test_signature_check_refuses_without_token(job, monkeypatch):
    monkeypatch.setattr(settings, "TWILIO_VALIDATE_SIGNATURE", True, raising=False)
    monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", None, raising=False)
    client, _ = _client()
    assert _form(client, "ready", "SM1").status_code == 403
