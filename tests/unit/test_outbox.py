from types import SimpleNamespace

import pytest
from twilio.base.exceptions import TwilioRestException

from config.settings import Settings
from messaging.outbox import OutboxError, RecordingOutbox, TwilioOutbox, build_outbox, whatsapp_address


class FakeMessages:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(sid="SM123")


def _outbox(error=None):
    messages = FakeMessages(error)
    client = SimpleNamespace(messages=messages)
    outbox = TwilioOutbox(account_sid="AC1", auth_token="tok", from_number="+14155238886", client=client)
    return outbox, messages


def test_recording_outbox_filters_by_destination():
    outbox = RecordingOutbox()
    outbox.send("a", "one")
    outbox.send("b", "two")
    assert outbox.bodies("a") == ["one"]
    assert outbox.bodies() == ["one", "two"]
    outbox.clear()
    assert outbox.sent == []


def test_whatsapp_address_is_prefixed_once():
    assert whatsapp_address("+1555") == "whatsapp:+1555"
    assert whatsapp_address("whatsapp:+1555") == "whatsapp:+1555"


def test_twilio_outbox_uses_messages_create():
    outbox, messages = _outbox()
    outbox.send("+15550001", "Hello")
    assert messages.calls == [{"from_": "whatsapp:+14155238886", "to": "whatsapp:+15550001", "body": "Hello"}]


def test_twilio_rest_error_becomes_outbox_error():
    outbox, _ = _outbox(TwilioRestException(401, "/Messages.json", msg="Authenticate"))
    with pytest.raises(OutboxError):
        outbox.send("whatsapp:+15550001", "Hello")


def test_build_outbox_selection():
    assert isinstance(build_outbox(Settings(_env_file=None)), RecordingOutbox)
    with pytest.raises(OutboxError):
        build_outbox(Settings(_env_file=None, OUTBOX="twilio"))
    twilio = build_outbox(Settings(_env_file=None, OUTBOX="twilio", TWILIO_SID="AC1", TWILIO_AUTH_TOKEN="tok"))
    assert isinstance(twilio, TwilioOutbox)
