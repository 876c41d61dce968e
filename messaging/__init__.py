"""Channel delivery for candidate-facing replies."""
from .outbox import Outbox, OutboxError, RecordingOutbox, TwilioOutbox, build_outbox, whatsapp_address

__all__ = ["Outbox", "OutboxError", "RecordingOutbox", "TwilioOutbox", "build_outbox", "whatsapp_address"]
