from messaging.outbox import OutboxError, RecordingOutbox
from services.invites import dispatch_invites, pending_recipients
from session_flow.state import Job
from storage.jobs import get_job, upsert_job


class FlakyOutbox(RecordingOutbox):
    def __init__(self, blocked):
        super().__init__()
        self.blocked = set(blocked)

    def send(self, to, body):
        if to in self.blocked:
            raise OutboxError(f"blocked {to}")
        super().send(to, body)


def test_pending_recipients_dedupes_and_skips_sent():
    job = Job(job_id="J", recipients=[" +1 ", "+2", "+1", ""], sent_recipients=["+2"])
    assert pending_recipients(job, "new") == ["+1"]
    assert pending_recipients(job, "all") == ["+1", "+2"]


def test_dispatch_records_failures_and_marks_sent():
    job = Job(job_id="J-INV", title="Analyst", language="ar", questions=["Q?"], recipients=["+1", "+2"])
    upsert_job(job)
    outbox = FlakyOutbox(blocked={"+2"})

    result = dispatch_invites(job, outbox)

    assert (result.sent, result.success, result.failed) == (2, 1, ["+2"])
    assert outbox.bodies("+1")[0].startswith("مرحبًا")
    assert "Analyst" in outbox.bodies("+1")[0]
    assert get_job("J-INV").sent_recipients == ["+1", "+2"]
    assert dispatch_invites(get_job("J-INV"), outbox).sent == 0
