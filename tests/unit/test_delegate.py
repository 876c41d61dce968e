from agents.delegate import build_inputs, converse, normalize_reply, sanitize_reply
from agents.types import DelegateAction, DelegateReply
from config.registry import CONVERSE_KEY, bind_model
from session_flow.state import Job, LedgerSlot, SessionState


def _fixtures():
    job = Job(job_id="J", title="Data Engineer", questions=["Q one?", "Q two?"])
    session = SessionState.open_for("c1", job)
    session.record_answer(0, LedgerSlot(question="Q one?", answer="Airflow and dbt"))
    session.current_index = 1
    return job, session


def test_sanitize_strips_authoring_offers_and_meta_loops():
    cleaned = sanitize_reply("Good start. I can write a better answer for you. Anything else?")
    assert "write a better answer" not in cleaned.lower()
    assert "anything else" not in cleaned.lower()
    assert cleaned.startswith("Good start.")
    assert sanitize_reply("سأكتب لك الإجابة الآن") == "الآن"
    assert sanitize_reply(None) == ""


def test_normalize_reply_from_fenced_json():
    raw = '```json\n{"assistant_reply": "Thanks", "action": "ANSWER", "normalized_answer": "null"}\n```'
    reply = normalize_reply(raw)
    assert reply.action is DelegateAction.ANSWER
    assert reply.normalized_answer is None
    assert reply.reply_text == "Thanks"


def test_unknown_action_maps_to_ask_again():
    reply = normalize_reply({"action": "escalate", "follow_up_question": "Tell me more."})
    assert reply.action is DelegateAction.ASK_AGAIN
    assert reply.follow_up_text == "Tell me more."


def test_build_inputs_carries_prior_ledger():
    job, session = _fixtures()
    inputs = build_inputs(job, session, "Q two?", "some message")
    assert inputs["job_title"] == "Data Engineer"
    assert inputs["active_question"] == "Q two?"
    assert inputs["prior_answer_ledger"] == [{"question": "Q one?", "answer": "Airflow and dbt"}]
    assert inputs["candidate_message"] == "some message"


def test_converse_uses_bound_model():
    job, session = _fixtures()
    seen = {}

    def model(*, system_prompt, inputs):
        seen["prompt"] = system_prompt
        return '{"assistant_reply": "Noted.", "action": "guide", "follow_up_question": "Which tools?"}'

    bind_model(CONVERSE_KEY, model)
    reply = converse(job, session, "Q two?", "I did stuff")
    assert reply.action is DelegateAction.GUIDE
    assert reply.follow_up_text == "Which tools?"
    assert seen["prompt"]


def test_converse_degrades_on_failure():
    job, session = _fixtures()

    def broken(**_):
        raise RuntimeError("upstream down")

    bind_model(CONVERSE_KEY, broken)
    assert converse(job, session, "Q two?", "x") == DelegateReply.fallback()


def test_converse_degrades_when_unbound_or_garbled():
    job, session = _fixtures()
    assert converse(job, session, "Q two?", "x").action is DelegateAction.ASK_AGAIN
    bind_model(CONVERSE_KEY, lambda **_: "not json at all")
    reply = converse(job, session, "Q two?", "x")
    assert reply.action is DelegateAction.ASK_AGAIN
    assert reply.reply_text == "" and reply.follow_up_text == ""
