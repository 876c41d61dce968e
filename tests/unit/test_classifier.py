import pytest

from agents.classifier import (
    MessageCategory,
    classify,
    is_clarification,
    is_confirmation_only,
    is_meta_non_answer,
    is_start_message,
    is_substantive_answer,
    is_user_question,
    is_valid_answer_content,
    normalize,
)


@pytest.mark.parametrize(
    "message, expected",
    [
        ("ok", MessageCategory.CONFIRMATION),
        ("Okay!", MessageCategory.CONFIRMATION),
        ("تمام", MessageCategory.CONFIRMATION),
        ("...", MessageCategory.CONFIRMATION),
        ("next", MessageCategory.CONFIRMATION),
        ("that's all", MessageCategory.META),
        ("I think I've answered everything", MessageCategory.META),
        ("خلصنا", MessageCategory.META),
        ("I don’t understand", MessageCategory.CLARIFICATION),
        ("ما فهمت", MessageCategory.CLARIFICATION),
        ("Is the role remote?", MessageCategory.QUESTION),
        ("هل الوظيفة عن بعد؟", MessageCategory.QUESTION),
        ("let's start", MessageCategory.READY),
        ("I have five years of Python experience", MessageCategory.ANSWER),
        ("5", MessageCategory.ANSWER),
        ("hmm", MessageCategory.UNCLEAR),
        ("", MessageCategory.UNCLEAR),
    ],
)
def test_classify_priority(message, expected):
    assert classify(message) is expected


def test_normalize_folds_apostrophes_and_case():
    assert normalize("  Let’s GO  ") == "let's go"
    assert normalize(None) == ""


def test_confirmation_wins_over_readiness():
    assert is_start_message("ready")
    assert classify("ready") is MessageCategory.CONFIRMATION


def test_readiness_accepts_both_languages():
    assert is_start_message("جاهز")
    assert is_start_message("Ready when you are")
    assert is_start_message("يلا نبدأ")


def test_readiness_uses_word_boundaries():
    assert not is_start_message("I am already employed")
    assert not is_start_message("hello")


def test_question_detection():
    assert is_user_question("how long is the interview")
    assert is_user_question("Remote?")
    assert not is_user_question("I led the payments team")


def test_clarification_and_meta_predicates():
    assert is_clarification("Can you rephrase that")
    assert is_meta_non_answer("Anything else?")
    assert is_confirmation_only("k")
    assert not is_confirmation_only("ok I worked at Acme")


def test_substantive_answer_thresholds():
    assert is_substantive_answer("Python")
    assert not is_substantive_answer("Java")
    assert is_substantive_answer("Java", min_chars=4)
    assert is_substantive_answer("C, Go")
    assert is_substantive_answer("10k")
    assert not is_substantive_answer("ok")
    assert not is_substantive_answer("what do you mean")


def test_valid_answer_content_rejects_non_answers():
    assert is_valid_answer_content("Three years building billing services")
    assert not is_valid_answer_content("that's it")
    assert not is_valid_answer_content("   ")
