"""Tests for oracle payload validation and session state."""
import pytest

from interprep.interview.errors import OracleResponseError
from interprep.interview.schemas import (
    Phase, SessionState, clean_question, extract_json,
    parse_feedback, parse_question_list, parse_summary,
)


class TestParseFeedback:

    def test_complete_payload(self):
        feedback = parse_feedback("""{
            "score": 85, "responseQuality": 80,
            "evaluation": {"clarity": "Clear", "relevance": "Yes", "structure": "STAR", "confidence": "High"},
            "grammarCorrection": {"hasErrors": false, "explanation": ""},
            "professionalRewrite": "I led...", "tips": ["Add numbers"],
            "alexisResponse": "Nice!", "wordCount": 50, "fillerWords": 1, "hasExample": true
        }""")

        assert feedback.score == 85
        assert feedback.evaluation.structure == "STAR"
        assert feedback.tips == ("Add numbers",)
        assert feedback.has_example is True

    @pytest.mark.parametrize("raw,expected", [
        (140, 100), (-5, 0), ("85", 85), (72.4, 72), ("not a number", 0), (None, 0),
    ])
    def test_scores_are_clamped(self, raw, expected):
        assert parse_feedback({"score": raw}).score == expected

    def test_counts_are_non_negative(self):
        feedback = parse_feedback({"wordCount": -3, "fillerWords": "4"})
        assert (feedback.word_count, feedback.filler_words) == (0, 4)

    def test_missing_fields_get_defaults(self):
        feedback = parse_feedback({"score": 50})

        assert feedback.response_quality == 0
        assert feedback.evaluation.clarity == "N/A"
        assert feedback.tips == ()
        assert feedback.alexis_response == ""

    def test_single_tip_string_becomes_list(self):
        assert parse_feedback({"tips": "Slow down"}).tips == ("Slow down",)

    def test_null_tips_are_dropped(self):
        assert parse_feedback({"score": 80, "tips": [None, "Add a metric.", ""]}).tips == ("Add a metric.",)

    def test_null_text_fields_keep_the_score(self):
        feedback = parse_feedback({
            "score": 80, "alexisResponse": None, "professionalRewrite": None,
            "evaluation": None, "grammarCorrection": {"hasErrors": None, "explanation": None},
            "hasExample": None,
        })

        assert feedback.score == 80
        assert feedback.alexis_response == ""
        assert feedback.professional_rewrite == ""
        assert feedback.evaluation.clarity == "N/A"
        assert feedback.grammar_correction.has_errors is False
        assert feedback.has_example is False

    def test_numeric_text_fields_become_text(self):
        feedback = parse_feedback({"score": 80, "responseQuality": 70, "evaluation": {"clarity": 8}})

        assert feedback.score == 80
        assert feedback.response_quality == 70
        assert feedback.evaluation.clarity == "8"
        assert feedback.evaluation.relevance == "N/A"

    def test_json_inside_prose(self):
        assert parse_feedback('Here you go:\n```json\n{"score": 64}\n```').score == 64

    def test_non_object_is_rejected(self):
        with pytest.raises(OracleResponseError):
            parse_feedback("[1, 2, 3]")

    def test_garbage_is_rejected(self):
        with pytest.raises(OracleResponseError):
            extract_json("I cannot help with that.")


class TestParseSummary:

    def test_summary_fields(self):
        summary = parse_summary({
            "overallSummary": "Good job.",
            "actionableTips": ["One", " ", "Two"],
            "encouragement": "Keep going",
        })

        assert summary.overall_summary == "Good job."
        assert summary.actionable_tips == ("One", "Two")
        assert summary.badges_earned == ()

    def test_overall_summary_is_required(self):
        with pytest.raises(OracleResponseError):
            parse_summary({"actionableTips": []})
        with pytest.raises(OracleResponseError):
            parse_summary({"overallSummary": None})

    def test_null_optional_summary_fields_get_defaults(self):
        summary = parse_summary({"overallSummary": "Solid.", "encouragement": None, "actionableTips": [None]})

        assert summary.encouragement == ""
        assert summary.actionable_tips == ()


class TestQuestions:

    def test_question_list_from_object(self):
        raw = '{"questions": ["A?", "B?", "C?"]}'
        assert parse_question_list(raw, 2) == ["A?", "B?"]

    def test_question_list_from_array(self):
        assert parse_question_list(["A?", "B?"], 2) == ["A?", "B?"]

    def test_short_question_list_is_rejected(self):
        with pytest.raises(OracleResponseError):
            parse_question_list({"questions": ["A?"]}, 3)

    @pytest.mark.parametrize("raw,expected", [
        ('"Why this role?"', "Why this role?"),
        ("Question: Why this role?", "Why this role?"),
        ("  Q: Why?  ", "Why?"),
    ])
    def test_clean_question(self, raw, expected):
        assert clean_question(raw) == expected

    def test_empty_question_is_rejected(self):
        with pytest.raises(OracleResponseError):
            clean_question('  ""  ')


class TestSessionState:

    def test_advance_bumps_generation(self):
        state = SessionState()
        first = state.advance(Phase.GENERATING_QUESTION)
        second = state.advance(Phase.ASKING)

        assert (first, second) == (1, 2)
        assert state.phase == Phase.ASKING

    def test_terminal_phases(self):
        state = SessionState()
        assert not state.is_terminal
        state.advance(Phase.ERROR)
        assert state.is_terminal

    def test_current_question(self):
        state = SessionState()
        assert state.current_question is None
        state.questions.extend(["One?", "Two?"])
        assert state.current_question == "Two?"
