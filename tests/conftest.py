"""Shared fixtures and helpers for the interview engine tests."""
import pytest

from interprep.interview.models import (
    Evaluation, GrammarCorrection, InterviewFeedback, TranscriptEntry,
)
from interprep.interview.testing import (
    create_mock_interview_setup, make_feedback, wait_for_capture,
)


@pytest.fixture
def make_setup():
    """Factory for mock interview setups; call it inside the running test loop."""
    return create_mock_interview_setup


def entry(score=75, duration=None, filler_words=0, question="Q?", answer="A.", notes=None):
    return TranscriptEntry(
        question=question,
        answer=answer,
        feedback=make_feedback(score=score, filler_words=filler_words),
        notes=notes,
        duration=duration,
    )


async def answer(setup, text="I led a migration that cut costs by 20%."):
    """Wait for capture, speak one final result and end the capture."""
    await wait_for_capture(setup["orchestrator"], setup["recognizer"])
    recognizer = setup["recognizer"]
    if text:
        recognizer.emit_result(text, is_final=True)
    recognizer.emit_end()


@pytest.fixture
def sample_feedback():
    return InterviewFeedback(
        score=82,
        response_quality=78,
        evaluation=Evaluation(clarity="Clear", relevance="On topic", structure="STAR", confidence="Steady"),
        grammar_correction=GrammarCorrection(has_errors=True, explanation="Two 'um's."),
        professional_rewrite="I led the migration.",
        tips=("Quantify impact.",),
        alexis_response="Great example!",
        word_count=64,
        filler_words=2,
        has_example=True,
    )
