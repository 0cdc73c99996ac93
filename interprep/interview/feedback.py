"""
Feedback and summary aggregation.

Turns raw answers into scored feedback and, at session end, reduces the
transcript into a summary, badge awards and the final InterviewSession.
"""
import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import FrozenSet, Optional, Sequence

from .errors import SummaryGenerationError
from .models import (
    Badge, InterviewConfig, InterviewFeedback, InterviewSession,
    InterviewSummary, TranscriptEntry, fallback_feedback,
)
from .oracles import InterviewOracle

logger = logging.getLogger("feedback")

NO_ANSWERS_ANALYSIS = "Analysis requires completed answers."

# Badge thresholds, in seconds and filler-word counts
TIME_MANAGER_MIN_SECONDS = 20
TIME_MANAGER_MAX_SECONDS = 60
GOOD_COMMUNICATOR_MIN_SECONDS = 30
GOOD_COMMUNICATOR_MAX_FILLERS = 5


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


class FeedbackAggregator:
    """Scores answers and builds the end-of-session report."""

    def __init__(self, oracle: InterviewOracle):
        self.oracle = oracle

    async def score_answer(self, question: str, answer: str) -> InterviewFeedback:
        """
        Score one answer. Never raises: oracle failures yield fallback feedback
        so the session can always continue.
        """
        try:
            return await asyncio.to_thread(self.oracle.score_answer, question, answer)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Scoring oracle failed, using fallback feedback: %s", e)
            return fallback_feedback(answer)

    async def summarize(self, feedback: Sequence[InterviewFeedback]) -> InterviewSummary:
        """
        Summarize all feedback of a session.

        Raises:
            SummaryGenerationError: If the summarization oracle fails
        """
        try:
            return await asyncio.to_thread(self.oracle.summarize, list(feedback))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Summarization oracle failed: %s", e)
            raise SummaryGenerationError(detail=str(e)) from e

    @staticmethod
    def evaluate_badges(transcript: Sequence[TranscriptEntry]) -> FrozenSet[Badge]:
        """Any qualifying entry awards the badge for the whole session."""
        badges = set()
        for entry in transcript:
            if entry.duration is None:
                continue
            if TIME_MANAGER_MIN_SECONDS <= entry.duration <= TIME_MANAGER_MAX_SECONDS:
                badges.add(Badge.TIME_MANAGER)
            if (entry.duration > GOOD_COMMUNICATOR_MIN_SECONDS
                    and entry.feedback.filler_words <= GOOD_COMMUNICATOR_MAX_FILLERS):
                badges.add(Badge.GOOD_COMMUNICATOR)
        return frozenset(badges)

    @staticmethod
    def no_answer_summary() -> InterviewSummary:
        """Canned summary for a session that ended before any answer."""
        return InterviewSummary(
            overall_summary=(
                "You did not answer any questions during this session, so there is "
                "no performance to review yet."
            ),
            actionable_tips=(
                "Try answering at least one question in your next practice session.",
                "Ensure your microphone is set up and working correctly.",
            ),
            encouragement="Every attempt is a step forward. Keep practicing!",
            simulated_facial_expression_analysis=NO_ANSWERS_ANALYSIS,
            simulated_body_language_analysis=NO_ANSWERS_ANALYSIS,
            simulated_audio_analysis=NO_ANSWERS_ANALYSIS,
        )

    async def build_summary(self, transcript: Sequence[TranscriptEntry]) -> InterviewSummary:
        """Summary plus badges; skips the oracle for an empty transcript."""
        if not transcript:
            logger.info("No answers recorded, using canned summary")
            return self.no_answer_summary()

        badges = self.evaluate_badges(transcript)
        summary = await self.summarize([entry.feedback for entry in transcript])
        logger.info("Summary ready, badges: %s", [b.value for b in badges] or "none")
        return summary.with_badges(badges)

    @staticmethod
    def build_session(config: InterviewConfig,
                      transcript: Sequence[TranscriptEntry],
                      summary: InterviewSummary,
                      now: Optional[datetime] = None) -> InterviewSession:
        """Assemble the immutable session aggregate."""
        scores = [entry.feedback.score for entry in transcript]
        average = round_half_up(sum(scores) / len(scores)) if scores else 0
        seconds = sum(entry.duration or 0 for entry in transcript)

        return InterviewSession(
            date=(now or datetime.now(timezone.utc)).isoformat(),
            type=config.label,
            duration=round_half_up(seconds / 60),
            average_score=max(0, min(100, average)),
            config=config,
            transcript=tuple(transcript),
            summary=summary,
        )
