"""
Oracle contracts and the Gemini implementation.

Oracles are synchronous, single request/response calls. Async callers run
them with asyncio.to_thread so the event loop keeps serving speech events.
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Sequence

from .models import (
    CandidateContext, Difficulty, InterviewConfig, InterviewFeedback,
    InterviewSession, InterviewSummary, InterviewType, TranscriptEntry,
)
from .prompts import FEEDBACK_SCHEMA, QUESTION_LIST_SCHEMA, SUMMARY_SCHEMA, InterviewPrompts
from .schemas import clean_question, feedback_digest, parse_feedback, parse_question_list, parse_summary
from ..infrastructure.llm import VertexRestClient

logger = logging.getLogger("oracles")


class InterviewOracle(ABC):
    """Question, scoring and summarization oracles behind one interface."""

    @abstractmethod
    def next_question(self,
                      config: InterviewConfig,
                      transcript: Sequence[TranscriptEntry],
                      candidate: CandidateContext,
                      ordinal: int,
                      total: int) -> str:
        """Return the text of question `ordinal` (1-based)."""

    @abstractmethod
    def score_answer(self, question: str, answer: str) -> InterviewFeedback:
        """Return validated feedback for one answer."""

    @abstractmethod
    def summarize(self, feedback: Sequence[InterviewFeedback]) -> InterviewSummary:
        """Return a session summary without badges."""

    @abstractmethod
    def answer_follow_up(self, session: InterviewSession, question: str) -> str:
        """Answer a candidate's question about a finished session."""

    @abstractmethod
    def generate_assessment_questions(self,
                                      job_role: str,
                                      interview_type: InterviewType,
                                      difficulty: Difficulty,
                                      count: int) -> List[str]:
        """Return exactly `count` assessment questions."""


class GeminiOracle(InterviewOracle):
    """All oracles over a Vertex AI Gemini model."""

    def __init__(self, llm_client: VertexRestClient):
        self.llm_client = llm_client

    def next_question(self, config, transcript, candidate, ordinal, total):
        prompt = InterviewPrompts.next_question(config, transcript, candidate, ordinal, total)
        raw = self.llm_client.generate_text(prompt, temperature=0.7)
        question = clean_question(raw)
        logger.info("Generated question %d/%d: %s", ordinal, total, question)
        return question

    def score_answer(self, question, answer):
        prompt = InterviewPrompts.score_answer(question, answer)
        raw = self.llm_client.generate_json(prompt, response_schema=FEEDBACK_SCHEMA)
        feedback = parse_feedback(raw)
        logger.info("Scored answer: score=%d quality=%d", feedback.score, feedback.response_quality)
        return feedback

    def summarize(self, feedback):
        digest = [feedback_digest(f) for f in feedback]
        raw = self.llm_client.generate_json(InterviewPrompts.summarize(digest), response_schema=SUMMARY_SCHEMA)
        return parse_summary(raw)

    def answer_follow_up(self, session, question):
        reply = self.llm_client.generate_text(InterviewPrompts.follow_up(session, question), temperature=0.7)
        if not reply:
            raise ValueError("Empty follow-up reply from LLM")
        return reply

    def generate_assessment_questions(self, job_role, interview_type, difficulty, count):
        prompt = InterviewPrompts.assessment_questions(
            job_role, InterviewType(interview_type).value, Difficulty(difficulty).value, count,
        )
        raw = self.llm_client.generate_json(prompt, response_schema=QUESTION_LIST_SCHEMA)
        return parse_question_list(raw, count)
