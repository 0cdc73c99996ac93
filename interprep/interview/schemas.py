"""
Session state and structured schemas for oracle responses.
"""
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator

from .errors import OracleResponseError
from .models import (
    Evaluation, GrammarCorrection, InterviewFeedback, InterviewSession,
    InterviewSummary, TranscriptEntry,
)

logger = logging.getLogger("schemas")


class Phase(str, Enum):
    """Phases of the session state machine."""
    IDLE = "idle"
    GENERATING_QUESTION = "generating_question"
    ASKING = "asking"
    LISTENING = "listening"
    RE_ASKING = "re_asking"
    ANALYZING = "analyzing"
    TRANSITIONING = "transitioning"
    GENERATING_SUMMARY = "generating_summary"
    FINISHED = "finished"
    ERROR = "error"


TERMINAL_PHASES = (Phase.FINISHED, Phase.ERROR)


@dataclass
class SessionState:
    """Mutable state owned by a single running interview."""
    phase: Phase = Phase.IDLE
    generation: int = 0
    questions: List[str] = field(default_factory=list)
    transcript: List[TranscriptEntry] = field(default_factory=list)
    error: Optional[str] = None
    notes: str = ""
    live_transcript: str = ""
    elapsed: int = 0
    summary_started: bool = False
    session: Optional[InterviewSession] = None

    def advance(self, phase: Phase) -> int:
        """Move to a new phase and return its generation number."""
        self.phase = phase
        self.generation += 1
        return self.generation

    @property
    def current_question(self) -> Optional[str]:
        return self.questions[-1] if self.questions else None

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES


# =============================================================================
# Oracle payloads
# =============================================================================

def _to_percent(value: Any) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if number != number:  # NaN
        return 0
    return int(round(max(0.0, min(100.0, number))))


def _to_count(value: Any) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if number != number:
        return 0
    return max(0, int(round(number)))


def _to_text_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (str, int, float)):
        value = [value]
    elif not isinstance(value, (list, tuple)):
        return []
    return [str(item).strip() for item in value
            if item is not None and not isinstance(item, (dict, list)) and str(item).strip()]


def _to_text(value: Any, default: str) -> Any:
    """Null becomes the field default; scalars and lists of scalars become text."""
    if value is None or isinstance(value, dict):
        return default
    if isinstance(value, (list, tuple)):
        return " ".join(_to_text_list(value)) or default
    if isinstance(value, str):
        return value
    return str(value)


def _to_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "y", "1")
    if isinstance(value, (bool, int, float)):
        return bool(value)
    return False


class OraclePayload(BaseModel):
    """Base for oracle output models: optional text fields never fail validation."""

    @field_validator("*", mode="before")
    @classmethod
    def coerce_text_fields(cls, value, info: ValidationInfo):
        field = cls.model_fields[info.field_name]
        if field.annotation is str:
            if value is None and field.is_required():
                return value
            return _to_text(value, field.default if not field.is_required() else "")
        if field.annotation is bool:
            return _to_flag(value)
        if isinstance(field.annotation, type) and issubclass(field.annotation, BaseModel):
            return value if isinstance(value, dict) else {}
        return value


class EvaluationPayload(OraclePayload):
    clarity: str = "N/A"
    relevance: str = "N/A"
    structure: str = "N/A"
    confidence: str = "N/A"


class GrammarPayload(OraclePayload):
    hasErrors: bool = False
    explanation: str = ""


class FeedbackPayload(OraclePayload):
    """Scoring oracle output; numbers are coerced into their stated ranges."""
    score: int = Field(0, ge=0, le=100)
    responseQuality: int = Field(0, ge=0, le=100)
    evaluation: EvaluationPayload = Field(default_factory=EvaluationPayload)
    grammarCorrection: GrammarPayload = Field(default_factory=GrammarPayload)
    professionalRewrite: str = ""
    tips: List[str] = Field(default_factory=list)
    alexisResponse: str = ""
    wordCount: int = Field(0, ge=0)
    fillerWords: int = Field(0, ge=0)
    hasExample: bool = False

    @field_validator("score", "responseQuality", mode="before")
    @classmethod
    def clamp_percent(cls, value):
        return _to_percent(value)

    @field_validator("wordCount", "fillerWords", mode="before")
    @classmethod
    def clamp_count(cls, value):
        return _to_count(value)

    @field_validator("tips", mode="before")
    @classmethod
    def clean_tips(cls, value):
        return _to_text_list(value)

    def to_feedback(self) -> InterviewFeedback:
        return InterviewFeedback(
            score=self.score,
            response_quality=self.responseQuality,
            evaluation=Evaluation(**self.evaluation.model_dump()),
            grammar_correction=GrammarCorrection(
                has_errors=self.grammarCorrection.hasErrors,
                explanation=self.grammarCorrection.explanation,
            ),
            professional_rewrite=self.professionalRewrite,
            tips=tuple(self.tips),
            alexis_response=self.alexisResponse,
            word_count=self.wordCount,
            filler_words=self.fillerWords,
            has_example=self.hasExample,
        )


class SummaryPayload(OraclePayload):
    """Summarization oracle output (badges are computed locally)."""
    overallSummary: str
    actionableTips: List[str] = Field(default_factory=list)
    encouragement: str = ""
    simulatedFacialExpressionAnalysis: str = ""
    simulatedBodyLanguageAnalysis: str = ""
    simulatedAudioAnalysis: str = ""

    @field_validator("actionableTips", mode="before")
    @classmethod
    def clean_tips(cls, value):
        return _to_text_list(value)

    def to_summary(self) -> InterviewSummary:
        return InterviewSummary(
            overall_summary=self.overallSummary,
            actionable_tips=tuple(self.actionableTips),
            encouragement=self.encouragement,
            simulated_facial_expression_analysis=self.simulatedFacialExpressionAnalysis,
            simulated_body_language_analysis=self.simulatedBodyLanguageAnalysis,
            simulated_audio_analysis=self.simulatedAudioAnalysis,
        )


def extract_json(raw_response: str) -> Any:
    """
    Parse JSON from an LLM response, tolerating prose around it.

    Raises:
        OracleResponseError: If no valid JSON can be found
    """
    text = (raw_response or "").strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    for opener, closer in (("{", "}"), ("[", "]")):
        start = text.find(opener)
        end = text.rfind(closer)
        if start != -1 and end > start:
            try:
                return json.loads(text[start:end + 1])
            except json.JSONDecodeError:
                continue

    raise OracleResponseError(detail=f"No JSON found in LLM response: {text[:200]}")


def parse_feedback(raw: Any) -> InterviewFeedback:
    """Validate scoring oracle output (raw JSON text or an already-parsed dict)."""
    data = extract_json(raw) if isinstance(raw, str) else raw
    if not isinstance(data, dict):
        raise OracleResponseError(detail=f"Feedback must be a JSON object, got {type(data).__name__}")
    try:
        return FeedbackPayload.model_validate(data).to_feedback()
    except ValidationError as e:
        raise OracleResponseError(detail=f"Invalid feedback structure: {e}")


def parse_summary(raw: Any) -> InterviewSummary:
    """Validate summarization oracle output."""
    data = extract_json(raw) if isinstance(raw, str) else raw
    if not isinstance(data, dict):
        raise OracleResponseError(detail=f"Summary must be a JSON object, got {type(data).__name__}")
    try:
        return SummaryPayload.model_validate(data).to_summary()
    except ValidationError as e:
        raise OracleResponseError(detail=f"Invalid summary structure: {e}")


def parse_question_list(raw: Any, expected: int) -> List[str]:
    """Validate a generated list of assessment questions."""
    data = extract_json(raw) if isinstance(raw, str) else raw
    if isinstance(data, dict):
        data = data.get("questions")
    questions = _to_text_list(data)
    if len(questions) < expected:
        raise OracleResponseError(detail=f"Expected {expected} questions, got {len(questions)}")
    return questions[:expected]


def clean_question(raw: str) -> str:
    """Strip quotes and labels the model sometimes wraps around a single question."""
    text = (raw or "").strip()
    for prefix in ("Question:", "Q:"):
        if text.lower().startswith(prefix.lower()):
            text = text[len(prefix):]
    text = text.strip().strip('"').strip()
    if not text:
        raise OracleResponseError(detail="Question oracle returned an empty question")
    return text


def feedback_digest(feedback: InterviewFeedback) -> Dict[str, Any]:
    """The subset of feedback the summarization prompt needs."""
    return {
        "score": feedback.score,
        "tips": list(feedback.tips),
        "evaluation": {
            "clarity": feedback.evaluation.clarity,
            "relevance": feedback.evaluation.relevance,
            "structure": feedback.evaluation.structure,
            "confidence": feedback.evaluation.confidence,
        },
        "responseQuality": feedback.response_quality,
    }
