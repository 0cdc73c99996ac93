"""Interview engine components.

This module contains the business logic for mock interviews: the session
state machine, answer scoring, session summaries and the practice and
assessment flows. Heavier modules (orchestrator, flows, oracles, testing)
are imported from their own submodules.
"""

# Data models
from .models import (
    InterviewType, Difficulty, Persona, Badge,
    InterviewConfig, Evaluation, GrammarCorrection, InterviewFeedback,
    TranscriptEntry, InterviewSummary, InterviewSession,
    CandidateContext, CandidateIdentity, AssessmentConfig, Assessment, AssessmentResult,
    NO_ANSWER, NO_SPEECH_ANSWER, FALLBACK_RESPONSE, fallback_feedback
)

# Errors
from .errors import (
    InterviewError, QuestionGenerationError, SummaryGenerationError,
    MediaPermissionError, MediaUnavailableError, UnsupportedPlatformError,
    OracleResponseError
)

# Structured schemas and state management
from .schemas import (
    Phase, SessionState, TERMINAL_PHASES,
    parse_feedback, parse_summary, parse_question_list
)

# Event system
from .events import (
    InterviewEventBus, EventLogger, InterviewMetrics,
    EventType, InterviewEvent, InterviewStartedEvent, PhaseChangedEvent,
    QuestionAskedEvent, TranscriptUpdatedEvent, TimerTickEvent,
    AnswerScoredEvent, ErrorOccurredEvent, InterviewCompletedEvent,
    SessionSavedEvent
)

__all__ = [
    # Data models
    "InterviewType", "Difficulty", "Persona", "Badge",
    "InterviewConfig", "Evaluation", "GrammarCorrection", "InterviewFeedback",
    "TranscriptEntry", "InterviewSummary", "InterviewSession",
    "CandidateContext", "CandidateIdentity", "AssessmentConfig", "Assessment", "AssessmentResult",
    "NO_ANSWER", "NO_SPEECH_ANSWER", "FALLBACK_RESPONSE", "fallback_feedback",

    # Errors
    "InterviewError", "QuestionGenerationError", "SummaryGenerationError",
    "MediaPermissionError", "MediaUnavailableError", "UnsupportedPlatformError",
    "OracleResponseError",

    # Schemas and state
    "Phase", "SessionState", "TERMINAL_PHASES",
    "parse_feedback", "parse_summary", "parse_question_list",

    # Events
    "InterviewEventBus", "EventLogger", "InterviewMetrics",
    "EventType", "InterviewEvent", "InterviewStartedEvent", "PhaseChangedEvent",
    "QuestionAskedEvent", "TranscriptUpdatedEvent", "TimerTickEvent",
    "AnswerScoredEvent", "ErrorOccurredEvent", "InterviewCompletedEvent",
    "SessionSavedEvent",
]
