"""
Event-driven architecture for the interview engine.
"""
import logging
from abc import ABC
from collections import Counter, defaultdict
from typing import Dict, Any, List, Callable, Optional
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of interview events."""
    INTERVIEW_STARTED = "interview_started"
    PHASE_CHANGED = "phase_changed"
    QUESTION_ASKED = "question_asked"
    TRANSCRIPT_UPDATED = "transcript_updated"
    TIMER_TICK = "timer_tick"
    ANSWER_SCORED = "answer_scored"
    ERROR_OCCURRED = "error_occurred"
    INTERVIEW_COMPLETED = "interview_completed"
    SESSION_SAVED = "session_saved"


@dataclass
class InterviewEvent(ABC):
    """Base class for all interview events."""
    event_type: EventType
    session_id: str
    timestamp: float
    data: Dict[str, Any]


@dataclass
class InterviewStartedEvent(InterviewEvent):
    """Event fired when the session starts."""
    def __init__(self, session_id: str, timestamp: float, label: str, total_questions: int):
        super().__init__(
            event_type=EventType.INTERVIEW_STARTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"label": label, "total_questions": total_questions}
        )


@dataclass
class PhaseChangedEvent(InterviewEvent):
    """Event fired on every state machine transition."""
    def __init__(self, session_id: str, timestamp: float, previous: str, phase: str):
        super().__init__(
            event_type=EventType.PHASE_CHANGED,
            session_id=session_id,
            timestamp=timestamp,
            data={"previous": previous, "phase": phase}
        )


@dataclass
class QuestionAskedEvent(InterviewEvent):
    """Event fired when a new question is ready to be spoken."""
    def __init__(self, session_id: str, timestamp: float, ordinal: int, total: int, question: str):
        super().__init__(
            event_type=EventType.QUESTION_ASKED,
            session_id=session_id,
            timestamp=timestamp,
            data={"ordinal": ordinal, "total": total, "question": question}
        )


@dataclass
class TranscriptUpdatedEvent(InterviewEvent):
    """Event fired when the live transcript changes."""
    def __init__(self, session_id: str, timestamp: float, transcript: str):
        super().__init__(
            event_type=EventType.TRANSCRIPT_UPDATED,
            session_id=session_id,
            timestamp=timestamp,
            data={"transcript": transcript}
        )


@dataclass
class TimerTickEvent(InterviewEvent):
    """Event fired once per second while an answer is captured."""
    def __init__(self, session_id: str, timestamp: float, elapsed: int):
        super().__init__(
            event_type=EventType.TIMER_TICK,
            session_id=session_id,
            timestamp=timestamp,
            data={"elapsed": elapsed}
        )


@dataclass
class AnswerScoredEvent(InterviewEvent):
    """Event fired when a transcript entry is appended."""
    def __init__(self, session_id: str, timestamp: float, ordinal: int, score: int,
                 duration: int, alexis_response: str):
        super().__init__(
            event_type=EventType.ANSWER_SCORED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "ordinal": ordinal,
                "score": score,
                "duration": duration,
                "alexis_response": alexis_response
            }
        )


@dataclass
class ErrorOccurredEvent(InterviewEvent):
    """Event fired when a user-visible error is raised or cleared."""
    def __init__(self, session_id: str, timestamp: float, error_message: Optional[str],
                 component: str, fatal: bool = False):
        super().__init__(
            event_type=EventType.ERROR_OCCURRED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "error_message": error_message,
                "component": component,
                "fatal": fatal
            }
        )


@dataclass
class InterviewCompletedEvent(InterviewEvent):
    """Event fired when the final report is ready."""
    def __init__(self, session_id: str, timestamp: float, answered: int,
                 average_score: int, duration_minutes: int, badges: List[str]):
        super().__init__(
            event_type=EventType.INTERVIEW_COMPLETED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "answered": answered,
                "average_score": average_score,
                "duration_minutes": duration_minutes,
                "badges": badges
            }
        )


@dataclass
class SessionSavedEvent(InterviewEvent):
    """Event fired after the persistence collaborator accepted the session."""
    def __init__(self, session_id: str, timestamp: float, record_id: str):
        super().__init__(
            event_type=EventType.SESSION_SAVED,
            session_id=session_id,
            timestamp=timestamp,
            data={"record_id": record_id}
        )




EventHandler = Callable[[InterviewEvent], None]

# key under which catch-all handlers are stored
_ALL = None


class InterviewEventBus:
    """
    Synchronous fan-out of engine events.

    Handlers run in subscription order, typed handlers before catch-all
    ones. A failing handler is logged and skipped.
    """

    def __init__(self):
        self._subscribers: Dict[Optional[EventType], List[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Register a handler for one event type.

        Args:
            event_type: Event type to deliver
            handler: Called with the event on the emitting thread
        """
        self._subscribers[event_type].append(handler)
        logger.debug("Handler %r subscribed to %s", handler, event_type.value)

    def subscribe_all(self, handler: EventHandler) -> None:
        self._subscribers[_ALL].append(handler)
        logger.debug("Handler %r subscribed to all events", handler)

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        handlers = self._subscribers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
        else:
            logger.warning("No such handler on %s", event_type.value)

    def emit(self, event: InterviewEvent) -> None:
        targets = self._subscribers.get(event.event_type, []) + self._subscribers.get(_ALL, [])
        for handler in targets:
            try:
                handler(event)
            except Exception as e:
                logger.error("Handler %r failed on %s: %s", handler, event.event_type.value, e)


class EventLogger:
    """Writes every event to the log; per-second noise stays at DEBUG."""

    QUIET = (EventType.TIMER_TICK, EventType.TRANSCRIPT_UPDATED)

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.log_level = log_level

    def handle_event(self, event: InterviewEvent) -> None:
        level = logging.DEBUG if event.event_type in self.QUIET else self.log_level
        self.logger.log(level, "Event: %s | Session: %s | Data: %s",
                        event.event_type.value, event.session_id, event.data)


class InterviewMetrics:
    """Counters over the events of one or more sessions."""

    COUNTED = {
        EventType.INTERVIEW_STARTED: "interviews_started",
        EventType.INTERVIEW_COMPLETED: "interviews_completed",
        EventType.QUESTION_ASKED: "questions_asked",
        EventType.ANSWER_SCORED: "answers_scored",
        EventType.PHASE_CHANGED: "phase_changes",
        EventType.SESSION_SAVED: "sessions_saved",
    }
    NAMES = tuple(COUNTED.values()) + ("re_asks", "errors_occurred")

    def __init__(self):
        self._counts: Counter = Counter()

    def handle_event(self, event: InterviewEvent) -> None:
        name = self.COUNTED.get(event.event_type)
        if name:
            self._counts[name] += 1
        if event.event_type == EventType.PHASE_CHANGED and event.data.get("phase") == "re_asking":
            self._counts["re_asks"] += 1
        # a None message only clears the status line
        elif event.event_type == EventType.ERROR_OCCURRED and event.data.get("error_message"):
            self._counts["errors_occurred"] += 1

    def get_metrics(self) -> Dict[str, int]:
        return {name: self._counts[name] for name in self.NAMES}
