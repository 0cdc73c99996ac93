"""Tests for the interview event system."""
import logging

from interprep.interview.events import (
    EventLogger, EventType, ErrorOccurredEvent, InterviewEventBus, InterviewMetrics,
    PhaseChangedEvent, QuestionAskedEvent, TimerTickEvent,
)


def test_subscribers_receive_matching_events():
    bus = InterviewEventBus()
    asked, everything = [], []
    bus.subscribe(EventType.QUESTION_ASKED, asked.append)
    bus.subscribe_all(everything.append)

    bus.emit(QuestionAskedEvent("s1", 0.0, 1, 5, "Why?"))
    bus.emit(TimerTickEvent("s1", 0.0, 3))

    assert [e.data["question"] for e in asked] == ["Why?"]
    assert [e.event_type for e in everything] == [EventType.QUESTION_ASKED, EventType.TIMER_TICK]


def test_failing_handler_does_not_stop_others():
    bus = InterviewEventBus()
    received = []

    def broken(event):
        raise RuntimeError("boom")

    bus.subscribe(EventType.TIMER_TICK, broken)
    bus.subscribe(EventType.TIMER_TICK, received.append)
    bus.emit(TimerTickEvent("s1", 0.0, 1))

    assert len(received) == 1


def test_unsubscribe():
    bus = InterviewEventBus()
    received = []
    bus.subscribe(EventType.TIMER_TICK, received.append)
    bus.unsubscribe(EventType.TIMER_TICK, received.append)
    bus.unsubscribe(EventType.TIMER_TICK, received.append)

    bus.emit(TimerTickEvent("s1", 0.0, 1))

    assert received == []


def test_metrics_count_re_asks_and_real_errors():
    metrics = InterviewMetrics()
    metrics.handle_event(PhaseChangedEvent("s1", 0.0, "listening", "re_asking"))
    metrics.handle_event(PhaseChangedEvent("s1", 0.0, "re_asking", "listening"))
    metrics.handle_event(ErrorOccurredEvent("s1", 0.0, "Network issue", "speech_input"))
    metrics.handle_event(ErrorOccurredEvent("s1", 0.0, None, "speech_input"))

    snapshot = metrics.get_metrics()
    assert snapshot["phase_changes"] == 2
    assert snapshot["re_asks"] == 1
    assert snapshot["errors_occurred"] == 1
    assert snapshot["questions_asked"] == 0


def test_event_logger_keeps_ticks_at_debug(caplog):
    event_logger = EventLogger()
    with caplog.at_level(logging.DEBUG, logger="event_logger"):
        event_logger.handle_event(TimerTickEvent("s1", 0.0, 2))
        event_logger.handle_event(QuestionAskedEvent("s1", 0.0, 1, 5, "Why?"))

    levels = {r.getMessage().split(" |")[0]: r.levelno for r in caplog.records}
    assert levels["Event: timer_tick"] == logging.DEBUG
    assert levels["Event: question_asked"] == logging.INFO
