"""
Interview session state machine.
"""
import asyncio
import logging
import time
import uuid
from typing import Callable, List, Optional, Tuple

from .errors import InterviewError, QuestionGenerationError, SummaryGenerationError
from .events import (
    InterviewEventBus, EventLogger, InterviewMetrics,
    InterviewStartedEvent, PhaseChangedEvent, QuestionAskedEvent,
    TranscriptUpdatedEvent, TimerTickEvent, AnswerScoredEvent,
    ErrorOccurredEvent, InterviewCompletedEvent, SessionSavedEvent,
)
from .feedback import FeedbackAggregator
from .models import NO_ANSWER, InterviewConfig, InterviewSession, TranscriptEntry
from .schemas import Phase, SessionState
from .services import QuestionSource, SpeechInputController, SpeechOutputController
from ..config import RE_ASK_PHRASE, SessionTimings
from ..infrastructure.media import MediaDevices, NullMediaDevices
from ..utils import PhaseTimers

logger = logging.getLogger("orchestrator")

PersistSession = Callable[[InterviewSession], str]


class InterviewOrchestrator:
    """
    Runs one interview session.

    generating_question -> asking -> listening -> (re_asking -> listening)*
    -> analyzing -> transitioning -> ... -> generating_summary -> finished,
    with error reachable from most phases.

    Every transition goes through _enter(), which bumps the generation and
    cancels the previous phase's timers, tasks, speech and capture. Callbacks
    scheduled by a phase carry its generation and are dropped once stale.
    """

    def __init__(self,
                 config: InterviewConfig,
                 questions: QuestionSource,
                 speech_output: SpeechOutputController,
                 speech_input: SpeechInputController,
                 aggregator: FeedbackAggregator,
                 media: Optional[MediaDevices] = None,
                 persist: Optional[PersistSession] = None,
                 timings: Optional[SessionTimings] = None,
                 event_bus: Optional[InterviewEventBus] = None):
        self.config = config
        self.question_source = questions
        self.speech_output = speech_output
        self.speech_input = speech_input
        self.aggregator = aggregator
        self.media = media or NullMediaDevices()
        self.persist = persist
        self.timings = timings or SessionTimings()

        self.session_id = uuid.uuid4().hex
        self.state = SessionState()
        self.record_id: Optional[str] = None
        self._timers = PhaseTimers("orchestrator")
        self._finished = asyncio.Event()
        self._pending_answer: Optional[Tuple[str, int]] = None

        # Initialize event system
        self.event_bus = event_bus or InterviewEventBus()
        self.event_logger = EventLogger()
        self.metrics = InterviewMetrics()
        self.event_bus.subscribe_all(self.event_logger.handle_event)
        self.event_bus.subscribe_all(self.metrics.handle_event)

        speech_input.is_listening = lambda: self.state.phase == Phase.LISTENING
        speech_input.on_answer = self._on_answer
        speech_input.on_retry_question = self._on_retry_question
        speech_input.on_fatal = self._fail
        speech_input.on_status = self._on_status
        speech_input.on_transcript = self._on_transcript
        speech_input.on_tick = self._on_tick

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def error(self) -> Optional[str]:
        return self.state.error

    @property
    def questions(self) -> List[str]:
        return list(self.state.questions)

    @property
    def transcript(self) -> List[TranscriptEntry]:
        return list(self.state.transcript)

    @property
    def elapsed(self) -> int:
        return self.state.elapsed

    @property
    def session(self) -> Optional[InterviewSession]:
        return self.state.session

    @property
    def total_questions(self) -> int:
        return self.question_source.total

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Check media access and ask the first question."""
        if self.state.phase != Phase.IDLE:
            raise RuntimeError("Interview already started")

        self._emit(InterviewStartedEvent(self.session_id, time.time(), self.config.label, self.total_questions))
        self.speech_output.load_voices()

        try:
            await self.media.request_access()
        except InterviewError as e:
            logger.error("Media access failed: %s", e)
            self._fail(e.user_message)
            return

        if self.state.phase == Phase.IDLE:
            self._enter(Phase.GENERATING_QUESTION)

    async def end_interview(self) -> None:
        """
        Stop speech and capture immediately and build the report from the
        answers so far. Repeated calls are no-ops.
        """
        if self.state.is_terminal or self.state.summary_started:
            logger.info("end_interview ignored in phase %s", self.state.phase.value)
            return
        logger.info("Interview ended early after %d answers", len(self.state.transcript))
        self._begin_summary()

    async def wait_finished(self) -> Optional[InterviewSession]:
        """Wait for finished or error; returns the session when one was built."""
        await self._finished.wait()
        return self.state.session

    def set_notes(self, text: str) -> None:
        """Candidate notes, attached to the answer currently being given."""
        self.state.notes = text

    def finish_answer(self) -> None:
        """Candidate is done speaking: stop capture now instead of waiting for silence."""
        if self.state.phase != Phase.LISTENING:
            logger.warning("finish_answer ignored in phase %s", self.state.phase.value)
            return
        self.speech_input.stop()

    def retry_capture(self) -> None:
        """Restart capture by hand once automatic retries have given up."""
        if self.state.phase != Phase.LISTENING:
            logger.warning("retry_capture ignored in phase %s", self.state.phase.value)
            return
        self.speech_input.retry_capture()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _enter(self, phase: Phase) -> int:
        previous = self.state.phase
        generation = self.state.advance(phase)

        self._timers.cancel_all()
        self.speech_output.cancel()
        self.speech_input.cancel()

        logger.info("Phase %s -> %s (generation %d)", previous.value, phase.value, generation)
        self._emit(PhaseChangedEvent(self.session_id, time.time(), previous.value, phase.value))

        if phase == Phase.GENERATING_QUESTION:
            self._timers.spawn(self._generate_question(generation))
        elif phase == Phase.ASKING:
            self.speech_output.speak(
                self.state.current_question,
                on_complete=self._guard(generation, lambda: self._enter(Phase.LISTENING)),
            )
        elif phase == Phase.LISTENING:
            self.speech_input.listen()
        elif phase == Phase.RE_ASKING:
            self.speech_output.speak(
                RE_ASK_PHRASE,
                on_complete=self._guard(generation, lambda: self._timers.call_later(
                    self.timings.re_ask_pause,
                    self._guard(generation, lambda: self._enter(Phase.LISTENING)),
                )),
            )
        elif phase == Phase.ANALYZING:
            answer, duration = self._pending_answer
            self._pending_answer = None
            self._timers.spawn(self._analyze(generation, self.state.current_question, answer, duration))
        elif phase == Phase.TRANSITIONING:
            self._timers.call_later(self.timings.transition_delay, self._guard(generation, self._advance_question))
        elif phase == Phase.GENERATING_SUMMARY:
            self._timers.spawn(self._summarize(generation))
        elif phase in (Phase.FINISHED, Phase.ERROR):
            self.speech_output.close()
            self._timers.spawn(self.media.release())
            self._finished.set()

        return generation

    def _guard(self, generation: int, callback: Callable[..., None]) -> Callable[..., None]:
        def _guarded(*args):
            if generation != self.state.generation:
                logger.debug("Dropping stale callback from generation %d", generation)
                return
            callback(*args)
        return _guarded

    def _is_current(self, generation: int) -> bool:
        return generation == self.state.generation

    def _begin_summary(self) -> None:
        if self.state.summary_started:
            return
        self.state.summary_started = True
        self._enter(Phase.GENERATING_SUMMARY)

    def _advance_question(self) -> None:
        self.state.notes = ""
        self.state.live_transcript = ""
        self.state.elapsed = 0
        if len(self.state.questions) < self.total_questions:
            self._enter(Phase.GENERATING_QUESTION)
        else:
            self._begin_summary()

    def _fail(self, message: str) -> None:
        if self.state.is_terminal:
            return
        self.state.error = message
        self._emit(ErrorOccurredEvent(self.session_id, time.time(), message, "session", fatal=True))
        self._enter(Phase.ERROR)

    # ------------------------------------------------------------------
    # Phase work
    # ------------------------------------------------------------------

    async def _generate_question(self, generation: int) -> None:
        ordinal = len(self.state.questions) + 1
        try:
            question = await self.question_source.next_question(self.config, list(self.state.transcript), ordinal)
        except QuestionGenerationError as e:
            if self._is_current(generation):
                self._fail(e.user_message)
            return

        if not self._is_current(generation):
            return
        self.state.questions.append(question)
        self.state.error = None
        self.speech_input.new_question()
        self._emit(QuestionAskedEvent(self.session_id, time.time(), ordinal, self.total_questions, question))
        self._enter(Phase.ASKING)

    async def _analyze(self, generation: int, question: str, answer: str, duration: int) -> None:
        feedback = await self.aggregator.score_answer(question, answer)
        if not self._is_current(generation):
            return

        if len(self.state.transcript) >= self.total_questions:
            logger.error("Transcript already holds %d entries, dropping extra answer", self.total_questions)
        else:
            entry = TranscriptEntry(
                question=question,
                answer=answer,
                feedback=feedback,
                notes=self.state.notes or None,
                duration=duration,
            )
            self.state.transcript.append(entry)
            self._emit(AnswerScoredEvent(self.session_id, time.time(), len(self.state.transcript),
                                         feedback.score, duration, feedback.alexis_response))
        self._enter(Phase.TRANSITIONING)

    async def _summarize(self, generation: int) -> None:
        transcript = list(self.state.transcript)
        try:
            summary = await self.aggregator.build_summary(transcript)
        except SummaryGenerationError as e:
            if self._is_current(generation):
                self._fail(e.user_message)
            return

        if not self._is_current(generation):
            return
        session = self.aggregator.build_session(self.config, transcript, summary)
        self.state.session = session

        if transcript and self.persist is not None:
            await self._persist(session)
        if not self._is_current(generation):
            return

        self._emit(InterviewCompletedEvent(
            self.session_id, time.time(), len(transcript), session.average_score,
            session.duration, [b.value for b in session.summary.badges_earned],
        ))
        self._enter(Phase.FINISHED)

    async def _persist(self, session: InterviewSession) -> None:
        """Failures are logged; the candidate still gets the report."""
        try:
            self.record_id = await asyncio.to_thread(self.persist, session)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Failed to save interview session, continuing with local report: %s", e)
            return
        self._emit(SessionSavedEvent(self.session_id, time.time(), self.record_id))

    # ------------------------------------------------------------------
    # Speech input callbacks
    # ------------------------------------------------------------------

    def _on_answer(self, answer: str, duration: int) -> None:
        if self.state.phase != Phase.LISTENING:
            return
        self._pending_answer = (answer.strip() or NO_ANSWER, duration)
        self._enter(Phase.ANALYZING)

    def _on_retry_question(self) -> None:
        if self.state.phase == Phase.LISTENING:
            self._enter(Phase.RE_ASKING)

    def _on_status(self, message: Optional[str]) -> None:
        if message == self.state.error:
            return
        self.state.error = message
        self._emit(ErrorOccurredEvent(self.session_id, time.time(), message, "speech_input"))

    def _on_transcript(self, text: str) -> None:
        self.state.live_transcript = text
        self._emit(TranscriptUpdatedEvent(self.session_id, time.time(), text))

    def _on_tick(self, elapsed: int) -> None:
        self.state.elapsed = elapsed
        self._emit(TimerTickEvent(self.session_id, time.time(), elapsed))

    def _emit(self, event) -> None:
        self.event_bus.emit(event)
