"""
Service classes for the interview engine: speech output, speech input and
question sources.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence

from .errors import (
    MSG_NETWORK_FAILED, MSG_NETWORK_RETRYING, MSG_PERMISSION_DENIED,
    MSG_RECOGNITION_FAILED, QuestionGenerationError,
)
from .models import CandidateContext, InterviewConfig, NO_SPEECH_ANSWER, TranscriptEntry
from .oracles import InterviewOracle
from ..config import LANGUAGE_CODE, PRACTICE_QUESTION_COUNT, SessionTimings, VoicePreferences
from ..infrastructure.speech import (
    ABORTED, NETWORK, NO_SPEECH, NOT_ALLOWED, SERVICE_NOT_ALLOWED,
    RecognitionBatch, SpeechRecognizer, SynthesisBackend, Utterance, Voice,
)
from ..utils import PhaseTimers

logger = logging.getLogger("services")


class SpeechOutputController:
    """
    Speaks questions through a synthesis backend.

    At most one utterance is active; speak() cancels whatever is playing.
    on_complete fires once when playback ends, and never for a cancelled
    utterance. A playback failure is logged and still completes so the
    session is not stuck waiting for audio.
    """

    def __init__(self,
                 backend: SynthesisBackend,
                 preferences: Optional[VoicePreferences] = None,
                 language_code: str = LANGUAGE_CODE):
        self.backend = backend
        self.preferences = preferences or VoicePreferences()
        self.language_code = language_code
        self.voices: List[Voice] = []
        self._current: Optional[asyncio.Task] = None
        self._loader: Optional[asyncio.Task] = None
        self.logger = logging.getLogger("speech_output")

    def load_voices(self) -> None:
        """Start loading the platform voice list without waiting for it."""
        if self._loader is None:
            self._loader = asyncio.ensure_future(self._load_voices())

    async def _load_voices(self) -> None:
        try:
            voices = await self.backend.load_voices()
        except Exception as e:
            self.logger.warning("Voice list unavailable, using platform default: %s", e)
            return
        self.voices = list(voices)
        self.logger.info("Voice list loaded (%d voices)", len(self.voices))

    def select_voice(self) -> Optional[Voice]:
        """Ideal voice, then preferred voices in order, then a gendered voice in the language, else None."""
        prefs = self.preferences
        by_name = {v.name: v for v in self.voices}

        if prefs.ideal_voice in by_name:
            return by_name[prefs.ideal_voice]

        for name in prefs.preferred_voices:
            if name in by_name:
                return by_name[name]

        gender = prefs.gender.lower()
        for voice in self.voices:
            if voice.lang.startswith(prefs.language + "-") and (
                    gender in voice.name.lower() or voice.gender.lower() == gender):
                return voice

        return None

    def build_utterance(self, text: str) -> Utterance:
        voice = self.select_voice()
        if voice is None:
            return Utterance(text=text, lang=self.language_code)
        return Utterance(text=text, lang=self.language_code, voice=voice,
                         pitch=self.preferences.pitch, rate=self.preferences.rate)

    @property
    def speaking(self) -> bool:
        return self._current is not None and not self._current.done()

    def speak(self, text: str, on_complete: Optional[Callable[[], None]] = None) -> asyncio.Task:
        """Cancel any active utterance and speak text."""
        self.cancel()
        utterance = self.build_utterance(text)
        self.logger.info("Speaking (%s): %s", utterance.voice.name if utterance.voice else "default voice", text)
        self._current = asyncio.ensure_future(self._play(utterance, on_complete))
        return self._current

    async def _play(self, utterance: Utterance, on_complete: Optional[Callable[[], None]]) -> None:
        try:
            await self.backend.play(utterance)
        except asyncio.CancelledError:
            self.logger.debug("Utterance cancelled")
            raise
        except Exception as e:
            self.logger.error("Speech playback failed: %s", e)

        if self._current is asyncio.current_task():
            self._current = None
        if on_complete is not None:
            on_complete()

    def cancel(self) -> None:
        task, self._current = self._current, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def close(self) -> None:
        self.cancel()
        if self._loader is not None and not self._loader.done():
            self._loader.cancel()


class SpeechInputController:
    """
    Drives answer capture on a speech recognizer.

    The state machine wires the callbacks and the is_listening predicate;
    every recognizer event is ignored unless the machine is listening.
    Counters:
      - no-speech retries are per question (reset by new_question)
      - network retries are per capture attempt started by listen();
        automatic restarts after a network error do not reset them
    """

    def __init__(self,
                 recognizer: SpeechRecognizer,
                 timings: Optional[SessionTimings] = None,
                 language_code: str = LANGUAGE_CODE):
        self.recognizer = recognizer
        self.timings = timings or SessionTimings()

        recognizer.continuous = True
        recognizer.interim_results = True
        recognizer.lang = language_code
        recognizer.on_start = self._handle_start
        recognizer.on_result = self._handle_result
        recognizer.on_end = self._handle_end
        recognizer.on_error = self._handle_error

        self.is_listening: Callable[[], bool] = lambda: False
        self.on_answer: Optional[Callable[[str, int], None]] = None
        self.on_retry_question: Optional[Callable[[], None]] = None
        self.on_fatal: Optional[Callable[[str], None]] = None
        self.on_status: Optional[Callable[[Optional[str]], None]] = None
        self.on_transcript: Optional[Callable[[str], None]] = None
        self.on_tick: Optional[Callable[[int], None]] = None

        self.transcript = ""
        self.elapsed = 0
        self.network_retries = 0
        self.no_speech_retries = 0
        self._submitted = False
        self._failed = False
        self._timers = PhaseTimers("speech_input")
        self._tick_task: Optional[asyncio.Task] = None
        self._silence: Optional[asyncio.TimerHandle] = None
        self.logger = logging.getLogger("speech_input")

    # Control

    def new_question(self) -> None:
        self.no_speech_retries = 0

    def listen(self) -> None:
        """Start a capture attempt for the current question."""
        self.network_retries = 0
        self.elapsed = 0
        self._submitted = False
        self.recognizer.start()

    def retry_capture(self) -> None:
        """Manual restart after automatic retries were exhausted."""
        self.logger.info("Manual capture restart")
        self.network_retries = 0
        self.recognizer.start()

    def stop(self) -> None:
        """End the capture early; what was heard so far is submitted."""
        self.recognizer.stop()

    def cancel(self) -> None:
        """Clear every timer and abort capture."""
        self._timers.cancel_all()
        self._tick_task = None
        self._silence = None
        self.recognizer.abort()

    # Recognizer events

    def _notify(self, callback, *args) -> None:
        if callback is not None:
            callback(*args)

    def _handle_start(self) -> None:
        self._failed = False
        self._submitted = False
        self.transcript = ""
        self._notify(self.on_transcript, "")
        self._notify(self.on_status, None)
        if self._tick_task is not None:
            self._tick_task.cancel()
        self._tick_task = self._timers.every(self.timings.tick_interval, self._tick)

    def _tick(self) -> None:
        self.elapsed += 1
        self._notify(self.on_tick, self.elapsed)

    def _handle_result(self, batch: RecognitionBatch) -> None:
        self._timers.cancel_handle(self._silence)
        self._silence = None

        fresh = batch.results[batch.result_index:]
        self.transcript = "".join(r.transcript for r in fresh)
        self._notify(self.on_transcript, self.transcript)

        if any(r.is_final for r in fresh):
            self._silence = self._timers.call_later(self.timings.silence_timeout, self._silence_elapsed)

    def _silence_elapsed(self) -> None:
        self._silence = None
        self.logger.info("Silence timeout, stopping capture")
        self.recognizer.stop()

    def _handle_end(self) -> None:
        duration = self.elapsed
        if self._tick_task is not None:
            self._tick_task.cancel()
            self._tick_task = None
        self._timers.cancel_handle(self._silence)
        self._silence = None

        if self._failed:
            return
        if self.is_listening() and not self._submitted:
            self._submitted = True
            self.logger.info("Capture ended after %ds: %r", duration, self.transcript)
            self._notify(self.on_answer, self.transcript, duration)

    def _handle_error(self, kind: str, message: str = "") -> None:
        if kind == ABORTED:
            self.logger.debug("Recognition aborted")
            return

        if not self.is_listening():
            self.logger.debug("Ignoring recognition error outside listening: %s", kind)
            self._failed = True
            return

        if kind == NO_SPEECH:
            self._failed = True
            if self.no_speech_retries < self.timings.max_no_speech_retries:
                self.no_speech_retries += 1
                self.logger.info("No speech, re-asking (%d/%d)",
                                 self.no_speech_retries, self.timings.max_no_speech_retries)
                self._notify(self.on_retry_question)
            else:
                self.logger.info("No speech retries exhausted, submitting sentinel answer")
                self._submitted = True
                self._notify(self.on_answer, NO_SPEECH_ANSWER, 0)
            return

        self.logger.error("Speech recognition error: %s %s", kind, message)

        if kind == NETWORK:
            self._failed = True
            if self.network_retries < self.timings.max_network_retries:
                self.network_retries += 1
                self._notify(self.on_status, MSG_NETWORK_RETRYING.format(
                    attempt=self.network_retries, limit=self.timings.max_network_retries))
                self._timers.call_later(self.timings.network_retry_delay, self._restart_after_network)
            else:
                self._notify(self.on_status, MSG_NETWORK_FAILED)
            return

        if kind in (NOT_ALLOWED, SERVICE_NOT_ALLOWED):
            self._failed = True
            self._notify(self.on_fatal, MSG_PERMISSION_DENIED)
            return

        # anything else is reported; the capture's end still submits what was heard
        self._notify(self.on_status, MSG_RECOGNITION_FAILED.format(kind=kind))

    def _restart_after_network(self) -> None:
        if self.is_listening():
            self.logger.info("Restarting capture after network error (%d/%d)",
                             self.network_retries, self.timings.max_network_retries)
            self.recognizer.start()


class QuestionSource(ABC):
    """Supplies the questions of one session."""

    total: int

    @abstractmethod
    async def next_question(self, config: InterviewConfig,
                            transcript: Sequence[TranscriptEntry], ordinal: int) -> str:
        """
        Raises:
            QuestionGenerationError: If no question can be produced
        """


class GeneratedQuestionSource(QuestionSource):
    """Adaptive questions from the question oracle (practice flow)."""

    def __init__(self, oracle: InterviewOracle,
                 candidate: Optional[CandidateContext] = None,
                 total: int = PRACTICE_QUESTION_COUNT):
        self.oracle = oracle
        self.candidate = candidate or CandidateContext()
        self.total = total

    async def next_question(self, config, transcript, ordinal):
        try:
            question = await asyncio.to_thread(
                self.oracle.next_question, config, list(transcript), self.candidate, ordinal, self.total,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Question oracle failed: %s", e)
            raise QuestionGenerationError(detail=str(e)) from e

        if not question or not question.strip():
            raise QuestionGenerationError(detail="Question oracle returned an empty question")
        return question.strip()


class FixedQuestionSource(QuestionSource):
    """A recruiter-authored question list (assessment flow)."""

    def __init__(self, questions: Sequence[str]):
        self.questions = tuple(q.strip() for q in questions if q and q.strip())
        if not self.questions:
            raise ValueError("An assessment needs at least one question")
        self.total = len(self.questions)

    async def next_question(self, config, transcript, ordinal):
        if not 1 <= ordinal <= self.total:
            raise QuestionGenerationError(detail=f"No question {ordinal} in a {self.total}-question assessment")
        return self.questions[ordinal - 1]
