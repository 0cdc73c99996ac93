"""
Testing infrastructure with mock platform backends and oracles.

Also used by the CLI's --demo mode, so nothing here depends on pytest.
"""
import asyncio
from typing import Any, Callable, Dict, List, Optional, Sequence
from unittest.mock import Mock

from .flows import create_practice_interview
from .models import (
    Evaluation, GrammarCorrection, InterviewConfig, InterviewFeedback,
    InterviewSummary,
)
from .oracles import InterviewOracle
from .orchestrator import InterviewOrchestrator
from .schemas import Phase
from ..config import SessionTimings
from ..infrastructure.data import InMemoryStorage, InterviewRepository
from ..infrastructure.media import MediaDevices
from ..infrastructure.speech import (
    ABORTED, RecognitionBatch, RecognitionResult, SpeechRecognizer,
    SynthesisBackend, Utterance, Voice,
)


def fast_timings(**overrides) -> SessionTimings:
    """Session timings shrunk for tests; bounds keep their real values."""
    values = dict(
        tick_interval=0.01,
        silence_timeout=0.05,
        network_retry_delay=0.01,
        re_ask_pause=0.01,
        transition_delay=0.01,
    )
    values.update(overrides)
    return SessionTimings(**values)


def make_feedback(score: int = 75, filler_words: int = 0, alexis_response: str = "Nice answer.",
                  response_quality: Optional[int] = None) -> InterviewFeedback:
    return InterviewFeedback(
        score=score,
        response_quality=score if response_quality is None else response_quality,
        evaluation=Evaluation(clarity="Clear.", relevance="Relevant.", structure="Structured.", confidence="Confident."),
        grammar_correction=GrammarCorrection(has_errors=False, explanation=""),
        professional_rewrite="A polished answer.",
        tips=("Add a metric.",),
        alexis_response=alexis_response,
        word_count=42,
        filler_words=filler_words,
        has_example=True,
    )


class MockSynthesisBackend(SynthesisBackend):
    """Records utterances; playback finishes on the next loop iteration."""

    def __init__(self, voices: Optional[Sequence[Voice]] = None, fail: bool = False, hold: bool = False):
        self.voices = list(voices or [])
        self.fail = fail
        self.utterances: List[Utterance] = []
        self.cancelled: List[str] = []
        self._release = asyncio.Event() if hold else None

    @property
    def spoken(self) -> List[str]:
        return [u.text for u in self.utterances]

    async def load_voices(self) -> List[Voice]:
        return list(self.voices)

    async def play(self, utterance: Utterance) -> None:
        self.utterances.append(utterance)
        try:
            if self._release is not None:
                await self._release.wait()
            else:
                await asyncio.sleep(0)
        except asyncio.CancelledError:
            self.cancelled.append(utterance.text)
            raise
        if self.fail:
            raise RuntimeError("mock playback failure")

    def release(self) -> None:
        """Let held utterances finish."""
        if self._release is not None:
            self._release.set()


class MockRecognizer(SpeechRecognizer):
    """
    Scriptable recognizer with browser-like event ordering.

    start() delivers on_start on the next loop iteration; tests then drive
    the capture with emit_result / emit_error / emit_end.
    """

    def __init__(self):
        super().__init__()
        self.running = False
        self.active = False
        self.start_count = 0
        self.stop_count = 0
        self.abort_count = 0
        self._results: List[RecognitionResult] = []
        self._pending_start: Optional[asyncio.Handle] = None

    def start(self) -> None:
        if self.running:
            return
        self.running = True
        self.start_count += 1
        self._results = []
        self._pending_start = asyncio.get_running_loop().call_soon(self._fire_start)

    def _fire_start(self) -> None:
        self._pending_start = None
        self.active = True
        self._dispatch("on_start")

    def _halt(self) -> None:
        self.running = False
        if self._pending_start is not None:
            self._pending_start.cancel()
            self._pending_start = None

    def _fire_end(self) -> None:
        self.active = False
        self._dispatch("on_end")

    def stop(self) -> None:
        if not self.running:
            return
        self.stop_count += 1
        self._halt()
        asyncio.get_running_loop().call_soon(self._fire_end)

    def abort(self) -> None:
        if not self.running:
            return
        self.abort_count += 1
        self._halt()
        loop = asyncio.get_running_loop()
        loop.call_soon(self._dispatch, "on_error", ABORTED, "aborted")
        loop.call_soon(self._fire_end)

    def emit_result(self, transcript: str, is_final: bool = True) -> None:
        if self._results and not self._results[-1].is_final:
            self._results.pop()
        self._results.append(RecognitionResult(transcript, is_final))
        self._dispatch("on_result", RecognitionBatch(results=tuple(self._results), result_index=0))

    def emit_error(self, kind: str, message: str = "") -> None:
        """An error ends the capture: on_error then on_end."""
        self._halt()
        self._dispatch("on_error", kind, message)
        self._fire_end()

    def emit_end(self) -> None:
        self._halt()
        self._fire_end()


class MockOracle(InterviewOracle):
    """Scripted oracle; every call is recorded."""

    def __init__(self,
                 scores: Optional[Sequence[int]] = None,
                 questions: Optional[Sequence[str]] = None,
                 filler_words: int = 0,
                 fail_questions: bool = False,
                 fail_scoring: bool = False,
                 fail_summary: bool = False):
        self.scores = list(scores or [])
        self.questions = list(questions or [])
        self.filler_words = filler_words
        self.fail_questions = fail_questions
        self.fail_scoring = fail_scoring
        self.fail_summary = fail_summary
        self.question_calls: List[Dict[str, Any]] = []
        self.scored: List[Dict[str, str]] = []
        self.summarized: List[List[InterviewFeedback]] = []

    def next_question(self, config, transcript, candidate, ordinal, total):
        self.question_calls.append({"ordinal": ordinal, "total": total, "answered": len(transcript)})
        if self.fail_questions:
            raise RuntimeError("mock question oracle failure")
        if ordinal <= len(self.questions):
            return self.questions[ordinal - 1]
        return f"Mock question {ordinal} for {config.role}?"

    def score_answer(self, question, answer):
        self.scored.append({"question": question, "answer": answer})
        if self.fail_scoring:
            raise RuntimeError("mock scoring oracle failure")
        index = len(self.scored) - 1
        score = self.scores[index] if index < len(self.scores) else 75
        return make_feedback(score=score, filler_words=self.filler_words)

    def summarize(self, feedback):
        self.summarized.append(list(feedback))
        if self.fail_summary:
            raise RuntimeError("mock summary oracle failure")
        return InterviewSummary(
            overall_summary="Solid session overall.",
            actionable_tips=("Use the STAR method.", "Quantify results.", "Slow down."),
            encouragement="Keep it up!",
            simulated_facial_expression_analysis="You likely looked engaged.",
            simulated_body_language_analysis="Your posture was probably open.",
            simulated_audio_analysis="Your tone was likely steady.",
        )

    def answer_follow_up(self, session, question):
        return f"Good question. Your average score was {session.average_score}%."

    def generate_assessment_questions(self, job_role, interview_type, difficulty, count):
        return [f"{job_role} question {i}?" for i in range(1, count + 1)]


class MockMediaDevices(MediaDevices):
    """Grants access, or raises the given error."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.requests = 0
        self.released = 0

    async def request_access(self) -> None:
        self.requests += 1
        if self.error is not None:
            raise self.error

    async def release(self) -> None:
        self.released += 1


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.002) -> None:
    """Poll until predicate() is true; raises asyncio.TimeoutError otherwise."""
    async def _poll():
        while not predicate():
            await asyncio.sleep(interval)
    await asyncio.wait_for(_poll(), timeout)


async def wait_for_phase(orchestrator: InterviewOrchestrator, phase: Phase, timeout: float = 2.0) -> None:
    await wait_until(lambda: orchestrator.phase == phase, timeout)


async def wait_for_capture(orchestrator: InterviewOrchestrator, recognizer: MockRecognizer,
                           timeout: float = 2.0) -> None:
    """Wait until the machine is listening and the recognizer has reported on_start."""
    await wait_until(lambda: orchestrator.phase == Phase.LISTENING and recognizer.active, timeout)


def create_mock_interview_setup(total_questions: int = 2,
                                oracle: Optional[MockOracle] = None,
                                config: Optional[InterviewConfig] = None,
                                media: Optional[MediaDevices] = None,
                                synthesis: Optional[MockSynthesisBackend] = None,
                                timings: Optional[SessionTimings] = None) -> Dict[str, Any]:
    """Create a practice interview wired entirely to mocks."""
    oracle = oracle or MockOracle()
    synthesis = synthesis or MockSynthesisBackend()
    recognizer = MockRecognizer()
    repository = InterviewRepository(InMemoryStorage())
    media = media or MockMediaDevices()

    orchestrator = create_practice_interview(
        config=config or InterviewConfig(),
        oracle=oracle,
        synthesis=synthesis,
        recognizer=recognizer,
        repository=repository,
        media=media,
        total_questions=total_questions,
        timings=timings or fast_timings(),
    )
    persist = Mock(side_effect=orchestrator.persist)
    orchestrator.persist = persist

    return {
        "orchestrator": orchestrator,
        "oracle": oracle,
        "synthesis": synthesis,
        "recognizer": recognizer,
        "repository": repository,
        "media": media,
        "persist": persist,
    }
