"""
Speech-to-text platform backends.

Recognizers follow the event contract of a continuous browser recognizer:
start() fires on_start, results arrive through on_result, and every capture
ends with exactly one on_end, preceded by on_error when it failed.
"""
import asyncio
import sys
import threading
import time
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from google.api_core import exceptions as google_exceptions

from ...config import (
    LANGUAGE_CODE, MIC_SAMPLE_RATE, MIC_CHUNK_SIZE, NO_SPEECH_TIMEOUT_SECONDS
)

logger = logging.getLogger("speech_stt")

# Recognition error kinds
ABORTED = "aborted"
NO_SPEECH = "no-speech"
NETWORK = "network"
NOT_ALLOWED = "not-allowed"
SERVICE_NOT_ALLOWED = "service-not-allowed"
AUDIO_CAPTURE = "audio-capture"
SERVICE_ERROR = "service-error"


@dataclass(frozen=True)
class RecognitionResult:
    transcript: str
    is_final: bool = False


@dataclass(frozen=True)
class RecognitionBatch:
    """All results of the current capture; entries from result_index on are new or changed."""
    results: Tuple[RecognitionResult, ...]
    result_index: int = 0


class SpeechRecognizer(ABC):
    """Platform speech recognition with browser-style event handlers."""

    def __init__(self, lang: str = LANGUAGE_CODE):
        self.continuous = True
        self.interim_results = True
        self.lang = lang
        self.on_start: Optional[Callable[[], None]] = None
        self.on_result: Optional[Callable[[RecognitionBatch], None]] = None
        self.on_end: Optional[Callable[[], None]] = None
        self.on_error: Optional[Callable[[str, str], None]] = None

    @abstractmethod
    def start(self) -> None:
        """Begin a capture. Must be called from the event loop thread."""

    @abstractmethod
    def stop(self) -> None:
        """Finish the capture, delivering pending results, then fire on_end."""

    @abstractmethod
    def abort(self) -> None:
        """Drop the capture: fire on_error('aborted') then on_end. No-op when idle."""

    def _dispatch(self, name: str, *args) -> None:
        handler = getattr(self, name)
        if handler is not None:
            handler(*args)


class GoogleStreamingRecognizer(SpeechRecognizer):
    """
    Google Cloud streaming recognition over the default microphone.

    Capture and the gRPC stream run in a worker thread; every handler is
    marshalled back onto the event loop.
    """

    def __init__(self,
                 lang: str = LANGUAGE_CODE,
                 sample_rate: int = MIC_SAMPLE_RATE,
                 chunk_size: int = MIC_CHUNK_SIZE,
                 no_speech_timeout: float = NO_SPEECH_TIMEOUT_SECONDS):
        super().__init__(lang)
        from google.cloud import speech

        self._speech = speech
        self.client = speech.SpeechClient()
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.no_speech_timeout = no_speech_timeout
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._aborted = False
        self._heard = False
        self._timed_out = False

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            logger.warning("start() called while recognition is running, ignoring")
            return
        self._loop = asyncio.get_running_loop()
        self._stop_event.clear()
        self._aborted = False
        self._heard = False
        self._timed_out = False
        self._thread = threading.Thread(target=self._run, name="speech-recognizer", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()

    def abort(self) -> None:
        if self.running:
            self._aborted = True
            self._stop_event.set()

    def _post(self, name: str, *args) -> None:
        self._loop.call_soon_threadsafe(self._dispatch, name, *args)

    def _audio_requests(self, stream):
        started = time.monotonic()
        while not self._stop_event.is_set():
            if not self._heard and time.monotonic() - started > self.no_speech_timeout:
                self._timed_out = True
                return
            data = stream.read(self.chunk_size, exception_on_overflow=False)
            yield self._speech.StreamingRecognizeRequest(audio_content=data)

    def _run(self) -> None:
        try:
            import pyaudio
            pa = pyaudio.PyAudio()
        except (ImportError, OSError) as e:
            logger.error("Audio capture unavailable: %s", e)
            self._post("on_error", AUDIO_CAPTURE, str(e))
            self._post("on_end")
            return

        try:
            stream = pa.open(format=pyaudio.paInt16, channels=1, rate=self.sample_rate,
                             input=True, frames_per_buffer=self.chunk_size)
        except OSError as e:
            pa.terminate()
            logger.error("Could not open microphone: %s", e)
            self._post("on_error", AUDIO_CAPTURE, str(e))
            self._post("on_end")
            return

        self._post("on_start")
        error: Optional[Tuple[str, str]] = None
        finals: List[str] = []

        streaming_config = self._speech.StreamingRecognitionConfig(
            config=self._speech.RecognitionConfig(
                encoding=self._speech.RecognitionConfig.AudioEncoding.LINEAR16,
                sample_rate_hertz=self.sample_rate,
                language_code=self.lang,
                enable_automatic_punctuation=True,
            ),
            interim_results=self.interim_results,
            single_utterance=not self.continuous,
        )

        try:
            responses = self.client.streaming_recognize(streaming_config, self._audio_requests(stream))
            for response in responses:
                if self._aborted:
                    break
                interim = []
                for result in response.results:
                    if not result.alternatives:
                        continue
                    self._heard = True
                    if result.is_final:
                        finals.append(result.alternatives[0].transcript)
                    else:
                        interim.append(result.alternatives[0].transcript)
                batch = tuple(RecognitionResult(t, True) for t in finals)
                if interim:
                    batch += (RecognitionResult("".join(interim), False),)
                if batch:
                    self._post("on_result", RecognitionBatch(results=batch, result_index=0))
        except (google_exceptions.PermissionDenied, google_exceptions.Unauthenticated) as e:
            error = (NOT_ALLOWED, str(e))
        except (google_exceptions.ServiceUnavailable, google_exceptions.DeadlineExceeded,
                google_exceptions.RetryError) as e:
            error = (NETWORK, str(e))
        except google_exceptions.GoogleAPICallError as e:
            error = (SERVICE_ERROR, str(e))
        except OSError as e:
            error = (AUDIO_CAPTURE, str(e))
        finally:
            stream.stop_stream()
            stream.close()
            pa.terminate()

        if self._aborted:
            self._post("on_error", ABORTED, "Recognition aborted")
        elif error is not None:
            logger.warning("Recognition failed (%s): %s", error[0], error[1])
            self._post("on_error", *error)
        elif self._timed_out:
            self._post("on_error", NO_SPEECH, "No speech detected")
        self._post("on_end")


class ConsoleRecognizer(SpeechRecognizer):
    """
    Typed answers: one line of input is one final result.

    A single reader thread owns stdin for the whole process, so lines are
    never lost to an abandoned read.
    """

    def __init__(self, lang: str = LANGUAGE_CODE, stream=None, prompt: str = "💬 Your answer: "):
        super().__init__(lang)
        self.stream = stream or sys.stdin
        self.prompt = prompt
        self._queue: Optional[asyncio.Queue] = None
        self._reader: Optional[threading.Thread] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _ensure_reader(self) -> None:
        if self._reader is not None:
            return
        loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()

        def _read_lines():
            while True:
                line = self.stream.readline() or None
                try:
                    loop.call_soon_threadsafe(self._queue.put_nowait, line)
                except RuntimeError:
                    # loop closed while we were blocked on input
                    return
                if line is None:
                    return

        self._reader = threading.Thread(target=_read_lines, name="console-reader", daemon=True)
        self._reader.start()

    def start(self) -> None:
        if self.running:
            logger.warning("start() called while recognition is running, ignoring")
            return
        self._ensure_reader()
        # drop anything typed while the question was being asked
        while not self._queue.empty():
            if self._queue.get_nowait() is None:
                self._queue.put_nowait(None)
                break
        self._task = asyncio.ensure_future(self._listen())

    async def _listen(self) -> None:
        self._dispatch("on_start")
        print(self.prompt, end="", flush=True)
        line = await self._queue.get()
        self._task = None
        if line is None:
            self._queue.put_nowait(None)
            self._dispatch("on_error", AUDIO_CAPTURE, "Input closed")
        elif not line.strip():
            self._dispatch("on_error", NO_SPEECH, "Empty answer")
        else:
            self._dispatch("on_result", RecognitionBatch(results=(RecognitionResult(line.strip(), True),)))
        self._dispatch("on_end")

    def _finish(self, error: Optional[str]) -> None:
        task, self._task = self._task, None
        task.cancel()
        loop = asyncio.get_running_loop()
        if error:
            loop.call_soon(self._dispatch, "on_error", error, "Recognition aborted")
        loop.call_soon(self._dispatch, "on_end")

    def stop(self) -> None:
        if self.running:
            self._finish(None)

    def abort(self) -> None:
        if self.running:
            self._finish(ABORTED)
