"""Speech synthesis and recognition platform backends."""
import logging
from typing import Tuple

from .tts import (
    Voice, Utterance, SynthesisBackend,
    ConsoleSynthesisBackend, GoogleCloudSynthesisBackend, pitch_to_semitones
)
from .stt import (
    RecognitionResult, RecognitionBatch, SpeechRecognizer,
    ConsoleRecognizer, GoogleStreamingRecognizer,
    ABORTED, NO_SPEECH, NETWORK, NOT_ALLOWED, SERVICE_NOT_ALLOWED, AUDIO_CAPTURE, SERVICE_ERROR
)
from ...config import LANGUAGE_CODE
from ...interview.errors import UnsupportedPlatformError

logger = logging.getLogger("speech")


def create_speech_backends(mode: str, language_code: str = LANGUAGE_CODE) -> Tuple[SynthesisBackend, SpeechRecognizer]:
    """
    Build the synthesis/recognition pair for a speech mode.

    Raises:
        UnsupportedPlatformError: If the platform backends cannot be constructed
    """
    if mode == "console":
        return ConsoleSynthesisBackend(), ConsoleRecognizer(lang=language_code)

    if mode == "google":
        try:
            import pyaudio  # noqa: F401
        except ImportError as e:
            raise UnsupportedPlatformError(detail=f"PyAudio is not installed: {e}") from e
        try:
            return (GoogleCloudSynthesisBackend(language_code=language_code),
                    GoogleStreamingRecognizer(lang=language_code))
        except Exception as e:
            logger.error("Failed to create Google speech clients: %s", e)
            raise UnsupportedPlatformError(detail=str(e)) from e

    raise UnsupportedPlatformError(detail=f"Unknown speech mode '{mode}'")


__all__ = [
    "Voice", "Utterance", "SynthesisBackend",
    "ConsoleSynthesisBackend", "GoogleCloudSynthesisBackend", "pitch_to_semitones",
    "RecognitionResult", "RecognitionBatch", "SpeechRecognizer",
    "ConsoleRecognizer", "GoogleStreamingRecognizer",
    "ABORTED", "NO_SPEECH", "NETWORK", "NOT_ALLOWED", "SERVICE_NOT_ALLOWED",
    "AUDIO_CAPTURE", "SERVICE_ERROR",
    "create_speech_backends",
]
