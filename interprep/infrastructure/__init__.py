"""Infrastructure components for the InterPrep engine.

This module contains the platform-facing pieces the interview engine is
built on: the LLM client, speech backends, media devices and storage.
"""

# LLM infrastructure
from .llm import VertexRestClient

# Speech platform backends
from .speech import (
    SynthesisBackend, SpeechRecognizer, Voice, Utterance,
    RecognitionBatch, RecognitionResult, create_speech_backends
)

# Media devices
from .media import MediaDevices, MicrophoneDevices, NullMediaDevices

# Storage
from .data import InterviewRepository, InMemoryStorage, JsonFileStorage, StorageBackend

__all__ = [
    # LLM client
    "VertexRestClient",

    # Speech
    "SynthesisBackend", "SpeechRecognizer", "Voice", "Utterance",
    "RecognitionBatch", "RecognitionResult", "create_speech_backends",

    # Media
    "MediaDevices", "MicrophoneDevices", "NullMediaDevices",

    # Storage
    "InterviewRepository", "InMemoryStorage", "JsonFileStorage", "StorageBackend",
]
