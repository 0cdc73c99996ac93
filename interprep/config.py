"""
InterPrep Configuration System
==============================

This file contains ALL configuration for the InterPrep interview engine.
- User settings at the top (things users might want to change)
- Internal constants at the bottom (technical defaults)
"""
import os
from dataclasses import dataclass, field
from typing import List, Optional


# =============================================================================
# USER SETTINGS - Edit these to customize the interview
# =============================================================================

# Google Cloud (only needed for --speech mode and the Gemini oracles)
GOOGLE_CLOUD_PROJECT = "your-project-id"  # Change this!
GOOGLE_APPLICATION_CREDENTIALS = None  # Optional: path to credentials JSON

# Interview settings
PRACTICE_QUESTION_COUNT = 5
DEFAULT_INTERVIEW_TYPE = "Behavioral"
DEFAULT_DIFFICULTY = "Medium"
DEFAULT_PERSONA = "Neutral"
DEFAULT_ROLE = "Software Engineer"
DATA_DIR = "./_interprep"

# Speech settings: "google" (microphone + speakers) or "console" (type answers)
SPEECH_MODE = "console"
LANGUAGE_CODE = "en-US"
IDEAL_VOICE = "Zephyr"
PREFERRED_VOICES = [
    "Google US English",
    "Google UK English Female",
    "Microsoft Zira - English (United States)",
    "Microsoft Hazel - English (United Kingdom)",
    "Samantha",
    "en-US-Neural2-F",
    "en-US-Neural2-G",
]
VOICE_GENDER = "female"

# Logging
LOG_FILE = "./_interprep/interview.log"
LOG_LEVEL = "INFO"


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

# Session timing
TICK_INTERVAL_SECONDS = 1.0
SILENCE_TIMEOUT_SECONDS = 5.0
NETWORK_RETRY_DELAY_SECONDS = 1.5
MAX_NETWORK_RETRIES = 3
MAX_NO_SPEECH_RETRIES = 2
RE_ASK_PAUSE_SECONDS = 0.5
TRANSITION_DELAY_SECONDS = 1.5

# Speech output
VOICE_PITCH = 1.05
VOICE_RATE = 1.0
TTS_SAMPLE_RATE = 16000
AUDIO_PLAYERS = ("afplay", "aplay")
RE_ASK_PHRASE = "I'm sorry, I didn't catch that. Let's try that question again."

# Speech input
NO_SPEECH_TIMEOUT_SECONDS = 8.0
MIC_SAMPLE_RATE = 16000
MIC_CHUNK_SIZE = 1600

# LLM
VERTEX_LOCATION = "us-central1"
MODEL_NAME = "gemini-2.5-flash"
LLM_TIMEOUT = 60
MAX_OUTPUT_TOKENS = 2048


# =============================================================================
# MAIN CONFIG OBJECTS
# =============================================================================

@dataclass
class SessionTimings:
    """Every fixed delay and retry bound used by a running session."""
    tick_interval: float = TICK_INTERVAL_SECONDS
    silence_timeout: float = SILENCE_TIMEOUT_SECONDS
    network_retry_delay: float = NETWORK_RETRY_DELAY_SECONDS
    max_network_retries: int = MAX_NETWORK_RETRIES
    max_no_speech_retries: int = MAX_NO_SPEECH_RETRIES
    re_ask_pause: float = RE_ASK_PAUSE_SECONDS
    transition_delay: float = TRANSITION_DELAY_SECONDS


@dataclass
class VoicePreferences:
    """Voice selection policy for the speech output controller."""
    ideal_voice: str = IDEAL_VOICE
    preferred_voices: List[str] = field(default_factory=lambda: list(PREFERRED_VOICES))
    language: str = LANGUAGE_CODE.split("-")[0]
    gender: str = VOICE_GENDER
    pitch: float = VOICE_PITCH
    rate: float = VOICE_RATE


@dataclass
class Config:
    """Main configuration object."""
    google_cloud_project: Optional[str] = None
    google_application_credentials: Optional[str] = None
    speech_mode: str = SPEECH_MODE
    language_code: str = LANGUAGE_CODE
    data_dir: str = DATA_DIR
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL
    vertex_location: str = VERTEX_LOCATION
    model_name: str = MODEL_NAME
    practice_question_count: int = PRACTICE_QUESTION_COUNT
    timings: SessionTimings = field(default_factory=SessionTimings)
    voice: VoicePreferences = field(default_factory=VoicePreferences)

    @property
    def has_project(self) -> bool:
        return bool(self.google_cloud_project) and self.google_cloud_project != "your-project-id"


def get_config(speech_mode: Optional[str] = None, require_project: bool = True) -> Config:
    """Load configuration, letting environment variables override the settings above."""
    project = os.getenv("GOOGLE_CLOUD_PROJECT") or GOOGLE_CLOUD_PROJECT
    credentials = os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or GOOGLE_APPLICATION_CREDENTIALS
    mode = speech_mode or os.getenv("INTERPREP_SPEECH_MODE") or SPEECH_MODE

    if mode not in ("google", "console"):
        raise ValueError(f"Unknown speech mode '{mode}' (expected 'google' or 'console')")

    config = Config(
        google_cloud_project=project,
        google_application_credentials=credentials,
        speech_mode=mode,
        data_dir=os.getenv("INTERPREP_DATA_DIR") or DATA_DIR,
        log_file=os.getenv("INTERPREP_LOG_FILE") or LOG_FILE,
        log_level=os.getenv("INTERPREP_LOG_LEVEL") or LOG_LEVEL,
    )

    if require_project and not config.has_project:
        raise ValueError("Please set GOOGLE_CLOUD_PROJECT in config.py or as environment variable")

    return config
