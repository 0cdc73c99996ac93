"""
Text-to-speech platform backends.
"""
import asyncio
import math
import os
import shutil
import tempfile
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ...config import LANGUAGE_CODE, TTS_SAMPLE_RATE, AUDIO_PLAYERS

logger = logging.getLogger("speech_tts")


@dataclass(frozen=True)
class Voice:
    """A voice offered by the synthesis platform."""
    name: str
    lang: str
    gender: str = ""


@dataclass(frozen=True)
class Utterance:
    """One piece of text to speak, with the voice settings chosen for it."""
    text: str
    lang: str = LANGUAGE_CODE
    voice: Optional[Voice] = None
    pitch: float = 1.0
    rate: float = 1.0


class SynthesisBackend(ABC):
    """Platform speech synthesis."""

    @abstractmethod
    async def load_voices(self) -> List[Voice]:
        """Return the voices the platform offers (may be empty)."""

    @abstractmethod
    async def play(self, utterance: Utterance) -> None:
        """Speak and return when playback ends. Cancelling the task stops audio."""


class ConsoleSynthesisBackend(SynthesisBackend):
    """Prints questions instead of speaking them."""

    async def load_voices(self) -> List[Voice]:
        return []

    async def play(self, utterance: Utterance) -> None:
        print(f"🤖 {utterance.text}")


def pitch_to_semitones(pitch: float) -> float:
    """Convert a relative pitch factor (1.0 = unchanged) to Google's semitone offset."""
    if pitch <= 0:
        return 0.0
    return max(-20.0, min(20.0, 12.0 * math.log2(pitch)))


class GoogleCloudSynthesisBackend(SynthesisBackend):
    """
    High-quality Google Cloud Text-to-Speech, played with the system audio player.
    """

    def __init__(self,
                 language_code: str = LANGUAGE_CODE,
                 sample_rate: int = TTS_SAMPLE_RATE,
                 players: Sequence[str] = AUDIO_PLAYERS):
        from google.cloud import texttospeech

        self._tts = texttospeech
        self.client = texttospeech.TextToSpeechClient()
        self.language_code = language_code
        self.sample_rate = sample_rate
        self.player = next((p for p in players if shutil.which(p)), None)
        if self.player is None:
            logger.warning("No audio player found (tried %s), questions will be printed", ", ".join(players))

    async def load_voices(self) -> List[Voice]:
        response = await asyncio.to_thread(self.client.list_voices, language_code=self.language_code)
        voices = [
            Voice(
                name=v.name,
                lang=v.language_codes[0] if v.language_codes else self.language_code,
                gender=self._tts.SsmlVoiceGender(v.ssml_gender).name.lower(),
            )
            for v in response.voices
        ]
        logger.info("Loaded %d voices for %s", len(voices), self.language_code)
        return voices

    def _synthesize(self, utterance: Utterance) -> bytes:
        voice_params = self._tts.VoiceSelectionParams(
            language_code=utterance.voice.lang if utterance.voice else utterance.lang,
            name=utterance.voice.name if utterance.voice else None,
        )
        audio_config = self._tts.AudioConfig(
            audio_encoding=self._tts.AudioEncoding.LINEAR16,
            sample_rate_hertz=self.sample_rate,
            speaking_rate=utterance.rate,
            pitch=pitch_to_semitones(utterance.pitch),
        )
        response = self.client.synthesize_speech(
            input=self._tts.SynthesisInput(text=utterance.text),
            voice=voice_params,
            audio_config=audio_config,
        )
        return response.audio_content

    async def play(self, utterance: Utterance) -> None:
        if not utterance.text.strip():
            return

        audio = await asyncio.to_thread(self._synthesize, utterance)
        if self.player is None:
            print(f"🤖 {utterance.text}")
            return

        with tempfile.NamedTemporaryFile(suffix=".wav", delete=False) as tmp_file:
            wav_path = tmp_file.name
            tmp_file.write(audio)

        try:
            proc = await asyncio.create_subprocess_exec(
                self.player, wav_path,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            try:
                await proc.wait()
            except asyncio.CancelledError:
                proc.terminate()
                await proc.wait()
                raise
        finally:
            try:
                os.unlink(wav_path)
            except OSError:
                pass
