"""
Media devices: microphone access checks before capture begins.
"""
import asyncio
import logging
from abc import ABC, abstractmethod

from ..config import MIC_SAMPLE_RATE, MIC_CHUNK_SIZE
from ..interview.errors import MediaPermissionError, MediaUnavailableError

logger = logging.getLogger("media")


class MediaDevices(ABC):
    """Grants access to the capture devices a session needs."""

    @abstractmethod
    async def request_access(self) -> None:
        """
        Raises:
            MediaPermissionError: If the user or OS denied access
            MediaUnavailableError: If no usable device exists
        """

    async def release(self) -> None:
        """Give the devices back at session end."""


class NullMediaDevices(MediaDevices):
    """Console mode needs no devices."""

    async def request_access(self) -> None:
        return None


class MicrophoneDevices(MediaDevices):
    """Checks that the default input device exists and can be opened with PyAudio."""

    def __init__(self, sample_rate: int = MIC_SAMPLE_RATE, chunk_size: int = MIC_CHUNK_SIZE):
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size

    def _open_default_device(self) -> str:
        # PyAudio imported lazily; it is only needed for live speech mode
        try:
            import pyaudio
        except ImportError as e:
            raise MediaUnavailableError(detail=f"PyAudio is not installed: {e}") from e

        pa = pyaudio.PyAudio()
        try:
            try:
                info = pa.get_default_input_device_info()
            except (IOError, OSError) as e:
                raise MediaUnavailableError(detail=f"No default input device: {e}") from e

            try:
                stream = pa.open(format=pyaudio.paInt16, channels=1, rate=self.sample_rate,
                                 input=True, frames_per_buffer=self.chunk_size)
            except OSError as e:
                # PortAudio reports denied access as an opening failure
                if "permission" in str(e).lower() or "denied" in str(e).lower():
                    raise MediaPermissionError(detail=str(e)) from e
                raise MediaUnavailableError(detail=str(e)) from e
            stream.close()
            return str(info.get("name", "default"))
        finally:
            pa.terminate()

    async def request_access(self) -> None:
        name = await asyncio.to_thread(self._open_default_device)
        logger.info("Microphone available: %s", name)
