"""Audio server adapters."""

from interaction.audio_hal import AudioServerAdapter, FakeAudioServer
from interaction.pactl import PactlAdapter

__all__ = ["AudioServerAdapter", "FakeAudioServer", "PactlAdapter"]
