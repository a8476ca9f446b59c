from dataclasses import dataclass
from pathlib import Path

from .enums import AudioFormat, ConversionStatus


@dataclass
class NcmSections:
    key_data: bytes = None
    metadata: bytes = None
    image: bytes = None
    audio: bytes = None
    audio_offset: int = None


@dataclass
class DecodeResult:
    input_path: Path = None
    final_path: Path = None
    audio_format: AudioFormat = None


@dataclass
class ConversionProgress:
    id: str
    progress: int
    status: ConversionStatus
    message: str = None

    def as_dict(self) -> dict:
        payload = {
            "id": self.id,
            "progress": self.progress,
            "status": self.status.value,
        }
        if self.message is not None:
            payload["message"] = self.message
        return payload
