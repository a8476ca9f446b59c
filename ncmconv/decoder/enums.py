from enum import Enum

from .constants import FLAC_MAGIC


class AudioFormat(Enum):
    FLAC = "flac"
    OTHER = "other"

    @classmethod
    def sniff(cls, data: bytes) -> "AudioFormat":
        if len(data) >= len(FLAC_MAGIC) and data[: len(FLAC_MAGIC)] == FLAC_MAGIC:
            return cls.FLAC
        return cls.OTHER


class ConversionStatus(Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"
