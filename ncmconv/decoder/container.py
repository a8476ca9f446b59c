import logging
import struct

from .constants import (
    CRC_GAP_SIZE,
    HEADER_GAP_SIZE,
    HEADER_MAGIC,
    LENGTH_FIELD_SIZE,
)
from .exceptions import InvalidMagicError, TruncatedContainerError
from .types import NcmSections

logger = logging.getLogger(__name__)


class _Cursor:
    def __init__(self, data: bytes):
        self.data = data
        self.position = 0

    def _require(self, section: str, size: int) -> None:
        available = len(self.data) - self.position
        if size > available:
            raise TruncatedContainerError(section, self.position, size, available)

    def read(self, section: str, size: int) -> bytes:
        self._require(section, size)
        chunk = self.data[self.position : self.position + size]
        self.position += size
        return chunk

    def skip(self, section: str, size: int) -> None:
        self._require(section, size)
        self.position += size

    def read_length_prefixed(self, section: str) -> bytes:
        length = struct.unpack(
            "<I", self.read(f"{section} length", LENGTH_FIELD_SIZE)
        )[0]
        return self.read(section, length)

    def read_rest(self) -> bytes:
        chunk = self.data[self.position :]
        self.position = len(self.data)
        return chunk


def parse_container(data: bytes) -> NcmSections:
    """
    Split a raw NCM container into its sections.

    Layout:
    - 8-byte magic, then a 2-byte gap
    - length-prefixed key section
    - length-prefixed metadata section
    - 4-byte CRC and a 5-byte gap
    - length-prefixed image section
    - audio payload until the end of the buffer

    All length fields are unsigned 32-bit little-endian. A length that points
    past the end of the buffer raises TruncatedContainerError.
    """
    if data[: len(HEADER_MAGIC)] != HEADER_MAGIC:
        raise InvalidMagicError()

    cursor = _Cursor(data)
    cursor.skip("header magic", len(HEADER_MAGIC))
    cursor.skip("header gap", HEADER_GAP_SIZE)

    key_data = cursor.read_length_prefixed("key")
    metadata = cursor.read_length_prefixed("metadata")
    cursor.skip("checksum", CRC_GAP_SIZE)
    image = cursor.read_length_prefixed("image")

    audio_offset = cursor.position
    audio = cursor.read_rest()

    logger.debug(
        f"Parsed container: key={len(key_data)} metadata={len(metadata)} "
        f"image={len(image)} audio={len(audio)} at offset {audio_offset}"
    )

    return NcmSections(
        key_data=key_data,
        metadata=metadata,
        image=image,
        audio=audio,
        audio_offset=audio_offset,
    )
