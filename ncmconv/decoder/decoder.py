import logging
from pathlib import Path

from .cipher import build_keystream_table, decrypt_audio
from .container import parse_container
from .enums import AudioFormat
from .exceptions import InputFileError
from .key import derive_key
from .transcoder import NcmTranscoder
from .types import DecodeResult

logger = logging.getLogger(__name__)


class NcmDecoder:
    def __init__(
        self,
        transcoder: NcmTranscoder,
        output_path: str = None,
    ):
        self.transcoder = transcoder
        self.output_path = output_path

    def decode_bytes(self, data: bytes) -> tuple[bytes, AudioFormat]:
        sections = parse_container(data)
        key = derive_key(sections.key_data)
        table = build_keystream_table(key)
        audio = decrypt_audio(table, sections.audio)
        audio_format = AudioFormat.sniff(audio)
        logger.debug(f"Decrypted {len(audio)} byte(s) of {audio_format.value} audio")
        return audio, audio_format

    def read_input(self, input_path: Path) -> bytes:
        try:
            return Path(input_path).read_bytes()
        except OSError as e:
            raise InputFileError(input_path, e.strerror or str(e)) from e

    def decode_file(self, input_path: Path) -> tuple[bytes, AudioFormat]:
        return self.decode_bytes(self.read_input(input_path))

    def get_final_path(self, input_path: Path) -> Path:
        input_path = Path(input_path)
        final_name = input_path.with_suffix(self.transcoder.output_extension).name
        if self.output_path:
            return Path(self.output_path) / final_name
        return input_path.with_name(final_name)

    def convert(self, input_path: Path) -> DecodeResult:
        input_path = Path(input_path)
        audio, audio_format = self.decode_file(input_path)
        final_path = self.transcoder.finalize(
            audio,
            audio_format,
            self.get_final_path(input_path),
        )
        return DecodeResult(
            input_path=input_path,
            final_path=final_path,
            audio_format=audio_format,
        )
