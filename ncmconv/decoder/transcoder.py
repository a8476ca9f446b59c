import logging
import shutil
import subprocess
import uuid
from pathlib import Path

from .constants import (
    DEFAULT_OUTPUT_EXTENSION,
    TEMP_FILE_EXTENSION,
    TEMP_FILE_TEMPLATE,
)
from .enums import AudioFormat
from .exceptions import TranscoderExitError, TranscoderNotFoundError

logger = logging.getLogger(__name__)


class NcmTranscoder:
    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        temp_path: str = None,
        output_extension: str = DEFAULT_OUTPUT_EXTENSION,
    ):
        self.ffmpeg_path = ffmpeg_path
        self.temp_path = temp_path
        if output_extension and not output_extension.startswith("."):
            output_extension = "." + output_extension
        self.output_extension = output_extension
        self.initialize()

    def initialize(self):
        self._initialize_binary_paths()

    def _initialize_binary_paths(self):
        self.full_ffmpeg_path = shutil.which(self.ffmpeg_path)

    def get_random_uuid(self) -> str:
        return uuid.uuid4().hex[:8]

    def get_temp_path(self, final_path: Path, file_extension: str) -> Path:
        temp_folder = Path(self.temp_path) if self.temp_path else final_path.parent
        return temp_folder / TEMP_FILE_TEMPLATE.format(
            stem=final_path.stem,
            random_uuid=self.get_random_uuid(),
            extension=file_extension,
        )

    def write_temp_file(self, audio: bytes, temp_path: Path) -> None:
        temp_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path.write_bytes(audio)

    def move_to_final_path(self, stage_path: Path, final_path: Path) -> None:
        final_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(stage_path, final_path)

    def cleanup_temp(self, temp_path: Path) -> None:
        if temp_path.exists():
            temp_path.unlink()
            logger.debug(f'Removed temporary file "{temp_path}"')

    def finalize(
        self,
        audio: bytes,
        audio_format: AudioFormat,
        final_path: Path,
    ) -> Path:
        final_path = Path(final_path)

        if audio_format == AudioFormat.FLAC:
            stage_path = final_path.with_name(
                self.get_temp_path(final_path, self.output_extension).name
            )
            try:
                self.write_temp_file(audio, stage_path)
                self.move_to_final_path(stage_path, final_path)
            finally:
                self.cleanup_temp(stage_path)
            logger.debug(f'Moved FLAC stream to "{final_path}"')
            return final_path

        temp_path = self.get_temp_path(final_path, TEMP_FILE_EXTENSION)
        try:
            self.write_temp_file(audio, temp_path)
            self.transcode(temp_path, final_path)
        finally:
            self.cleanup_temp(temp_path)
        return final_path

    def transcode(self, input_path: Path, output_path: Path) -> None:
        if not self.full_ffmpeg_path:
            raise TranscoderNotFoundError(self.ffmpeg_path)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        args = [
            self.full_ffmpeg_path,
            "-y",
            "-i",
            str(input_path),
            str(output_path),
        ]
        logger.debug(f"Running {args}")

        try:
            proc = subprocess.run(
                args,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise TranscoderNotFoundError(self.ffmpeg_path) from e

        if proc.returncode != 0:
            raise TranscoderExitError(
                self.ffmpeg_path,
                proc.returncode,
                proc.stderr.decode("utf-8", errors="replace"),
            )
