import asyncio
import logging
import typing
import uuid
from pathlib import Path

from .decoder import (
    ConversionProgress,
    ConversionStatus,
    DecodeResult,
    NcmDecoder,
)
from .utils import safe_gather

logger = logging.getLogger(__name__)

ProgressListener = typing.Callable[[ConversionProgress], None]


class NcmConverter:
    """
    Runs decode requests and reports their progress.

    Every request emits a "processing" event followed by exactly one of
    "completed" or "error" to each registered listener.
    """

    def __init__(
        self,
        decoder: NcmDecoder,
        listeners: list[ProgressListener] = None,
    ):
        self.decoder = decoder
        self.listeners = list(listeners or [])

    def add_listener(self, listener: ProgressListener) -> None:
        self.listeners.append(listener)

    def get_request_id(self) -> str:
        return uuid.uuid4().hex[:8]

    def emit(self, progress: ConversionProgress) -> None:
        for listener in self.listeners:
            listener(progress)

    def convert(self, input_path: Path, request_id: str = None) -> DecodeResult:
        request_id = request_id or self.get_request_id()
        self.emit(ConversionProgress(request_id, 0, ConversionStatus.PROCESSING))

        try:
            result = self.decoder.convert(input_path)
        except Exception as e:
            logger.debug(f'Request {request_id} for "{input_path}" failed: {e}')
            self.emit(
                ConversionProgress(request_id, 0, ConversionStatus.ERROR, str(e))
            )
            raise

        self.emit(ConversionProgress(request_id, 100, ConversionStatus.COMPLETED))
        return result

    async def convert_async(
        self,
        input_path: Path,
        request_id: str = None,
    ) -> DecodeResult:
        return await asyncio.to_thread(self.convert, input_path, request_id)

    async def convert_many(
        self,
        input_paths: list[Path],
        limit: int = 4,
        request_ids: list[str] = None,
    ) -> list[DecodeResult | Exception]:
        request_ids = request_ids or [None] * len(input_paths)
        return await safe_gather(
            *(
                self.convert_async(input_path, request_id)
                for input_path, request_id in zip(input_paths, request_ids)
            ),
            limit=limit,
        )
