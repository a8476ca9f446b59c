import asyncio
import inspect
import logging
from functools import wraps
from pathlib import Path

import click

from .. import __version__
from ..converter import NcmConverter
from ..decoder import (
    ConversionProgress,
    ConversionStatus,
    NcmDecoder,
    NcmTranscoder,
)
from ..watcher import WatchHandle
from .config_file import ConfigFile
from .constants import X_NOT_IN_PATH
from .utils import CustomLoggerFormatter, expand_input_paths, read_paths_from_txt

logger = logging.getLogger(__name__)

transcoder_sig = inspect.signature(NcmTranscoder.__init__)
decoder_sig = inspect.signature(NcmDecoder.__init__)
convert_many_sig = inspect.signature(NcmConverter.convert_many)


def load_config_file(
    ctx: click.Context,
    param: click.Parameter,
    no_config_file: bool,
) -> click.Context:
    if no_config_file:
        return ctx

    config_file = ConfigFile(ctx.params["config_path"])
    config_file.cleanup_unknown_params(ctx.command.params)
    config_file.add_params_default_to_config(
        ctx.command.params,
    )
    parsed_params = config_file.parse_params_from_config(
        [
            param
            for param in ctx.command.params
            if ctx.get_parameter_source(param.name)
            != click.core.ParameterSource.COMMANDLINE
        ]
    )
    ctx.params.update(parsed_params)

    return ctx


def make_sync(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        return asyncio.run(func(*args, **kwargs))

    return wrapper


def setup_logging(log_level: str, log_file: str) -> None:
    root_logger = logging.getLogger(__name__.split(".")[0])
    root_logger.setLevel(log_level)
    root_logger.propagate = False

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(CustomLoggerFormatter())
    root_logger.addHandler(stream_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(CustomLoggerFormatter(use_colors=False))
        root_logger.addHandler(file_handler)


def log_progress(progress: ConversionProgress) -> None:
    request_progress = click.style(f"[File {progress.id}]", dim=True)
    if progress.status == ConversionStatus.PROCESSING:
        logger.debug(request_progress + " Started")
    elif progress.status == ConversionStatus.COMPLETED:
        logger.debug(request_progress + " Completed")
    else:
        logger.debug(request_progress + f" Failed: {progress.message}")


async def convert_paths(
    converter: NcmConverter,
    input_paths: list[Path],
    workers: int,
    no_exceptions: bool,
    request_ids: list[str] = None,
) -> int:
    if request_ids is None:
        request_ids = [
            f"{path_index}/{len(input_paths)}"
            for path_index in range(1, len(input_paths) + 1)
        ]
    results = await converter.convert_many(
        input_paths,
        limit=workers,
        request_ids=request_ids,
    )

    error_count = 0
    for request_id, input_path, result in zip(request_ids, input_paths, results):
        request_progress = click.style(f"[File {request_id}]", dim=True)
        if isinstance(result, Exception):
            error_count += 1
            logger.error(
                request_progress + f' Error converting "{input_path}": {result}',
                exc_info=(
                    None
                    if no_exceptions
                    else (type(result), result, result.__traceback__)
                ),
            )
            continue
        logger.info(
            request_progress
            + f' Converted "{input_path.name}" to "{result.final_path}"'
            + f" ({result.audio_format.value})"
        )
    return error_count


async def watch_directory(
    converter: NcmConverter,
    watch_path: str,
    workers: int,
    no_exceptions: bool,
    watch_handle: WatchHandle = None,
) -> int:
    watch_handle = watch_handle or WatchHandle()
    watcher = watch_handle.start(watch_path)
    logger.info(f'Watching "{watch_path}" for new files, press Ctrl+C to stop')

    error_count = 0
    try:
        while True:
            input_path = await asyncio.to_thread(watcher.get)
            if input_path is None:
                break
            logger.info(f'Detected "{input_path.name}"')
            error_count += await convert_paths(
                converter,
                [input_path],
                workers,
                no_exceptions,
                request_ids=[converter.get_request_id()],
            )
    finally:
        watch_handle.stop()

    return error_count


@click.command()
@click.help_option("-h", "--help")
@click.version_option(__version__, "-v", "--version")
# CLI specific options
@click.argument(
    "paths",
    nargs=-1,
    type=str,
)
@click.option(
    "--read-paths-as-txt",
    "-r",
    is_flag=True,
    default=False,
    help="Read input paths from text files",
)
@click.option(
    "--watch",
    "-w",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, resolve_path=True),
    default=None,
    help="Watch a directory and convert new .ncm files",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=convert_many_sig.parameters["limit"].default,
    help="Number of concurrent conversions",
)
@click.option(
    "--config-path",
    type=click.Path(file_okay=True, dir_okay=False, writable=True, resolve_path=True),
    default=str(Path.home() / ".ncmconv" / "config.ini"),
    help="Config file path",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="INFO",
    help="Logging level",
)
@click.option(
    "--log-file",
    type=click.Path(file_okay=True, dir_okay=False, writable=True, resolve_path=True),
    default=None,
    help="Log file path",
)
@click.option(
    "--no-exceptions",
    is_flag=True,
    default=False,
    help="Don't print exceptions",
)
# Decoder specific options
@click.option(
    "--output-path",
    "-o",
    type=click.Path(file_okay=False, dir_okay=True, writable=True, resolve_path=True),
    default=decoder_sig.parameters["output_path"].default,
    help="Output directory path (defaults to the input file's directory)",
)
# Transcoder specific options
@click.option(
    "--temp-path",
    type=click.Path(file_okay=False, dir_okay=True, writable=True, resolve_path=True),
    default=transcoder_sig.parameters["temp_path"].default,
    help="Temporary directory path",
)
@click.option(
    "--ffmpeg-path",
    type=str,
    default=transcoder_sig.parameters["ffmpeg_path"].default,
    help="FFmpeg executable path",
)
@click.option(
    "--output-extension",
    type=str,
    default=transcoder_sig.parameters["output_extension"].default,
    help="Output file extension",
)
# This option should always be last
@click.option(
    "--no-config-file",
    "-n",
    is_flag=True,
    default=False,
    callback=load_config_file,
    help="Don't use a config file",
)
@make_sync
async def main(
    paths: list[str],
    read_paths_as_txt: bool,
    watch: str,
    workers: int,
    config_path: str,
    log_level: str,
    log_file: str,
    no_exceptions: bool,
    output_path: str,
    temp_path: str,
    ffmpeg_path: str,
    output_extension: str,
    *args,
    **kwargs,
):
    setup_logging(log_level, log_file)

    if not paths and not watch:
        raise click.UsageError("Provide at least one path or a directory to watch")

    logger.info(f"Starting ncmconv {__version__}")

    transcoder = NcmTranscoder(
        ffmpeg_path=ffmpeg_path,
        temp_path=temp_path,
        output_extension=output_extension,
    )
    if not transcoder.full_ffmpeg_path:
        logger.warning(
            X_NOT_IN_PATH.format("ffmpeg", ffmpeg_path)
            + ", only files that already contain FLAC audio will be converted"
        )

    decoder = NcmDecoder(
        transcoder=transcoder,
        output_path=output_path,
    )
    converter = NcmConverter(decoder, listeners=[log_progress])

    if read_paths_as_txt:
        paths = read_paths_from_txt(paths)
    input_paths = expand_input_paths(paths)

    error_count = 0
    if input_paths:
        error_count += await convert_paths(
            converter,
            input_paths,
            workers,
            no_exceptions,
        )
    elif paths:
        logger.warning("No .ncm files found in the given paths")

    if watch:
        try:
            error_count += await watch_directory(
                converter,
                watch,
                workers,
                no_exceptions,
            )
        except (KeyboardInterrupt, asyncio.CancelledError):
            logger.info("Stopped watching")

    logger.info(f"Finished with {error_count} error(s)")
