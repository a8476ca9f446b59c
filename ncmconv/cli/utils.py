import logging
from pathlib import Path

import click

from ..decoder.constants import NCM_FILE_EXTENSION


class CustomLoggerFormatter(logging.Formatter):
    base_format = "[%(levelname)-8s %(asctime)s]"
    format_colors = {
        logging.DEBUG: dict(dim=True),
        logging.INFO: dict(fg="green"),
        logging.WARNING: dict(fg="yellow"),
        logging.ERROR: dict(fg="red"),
        logging.CRITICAL: dict(fg="red", bold=True),
    }
    date_format = "%H:%M:%S"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        return logging.Formatter(
            (
                click.style(self.base_format, **self.format_colors.get(record.levelno))
                if self.use_colors
                else self.base_format
            )
            + " %(message)s",
            datefmt=self.date_format,
        ).format(record)


def read_paths_from_txt(txt_paths: list[str]) -> list[str]:
    paths = []
    for txt_path in txt_paths:
        if Path(txt_path).is_file():
            paths.extend(
                line.strip()
                for line in Path(txt_path).read_text(encoding="utf-8").splitlines()
                if line.strip()
            )
    return paths


def expand_input_paths(paths: list[str]) -> list[Path]:
    expanded = []
    for path in map(Path, paths):
        if path.is_dir():
            expanded.extend(
                sorted(
                    child
                    for child in path.iterdir()
                    if child.is_file() and child.suffix.lower() == NCM_FILE_EXTENSION
                )
            )
        else:
            expanded.append(path)
    return expanded
