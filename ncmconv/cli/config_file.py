import configparser
import typing
from pathlib import Path

import click
from click.types import BoolParamType

from .constants import EXCLUDED_CONFIG_FILE_PARAMS


class ConfigFile:
    def __init__(
        self,
        config_path: str,
        section_name: str = "ncmconv",
    ) -> None:
        self.config_path = config_path
        self.section_name = section_name

        self._read_config_file()

    @property
    def section(self) -> configparser.SectionProxy:
        return self.config[self.section_name]

    def _read_config_file(self) -> None:
        self.config = configparser.ConfigParser(interpolation=None)

        if Path(self.config_path).exists():
            self.config.read(self.config_path, encoding="utf-8")
        else:
            Path(self.config_path).parent.mkdir(parents=True, exist_ok=True)

        if not self.config.has_section(self.section_name):
            self.config.add_section(self.section_name)

    def _write_config_file(self) -> None:
        with open(self.config_path, "w", encoding="utf-8") as config_file:
            self.config.write(config_file)

    @staticmethod
    def _is_config_param(param: click.Parameter) -> bool:
        return param.name not in EXCLUDED_CONFIG_FILE_PARAMS

    @staticmethod
    def _serialize_default(param: click.Parameter) -> str:
        if param.default is None:
            return "null"
        if isinstance(param.type, BoolParamType):
            return str(param.default is True).lower()
        return str(param.default)

    def add_params_default_to_config(
        self,
        params: list[click.Parameter],
    ) -> None:
        missing = [
            param
            for param in params
            if self._is_config_param(param) and param.name not in self.section
        ]
        for param in missing:
            self.section[param.name] = self._serialize_default(param)

        if missing:
            self._write_config_file()

    def cleanup_unknown_params(
        self,
        params: list[click.Parameter],
    ) -> None:
        known = {param.name for param in params if self._is_config_param(param)}
        unknown = [key for key in self.section if key not in known]
        for key in unknown:
            self.config.remove_option(self.section_name, key)

        if unknown:
            self._write_config_file()

    def parse_params_from_config(
        self,
        params: list[click.Parameter],
    ) -> dict[str, typing.Any]:
        parsed_params = {}

        for param in params:
            if param.name not in self.section:
                continue
            value = self.section[param.name]
            parsed_params[param.name] = (
                None if value == "null" else param.type_cast_value(None, value)
            )

        return parsed_params
