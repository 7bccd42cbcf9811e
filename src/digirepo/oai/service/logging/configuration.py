from __future__ import annotations

import logging
from enum import StrEnum, auto

from pydantic import field_validator
from pydantic_settings import SettingsConfigDict

from digirepo.oai.service.configuration.service_configuration import (
    ServiceConfiguration,
)


class LogLevel(StrEnum):
    """
    A helper class to represent log levels as an Enum.

    Since the logging module uses strings to represent log levels, the members of
    this enum can be passed directly to the logging module to set the log level.
    """

    @staticmethod
    def _generate_next_value_(
        name: str, start: int, count: int, last_values: list[str]
    ) -> str:
        """
        Return the upper-cased version of the member name, matching the
        level names used by the logging module.
        """
        return name.upper()

    debug = auto()
    info = auto()
    warning = auto()
    error = auto()

    @property
    def levelno(self) -> int:
        """
        Return the integer value used by the logging module for this log level.
        """
        return logging.getLevelNamesMapping()[self.value]

    @classmethod
    def from_level(cls, level: int | str) -> LogLevel:
        """
        Get a member of this enum from a string or integer log level.
        """
        if isinstance(level, int):
            parsed_level = logging.getLevelName(level)
        else:
            parsed_level = str(level).upper()

        try:
            return cls(parsed_level)
        except ValueError:
            raise ValueError(f"'{level}' is not a valid LogLevel") from None


class LoggingConfiguration(ServiceConfiguration):
    level: LogLevel = LogLevel.info
    # Level applied to chatty third-party loggers (SQLAlchemy engine, werkzeug).
    verbose_level: LogLevel = LogLevel.warning
    # Emit one JSON object per line instead of plain text.
    json_format: bool = True

    @field_validator("level", "verbose_level", mode="before")
    @classmethod
    def parse_level(cls, v: int | str) -> LogLevel:
        # Accept "debug" and 10 as well as "DEBUG".
        return LogLevel.from_level(v)

    model_config = SettingsConfigDict(env_prefix="DIGIREPO_LOG_")
