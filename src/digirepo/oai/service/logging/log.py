from __future__ import annotations

import logging
import socket
import threading
from collections.abc import Mapping, Sequence
from typing import Any

from flask import has_request_context, request as flask_request

from digirepo.oai.service.logging.configuration import LogLevel
from digirepo.oai.util.datetime_helpers import from_timestamp
from digirepo.oai.util.json import json_serializer


class JSONFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__()
        self.hostname = socket.getfqdn()
        self.main_thread_id = threading.main_thread().ident

    @staticmethod
    def _is_json_serializable(v: Any) -> bool:
        try:
            json_serializer(v)
            return True
        except (TypeError, ValueError):
            return False

    def format(self, record: logging.LogRecord) -> str:
        def ensure_str(s: Any) -> Any:
            """Ensure that unicode strings are used for a record's message.
            We don't want to try to interpolate an incompatible byte type; it
            could lead to a UnicodeDecodeError.
            """
            if isinstance(s, bytes):
                s = s.decode("utf-8")
            return s

        message = ensure_str(record.msg)
        if record.args:
            record_args: tuple[Any, ...] | dict[str, Any] | None = None
            if isinstance(record.args, Mapping):
                record_args = {
                    ensure_str(k): ensure_str(v) for k, v in record.args.items()
                }
            elif isinstance(record.args, Sequence):
                record_args = tuple(ensure_str(arg) for arg in record.args)

            if record_args is not None:
                try:
                    message = message % record_args
                except Exception as e:
                    # A broken log call must not break the request that made it,
                    # but it is reported so it can be fixed.
                    message = (
                        "Log message could not be formatted. Exception: %r. Original message: message=%r args=%r"
                        % (e, message, record_args)
                    )
        data: dict[str, Any] = dict(
            host=self.hostname,
            name=record.name,
            level=record.levelname,
            filename=record.filename,
            message=message,
            timestamp=from_timestamp(record.created).isoformat(),
        )
        if record.exc_info:
            data["traceback"] = self.formatException(record.exc_info)
        if record.process:
            data["process"] = record.process
        if record.thread and record.thread != self.main_thread_id:
            data["thread"] = record.thread
        if record.stack_info:
            data["stack"] = self.formatStack(record.stack_info)

        # Harvesters are identified by their request, so include it when we have one.
        if has_request_context():
            data["request"] = {
                "path": flask_request.path,
                "method": flask_request.method,
                "host": flask_request.host_url,
            }
            if flask_request.query_string:
                data["request"]["query"] = flask_request.query_string.decode()
            if user_agent := flask_request.headers.get("User-Agent"):
                data["request"]["user_agent"] = user_agent

            forwarded_for_list = []
            if forwarded_for := flask_request.headers.get("X-Forwarded-For"):
                forwarded_for_list.extend(
                    [ip.strip() for ip in forwarded_for.split(",")]
                )
            if remote_addr := flask_request.remote_addr:
                forwarded_for_list.append(remote_addr)
            if forwarded_for_list:
                data["request"]["forwarded_for"] = forwarded_for_list

        # Custom 'oai_' prefixed attributes added through `extra=` are included
        # with the prefix removed.
        for key, value in record.__dict__.items():
            if (
                key != (log_data_key := key.removeprefix("oai_"))
                and value is not None
                and self._is_json_serializable(value)
                and log_data_key not in data
            ):
                data[log_data_key] = value

        return json_serializer(data)


def create_stream_handler(formatter: logging.Formatter) -> logging.Handler:
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    return stream_handler


def select_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return JSONFormatter()
    return logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")


def setup_logging(
    level: LogLevel,
    verbose_level: LogLevel,
    stream: logging.Handler,
) -> None:
    # Set up the root logger
    logging.basicConfig(force=True, level=level.value, handlers=[stream])

    # Quieten libraries that log every statement or request at INFO.
    for logger in (
        "sqlalchemy.engine",
        "werkzeug",
    ):
        logging.getLogger(logger).setLevel(verbose_level.value)
