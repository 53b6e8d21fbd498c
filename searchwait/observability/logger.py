"""Loguru-style logger backed by stdlib logging + rich.

Usage::

    from searchwait.observability.logger import logger

    log = logger.bind(project_id="abc", cluster="Cluster0")
    log.info("Waiting for {state}", state="IDLE")

Records go to the ``searchwait`` stdlib logger, which has no handlers
until ``logger.add()`` attaches one.
"""

from __future__ import annotations

import gzip
import inspect
import logging
import logging.handlers
import os
import shutil
import sys
from typing import TextIO

from rich.logging import RichHandler

_root = logging.getLogger("searchwait")


def _caller_frame() -> inspect.FrameInfo:
    return inspect.stack(0)[3]


def _format_message(msg: str, args: tuple[object, ...], kwargs: dict[str, object]) -> str:
    if kwargs:
        return msg.format(**kwargs)
    if args:
        return msg.format(*args)
    return msg


class BoundLogger:
    __slots__ = ("_extras",)

    def __init__(self, extras: dict[str, object] | None = None) -> None:
        self._extras = extras or {}

    @property
    def extras(self) -> dict[str, object]:
        return dict(self._extras)

    def bind(self, **kwargs: object) -> BoundLogger:
        return BoundLogger({**self._extras, **kwargs})

    def _log(self, level: int, message: str, /, *args: object, **kwargs: object) -> None:
        exc_info = kwargs.pop("exc_info", False)
        frame = _caller_frame()
        module = frame.frame.f_globals.get("__name__", "searchwait")
        lib_logger = logging.getLogger(module)
        if not lib_logger.isEnabledFor(level):
            return
        record = lib_logger.makeRecord(
            name=lib_logger.name,
            level=level,
            fn=frame.filename,
            lno=frame.lineno,
            msg=_format_message(message, args, kwargs),
            args=(),
            exc_info=sys.exc_info() if exc_info else None,
            func=frame.function,
        )
        for k, v in self._extras.items():
            setattr(record, k, v)
        record.extras = self._extras  # type: ignore[attr-defined]
        lib_logger.handle(record)

    def debug(self, message: str, /, *args: object, **kwargs: object) -> None:
        self._log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: str, /, *args: object, **kwargs: object) -> None:
        self._log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: str, /, *args: object, **kwargs: object) -> None:
        self._log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: str, /, *args: object, **kwargs: object) -> None:
        self._log(logging.ERROR, message, *args, **kwargs)

    def exception(self, message: str, /, *args: object, **kwargs: object) -> None:
        kwargs["exc_info"] = True
        self._log(logging.ERROR, message, *args, **kwargs)


class _ExtrasFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        extras = getattr(record, "extras", None)
        if extras:
            text += " | " + " ".join(f"{k}={v}" for k, v in extras.items())
        return text


def _namer(name: str) -> str:
    return name + ".gz"


def _rotator(source: str, dest: str) -> None:
    with open(source, "rb") as f_in, gzip.open(dest, "wb") as f_out:
        shutil.copyfileobj(f_in, f_out)
    os.remove(source)


def _parse_rotation_bytes(rotation: str) -> int:
    match rotation.strip().split():
        case [num, unit] if unit.upper() == "MB":
            return int(num) * 1024 * 1024
        case [num, unit] if unit.upper() == "KB":
            return int(num) * 1024
        case _:
            return 10 * 1024 * 1024


def _make_file_handler(
    path: str,
    *,
    level: int,
    rotation: str | None,
    retention: int | None,
    compression: str | None,
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=_parse_rotation_bytes(rotation) if rotation else 10 * 1024 * 1024,
        backupCount=retention if retention is not None else 5,
    )
    if compression:
        handler.namer = _namer
        handler.rotator = _rotator
    handler.setLevel(level)
    handler.setFormatter(_ExtrasFormatter(
        "%(asctime)s.%(msecs)03d | %(levelname)-8s | "
        "%(name)s:%(funcName)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    return handler


def _make_console_handler(level: int, stream: TextIO | None) -> logging.Handler:
    from rich.console import Console

    handler = RichHandler(
        level=level,
        console=Console(file=stream) if stream is not None else None,
        show_time=True,
        show_level=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setLevel(level)
    return handler


class Logger:
    """Process-wide facade; ``bind()`` returns cheap immutable loggers."""

    def __init__(self) -> None:
        self._bound = BoundLogger()
        self._handlers: dict[int, logging.Handler] = {}
        self._next_id = 0

    def bind(self, **kwargs: object) -> BoundLogger:
        return self._bound.bind(**kwargs)

    def debug(self, message: str, /, *args: object, **kwargs: object) -> None:
        self._bound._log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: str, /, *args: object, **kwargs: object) -> None:
        self._bound._log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: str, /, *args: object, **kwargs: object) -> None:
        self._bound._log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: str, /, *args: object, **kwargs: object) -> None:
        self._bound._log(logging.ERROR, message, *args, **kwargs)

    def exception(self, message: str, /, *args: object, **kwargs: object) -> None:
        kwargs["exc_info"] = True
        self._bound._log(logging.ERROR, message, *args, **kwargs)

    def add(
        self,
        sink: str | TextIO,
        *,
        level: str = "INFO",
        rotation: str | None = None,
        retention: int | None = None,
        compression: str | None = None,
    ) -> int:
        """Attach a sink: a file path (rotating) or a text stream (rich console)."""
        numeric_level = getattr(logging, level.upper(), logging.INFO)

        match sink:
            case str() as path:
                handler = _make_file_handler(
                    path,
                    level=numeric_level,
                    rotation=rotation,
                    retention=retention,
                    compression=compression,
                )
            case stream:
                handler = _make_console_handler(numeric_level, stream)

        _root.addHandler(handler)
        self._next_id += 1
        self._handlers[self._next_id] = handler
        return self._next_id

    def remove(self, handler_id: int | None = None) -> None:
        if handler_id is None:
            for h in self._handlers.values():
                _root.removeHandler(h)
                h.close()
            self._handlers.clear()
            return
        if h := self._handlers.pop(handler_id, None):
            _root.removeHandler(h)
            h.close()


logger = Logger()

_root.setLevel(logging.DEBUG)
_root.propagate = False
_root.addHandler(logging.NullHandler())
