"""structlog setup for the CLI and the collage engine."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Optional, Union

import structlog

# Pillow logs every plugin probe and PNG chunk at DEBUG.
_NOISY_LOGGERS = ("PIL", "PIL.Image", "PIL.PngImagePlugin", "PIL.TiffImagePlugin")

_DEFAULT_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def _handlers(log_file: Optional[Union[str, Path]]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    return handlers


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """Route structlog events through stdlib logging.

    Parameters
    ----------
    level:
        Textual logging level (e.g. ``"DEBUG"``).
    json_output:
        Render one JSON object per event instead of the console format.
    log_file:
        Optional path that receives a copy of every event.
    """

    level = level.upper()
    logging.basicConfig(level=level, format="%(message)s", handlers=_handlers(log_file), force=True)

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[*_DEFAULT_PROCESSORS, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    noisy_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def render_context(**values: Any) -> Iterator[None]:
    """Attach ``values`` to every event logged while a collage is rendered.

    Events from the selector and compositor carry the playlist and image
    kind this way without those modules knowing about either.
    """

    with structlog.contextvars.bound_contextvars(**values):
        yield
