"""Structured logging for contract runs.

structlog events are rendered by stdlib handlers, one per configured output
(stderr, stdout or a file), each with its own level and renderer. Events
emitted while a contract test runs carry that test's ``contract_id``; the
first file output is remembered so a failing run can point at it.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from callcontract.config.models import LoggingConfig, LogOutputConfig

_CONTRACT_KEY = "contract_id"
_CONSOLE = ("stderr", "stdout")

_PRE_CHAIN: tuple[structlog.types.Processor, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
)

_log_file_path: Path | None = None


# -- contract correlation ----------------------------------------------------


def get_contract_id() -> str | None:
    value = structlog.contextvars.get_contextvars().get(_CONTRACT_KEY)
    return None if value is None else str(value)


def set_contract_id(contract_id: str) -> str:
    """Tag subsequent log events with the contract test currently running."""
    structlog.contextvars.bind_contextvars(**{_CONTRACT_KEY: contract_id})
    return contract_id


def clear_contract_id() -> None:
    structlog.contextvars.unbind_contextvars(_CONTRACT_KEY)


@contextmanager
def contract_context(contract_id: str) -> Iterator[str]:
    """Bind ``contract_id`` for the duration of the block, then restore the previous one."""
    tokens = structlog.contextvars.bind_contextvars(**{_CONTRACT_KEY: contract_id})
    try:
        yield contract_id
    finally:
        structlog.contextvars.reset_contextvars(**tokens)


def get_log_file_path() -> Path | None:
    """First file output of the active configuration, if any."""
    return _log_file_path


# -- configuration -----------------------------------------------------------


def _level(name: str) -> int:
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def _renderer(fmt: str, *, colors: bool) -> structlog.types.Processor:
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=colors, pad_level=False)


def _handler(output: LogOutputConfig, default_level: int) -> logging.Handler:
    handler: logging.Handler
    if output.destination in _CONSOLE:
        # Looked up now, not at import: test runners swap the streams.
        stream = getattr(sys, output.destination)
        handler = logging.StreamHandler(stream)
        colors = stream.isatty()
    else:
        path = Path(output.destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        colors = False

    handler.setLevel(_level(output.level) if output.level else default_level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(output.format, colors=colors),
            ],
            foreign_pre_chain=list(_PRE_CHAIN),
        )
    )
    return handler


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Install structlog and one stdlib handler per output.

    Args:
        config: Full logging configuration. Wins over the other arguments.
        json_format: Render the single stderr output as JSON.
        level: Level of the single stderr output.
    """
    global _log_file_path
    from callcontract.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level.upper(),  # type: ignore[arg-type]
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )
    root_level = _level(config.level)

    structlog.configure(
        processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfiguration (CLI -v, pytest session) must reach existing loggers.
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(root_level)

    _log_file_path = None
    for output in config.outputs:
        root.addHandler(_handler(output, root_level))
        if _log_file_path is None and output.destination not in _CONSOLE:
            _log_file_path = Path(output.destination)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    # A lazy proxy: binding happens on first use, after configure_logging().
    if name:
        return structlog.get_logger(name)  # type: ignore[no-any-return]
    return structlog.get_logger()  # type: ignore[no-any-return]
