# dfhash/utils/logging.py
"""
Logging Utilities — one root configuration + optional library silencing

Intent
- Consistent log lines for every dfhash module through a single entrypoint.
- Keep the CLI quiet by default: results go to stdout, per-file errors are
  written by the orchestrator, logs only show up when a level is requested.
- Optionally drop INFO/DEBUG chatter from dataframe / IO libraries
  (numexpr thread notices, fsspec, pyarrow).

What this module guarantees
- **Idempotent root configuration:** configure_logging() never duplicates handlers.
- **Stable log format:** timestamp | level | logger | message.
- **Optional log-to-file:** adds a FileHandler next to the stream handler.
- **Library silencing:** NoisyLibFilter on root handlers and root logger;
  WARNING+ always passes.

Primary API
- configure_logging(level="WARNING", log_file=None, *, silence_library_logs=True)
- configure_logging_from_params(params, level=None, log_file=None)
- get_logger(name) -> logging.Logger (lazily configures defaults)

External dependencies
- Python stdlib: logging, pathlib
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"
_DEFAULT_LEVEL = "WARNING"

_CONFIGURED = False
_CURRENT_LOG_FILE: Optional[str] = None
_SILENCE_LIBRARY_LOGS: Optional[bool] = None  # None = never set explicitly

# Only namespaces that are consistently noisy at INFO/DEBUG.
_NOISY_PREFIXES = [
    "numexpr",
    "fsspec",
    "pyarrow",
]


class NoisyLibFilter(logging.Filter):
    """
    Drop INFO/DEBUG records from noisy library namespaces when enabled.
    WARNING+ always passes.
    """

    def __init__(self, *, enabled: bool, prefixes: list[str], min_level: int) -> None:
        super().__init__()
        self.enabled = enabled
        self.prefixes = prefixes
        self.min_level = min_level

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.enabled:
            return True
        if record.levelno >= self.min_level:
            return True
        name = record.name or ""
        return not any(name == p or name.startswith(p + ".") for p in self.prefixes)


def _make_filter(enabled: bool) -> NoisyLibFilter:
    return NoisyLibFilter(enabled=enabled, prefixes=list(_NOISY_PREFIXES), min_level=logging.WARNING)


def _install_noisy_filters(*, enabled: bool) -> None:
    """
    Refresh the NoisyLibFilter on every root handler and on the root logger.
    """
    root = logging.getLogger()
    targets: list[Any] = list(root.handlers) + [root]
    for t in targets:
        for f in list(t.filters):
            if isinstance(f, NoisyLibFilter):
                t.removeFilter(f)
        t.addFilter(_make_filter(enabled))


def _apply_library_log_silencing(silence: bool) -> None:
    level = logging.WARNING if silence else logging.NOTSET
    for name in _NOISY_PREFIXES:
        logging.getLogger(name).setLevel(level)
    _install_noisy_filters(enabled=silence)


def configure_logging(
    level: str = _DEFAULT_LEVEL,
    log_file: Optional[str] = None,
    *,
    silence_library_logs: bool = True,
) -> None:
    """
    Configure root logging (idempotent for handlers).
    Safe to call again to change the level, add a file handler or toggle silencing.
    """
    global _CONFIGURED, _CURRENT_LOG_FILE, _SILENCE_LIBRARY_LOGS

    root = logging.getLogger()
    root_level = getattr(logging, str(level).upper(), None)
    if not isinstance(root_level, int):
        raise ValueError(f"Invalid log level: {level}")
    root.setLevel(root_level)

    formatter = logging.Formatter(fmt=_DEFAULT_FORMAT, datefmt=_DEFAULT_DATEFMT)

    has_stream = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in root.handlers
    )
    if not has_stream:
        sh = logging.StreamHandler()
        sh.setFormatter(formatter)
        root.addHandler(sh)

    if log_file:
        target = Path(log_file).resolve()
        target.parent.mkdir(parents=True, exist_ok=True)
        has_file = any(
            isinstance(h, logging.FileHandler) and Path(h.baseFilename).resolve() == target
            for h in root.handlers
        )
        if not has_file:
            fh = logging.FileHandler(str(target), encoding="utf-8")
            fh.setFormatter(formatter)
            root.addHandler(fh)
        _CURRENT_LOG_FILE = str(target)

    if _SILENCE_LIBRARY_LOGS is None or _SILENCE_LIBRARY_LOGS != silence_library_logs:
        _apply_library_log_silencing(silence_library_logs)
        _SILENCE_LIBRARY_LOGS = silence_library_logs
    else:
        # a new handler may have been added above
        _install_noisy_filters(enabled=silence_library_logs)

    _CONFIGURED = True


def configure_logging_from_params(
    params: Any,
    *,
    level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """
    Apply the `logging` block of ParametersConfig; explicit args win.
    """
    cfg = getattr(params, "logging", None)
    configure_logging(
        level=level or getattr(cfg, "level", _DEFAULT_LEVEL),
        log_file=log_file or getattr(cfg, "log_file", None),
        silence_library_logs=bool(getattr(cfg, "silence_library_logs", True)),
    )


def get_logger(name: str) -> logging.Logger:
    """
    Module logger; handlers live on root only.
    """
    if not _CONFIGURED:
        configure_logging(level=_DEFAULT_LEVEL, log_file=None, silence_library_logs=True)
    return logging.getLogger(name)


__all__ = ["get_logger", "configure_logging", "configure_logging_from_params", "NoisyLibFilter"]
