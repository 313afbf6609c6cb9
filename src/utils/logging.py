"""
JSON logging for cross-validation runs.

Records go to stdout as one JSON object per line with a UTC timestamp. Every
record of a run carries the same run metadata: git_sha, global_seed, the
config_hash of the run config and the fold layout (k, and n_samples once the
dataset is loaded).
"""

import hashlib
import json
import logging
import subprocess
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "taskName",
}


class JSONFormatter(logging.Formatter):
    """Render a record as a JSON line, merged with per-run metadata.

    ``run_fields`` is mutable so fields that only become known mid-run
    (``n_samples`` after the dataset is read) can be bound later through
    :func:`bind_run_fields`.
    """

    def __init__(self, run_fields: dict[str, Any] | None = None):
        super().__init__()
        self.run_fields = dict(run_fields or {})

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            **self.run_fields,
        }
        payload.update(
            (key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRS
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def get_git_sha() -> str:
    """Short SHA of HEAD, or 'unknown' outside a git checkout."""
    try:
        completed = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            check=True,
            timeout=5,
        )
    except (subprocess.CalledProcessError, FileNotFoundError, subprocess.TimeoutExpired):
        return "unknown"
    return completed.stdout.strip()


def _canonical(value: Any) -> Any:
    """Reduce a config value to plain JSON types with a stable ordering.

    Raises:
        TypeError: For values with no canonical JSON form
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return _canonical(value.value)
    if isinstance(value, (Path, datetime)):
        return str(value) if isinstance(value, Path) else value.isoformat()
    if isinstance(value, dict):
        return {str(key): _canonical(item) for key, item in sorted(value.items())}
    if isinstance(value, (list, tuple)):
        return [_canonical(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted(_canonical(item) for item in value)
    raise TypeError(f"Cannot deterministically hash object of type {type(value).__name__}")


def compute_config_hash(config: dict[str, Any]) -> str:
    """First 16 hex chars of the SHA-256 of the canonical JSON form of ``config``.

    Raises:
        TypeError: If config contains values with no canonical JSON form
    """
    canonical = json.dumps(_canonical(config), sort_keys=True)
    return hashlib.sha256(canonical.encode()).hexdigest()[:16]


def setup_logging(
    level: str = "INFO",
    config: dict[str, Any] | None = None,
    global_seed: int = 42,
    k: int | None = None,
    n_samples: int | None = None,
    extra_fields: dict[str, Any] | None = None,
) -> logging.Logger:
    """Install a single stdout JSON handler on the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        config: Run configuration; its hash is attached as ``config_hash``
        global_seed: Seed used for shuffling
        k: Number of folds of the run
        n_samples: Number of samples of the run, if already known
        extra_fields: Additional fields attached to every record

    Returns:
        The root logger

    Raises:
        ValueError: If level is not a known logging level name
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level!r}")

    run_fields: dict[str, Any] = {"git_sha": get_git_sha(), "global_seed": global_seed}
    if config is not None:
        run_fields["config_hash"] = compute_config_hash(config)
    for name, value in (("k", k), ("n_samples", n_samples)):
        if value is not None:
            run_fields[name] = value
    run_fields.update(extra_fields or {})

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter(run_fields))

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)
    return root_logger


def bind_run_fields(**fields: Any) -> None:
    """Attach fields to every subsequent record of the JSON handlers installed
    by :func:`setup_logging`."""
    for handler in logging.getLogger().handlers:
        if isinstance(handler.formatter, JSONFormatter):
            handler.formatter.run_fields.update(fields)


def get_logger(name: str) -> logging.Logger:
    """Module logger; pass ``__name__``."""
    return logging.getLogger(name)
