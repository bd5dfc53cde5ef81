"""Logging setup for fuzzing trials.

Every record logged while a trial runs carries the trial's id and
fulfillment action, added by a ``TrialLogFilter`` that the selector
installs for the duration of the trial. The selection record additionally
carries the chosen mutation and order index. Both formatters render those
fields: ``JSONFormatter`` as a nested ``trial`` object for CI runs,
``DevFormatter`` as a short tag in front of the message.
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

TRIAL_FIELDS = ("trial_id", "action", "mutation", "order_index")
OUTCOME_FIELDS = ("candidates", "expected", "observed")


def trial_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Trial fields present on ``record``, in ``TRIAL_FIELDS`` order."""
    return {
        key: getattr(record, key)
        for key in TRIAL_FIELDS
        if getattr(record, key, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.pathname:
            log_entry["location"] = f"{record.module}.{record.funcName}:{record.lineno}"

        trial = trial_fields(record)
        if trial:
            log_entry["trial"] = trial

        for key in OUTCOME_FIELDS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else "Unknown",
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_entry, default=str)


class DevFormatter(logging.Formatter):
    """Colored single-line formatter for local runs."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    @staticmethod
    def trial_tag(record: logging.LogRecord) -> str:
        """``[1a2b3c4d fulfillOrder bad_signature_v#2]``, or ``""`` outside a trial."""
        fields = trial_fields(record)
        parts = []
        if "trial_id" in fields:
            parts.append(str(fields["trial_id"])[:8])
        if "action" in fields:
            parts.append(str(fields["action"]))
        if "mutation" in fields:
            mutation = str(fields["mutation"])
            if "order_index" in fields:
                mutation += f"#{fields['order_index']}"
            parts.append(mutation)
        return f"[{' '.join(parts)}]" if parts else ""

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        ts = datetime.now(timezone.utc).strftime("%H:%M:%S")
        prefix = f"{color}{ts} [{record.levelname:>8s}]{self.RESET}"

        msg = record.getMessage()
        tag = self.trial_tag(record)
        if tag:
            msg = f"{tag} {msg}"

        base = f"{prefix} {record.name}: {msg}"
        if record.exc_info and record.exc_info[1]:
            base += "\n" + self.formatException(record.exc_info)
        return base


def setup_logging(env: str = "development", log_level: str = "INFO") -> None:
    """Configure root logging.

    Records go to stderr so that command output on stdout stays parseable.

    Args:
        env: Environment (development/staging/production)
        log_level: Minimum log level
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if env in ("staging", "production") else DevFormatter())
    root.addHandler(handler)


class TrialLogFilter(logging.Filter):
    """Stamps the running trial's id and action onto each record."""

    def __init__(self, trial_id: str, action: str) -> None:
        super().__init__()
        self.trial_id = trial_id
        self.action = action

    def filter(self, record: logging.LogRecord) -> bool:
        record.trial_id = self.trial_id  # type: ignore[attr-defined]
        if getattr(record, "action", None) is None:
            record.action = self.action  # type: ignore[attr-defined]
        return True


@contextmanager
def trial_logging(trial_id: str, action: str, *loggers: logging.Logger) -> Iterator[TrialLogFilter]:
    """Install a ``TrialLogFilter`` on ``loggers`` until the block exits.

    Logger filters do not see records propagated from child loggers, so
    every logger that emits during the trial has to be listed.
    """
    trial_filter = TrialLogFilter(trial_id, action)
    for log in loggers:
        log.addFilter(trial_filter)
    try:
        yield trial_filter
    finally:
        for log in loggers:
            log.removeFilter(trial_filter)
