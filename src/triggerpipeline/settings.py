from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .model import RetryPolicy


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


POLL_INTERVAL = float(os.environ.get("TP_POLL_INTERVAL", "1"))
TRIGGER_TIMEOUT = float(os.environ.get("TP_TRIGGER_TIMEOUT", "60"))
CANCEL_TIMEOUT = float(os.environ.get("TP_CANCEL_TIMEOUT", "300"))
BOOTSTRAP_TIMEOUT = float(os.environ.get("TP_BOOTSTRAP_TIMEOUT", "60"))
CREATION_RETRY_ATTEMPTS = int(os.environ.get("TP_CREATION_RETRY_ATTEMPTS", "3"))
CREATION_RETRY_DELAY = float(os.environ.get("TP_CREATION_RETRY_DELAY", "10"))
TAIL_MAX_DURATION = float(os.environ.get("TP_TAIL_MAX_DURATION", str(100 * 60 * 60)))
FIRST_BUILD_NUMBER = int(os.environ.get("TP_FIRST_BUILD_NUMBER", "1"))
CREATE_ON_LOOKUP_ERROR = _env_bool("TP_CREATE_ON_LOOKUP_ERROR", True)

REGISTRY_DATABASE_URL = os.environ.get(
    "TP_REGISTRY_DATABASE_URL",
    f"sqlite:///{Path('~/.tp/registry.db').expanduser()}",
)

# name of the registered server to use in batch mode when --jenkins is not given
TRIGGER_JENKINS_SERVER_ENV = "TRIGGER_JENKINS_SERVER"


@dataclass(frozen=True)
class TriggerSettings:
    """Timings and policies shared by the resolver, trigger, canceller and bootstrapper."""
    creation_retry_attempts: int = CREATION_RETRY_ATTEMPTS
    creation_retry_delay: float = CREATION_RETRY_DELAY
    poll_interval: float = POLL_INTERVAL
    trigger_timeout: float = TRIGGER_TIMEOUT
    cancel_timeout: float = CANCEL_TIMEOUT
    bootstrap_timeout: float = BOOTSTRAP_TIMEOUT
    tail_max_duration: float = TAIL_MAX_DURATION

    # multi-branch scans are expected to number the first build of a new branch 1
    first_build_number: int = FIRST_BUILD_NUMBER

    # when True any failed lookup (not only a 404) leads to a create attempt
    create_on_lookup_error: bool = CREATE_ON_LOOKUP_ERROR

    @property
    def creation_retry(self) -> RetryPolicy:
        return RetryPolicy(attempts=self.creation_retry_attempts, delay=self.creation_retry_delay)
