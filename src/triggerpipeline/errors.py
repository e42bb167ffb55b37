# errors.py
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class TriggerError(Exception):
    """
    Structured trigger error with enough context for:
      - clean CLI output
      - telling a timeout apart from bad configuration
      - debugging without full tracebacks
    """
    kind: str
    message: str
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


class ConfigurationInvalid(TriggerError):
    """Raised before any remote call when local inputs can't be used."""

    def __init__(self, message: str, **details):
        super().__init__(kind="configuration_invalid", message=message, details=details)


class PollTimeout(TriggerError):
    """A polling loop ran out of time without seeing the state it waited for."""

    def __init__(self, message: str, **details):
        super().__init__(kind="timeout", message=message, details=details)


class RetryError(TriggerError):
    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(
            kind="retry_exhausted",
            message=f"after {attempts} attempts, last error: {last_error}",
            details={"attempts": attempts},
        )
        self.attempts = attempts
        self.last_error = last_error


class BuildFailed(TriggerError):
    def __init__(self, job: str, number: int, result: str):
        super().__init__(
            kind="build_failed",
            message=f"build {job} #{number} finished with result {result}",
            details={"job": job, "build": number},
        )
