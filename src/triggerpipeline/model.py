# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple


class JobKind(str, Enum):
    FOLDER = "folder"
    PIPELINE = "pipeline"
    UNKNOWN = "unknown"


class BuildResult(str, Enum):
    UNSET = "unset"
    SUCCESS = "success"
    FAILURE = "failure"
    OTHER = "other"


@dataclass(frozen=True)
class JobPath:
    """
    Slash separated location of a job on the server, e.g. "org/repo/branch".

    Every segment but the last is a folder; the last one is the pipeline job.
    """
    segments: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.segments:
            raise ValueError("job path must have at least one segment")
        if any(not s for s in self.segments):
            raise ValueError(f"job path has an empty segment: {'/'.join(self.segments)!r}")

    @classmethod
    def parse(cls, value: str) -> JobPath:
        return cls(tuple(value.split("/")))

    @property
    def folders(self) -> Tuple[str, ...]:
        return self.segments[:-1]

    @property
    def name(self) -> str:
        return self.segments[-1]

    def __str__(self) -> str:
        return "/".join(self.segments)


@dataclass
class RemoteJob:
    """A job node as reported by the server. Never cached between polls."""
    name: str
    full_name: str
    kind: JobKind = JobKind.UNKNOWN
    url: str = ""
    jobs: List[RemoteJob] = field(default_factory=list)

    @property
    def segments(self) -> Tuple[str, ...]:
        return tuple(self.full_name.split("/"))


@dataclass(frozen=True)
class Build:
    number: int
    building: bool = False
    result: BuildResult = BuildResult.UNSET
    url: str = ""


@dataclass(frozen=True)
class PipelineDescriptor:
    """What the pipeline job builds: a git repo, a branch and the pipeline file in it."""
    git_url: str
    branch: str
    jenkinsfile: str = "Jenkinsfile"


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int
    delay: float

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError(f"retry attempts must be >= 1, got {self.attempts}")
        if self.delay < 0:
            raise ValueError(f"retry delay must be >= 0, got {self.delay}")
