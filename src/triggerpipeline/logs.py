# logs.py
from __future__ import annotations

import sys
from typing import IO, Optional
from urllib.parse import urlsplit

from .jenkins.client import JenkinsClient
from .model import Build
from .settings import TriggerSettings
from .ui.console import get_console


def tail_build_log(
    client: JenkinsClient,
    job_name: str,
    build: Build,
    settings: TriggerSettings,
    *,
    sink: Optional[IO[str]] = None,
) -> None:
    """Stream the console log of `build` to `sink` (stdout by default) until it ends."""
    path = urlsplit(build.url).path
    if not path:
        raise ValueError(f"build {job_name} #{build.number} has no URL to tail")

    get_console().print_info(f"tailing the log of {job_name} #{build.number}")
    client.tail_log(path, sink or sys.stdout, settings.poll_interval, settings.tail_max_duration)
