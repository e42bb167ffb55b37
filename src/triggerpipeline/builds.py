# builds.py
from __future__ import annotations

from typing import Optional

from .helpers import poll
from .jenkins.client import JenkinsClient, JenkinsError, NotFoundError
from .model import Build, RemoteJob
from .settings import TriggerSettings
from .ui.console import get_console


def _last_build(client: JenkinsClient, job: RemoteJob) -> Optional[Build]:
    """Last build of `job`, or None if it has never been built."""
    try:
        return client.get_last_build(job)
    except NotFoundError:
        return None


def trigger_build(
    client: JenkinsClient,
    job: RemoteJob,
    settings: TriggerSettings,
    *,
    timeout: Optional[float] = None,
) -> Build:
    """
    Trigger `job` and wait until the server reports the build it started.

    Jenkins gives no handle to the build a trigger creates, so the new build is
    recognised by its number differing from the last one seen before triggering.

    Raises:
        PollTimeout: if no new build shows up within `timeout` seconds
    """
    timeout = settings.trigger_timeout if timeout is None else timeout

    previous_build = _last_build(client, job)
    previous = previous_build.number if previous_build else 0

    try:
        client.build(job, {})
    except NotFoundError as e:
        # some Jenkins versions answer 404 on the build endpoint but still queue the build
        get_console().print_debug(f"ignoring not found triggering {job.full_name}: {e}")
    except JenkinsError as e:
        raise JenkinsError(f"failed to trigger job {job.full_name}: {e}", status=e.status, url=e.url) from e

    def started() -> Optional[Build]:
        build = _last_build(client, job)
        if build is not None and build.number != previous:
            return build
        return None

    build = poll(
        started,
        timeout=timeout,
        interval=settings.poll_interval,
        description=f"a new build of {job.full_name} after #{previous}",
        job=job.full_name,
        previous_build=previous,
    )
    get_console().print_build_started(job.full_name, build.number, build.url)
    return build


def cancel_build(
    client: JenkinsClient,
    job: RemoteJob,
    settings: TriggerSettings,
    *,
    timeout: Optional[float] = None,
) -> None:
    """
    Stop the last build of `job` if it is still running and wait until it is.

    A job that has no builds, or whose last build already finished, is left alone.
    """
    timeout = settings.cancel_timeout if timeout is None else timeout

    build = _last_build(client, job)
    if build is None or not build.building:
        get_console().print_debug(f"no running build of {job.full_name} to cancel")
        return

    client.stop_build(job, build.number)

    def stopped() -> Optional[bool]:
        current = _last_build(client, job)
        if current is None or not current.building:
            return True
        return None

    poll(
        stopped,
        timeout=timeout,
        interval=settings.poll_interval,
        description=f"build {job.full_name} #{build.number} to stop",
        job=job.full_name,
        build=build.number,
    )
    get_console().print_build_cancelled(job.full_name, build.number)
