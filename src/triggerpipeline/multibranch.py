# multibranch.py
from __future__ import annotations

from typing import Optional

from .builds import cancel_build
from .errors import ConfigurationInvalid
from .helpers import poll
from .jenkins.client import JenkinsClient, JenkinsError, NotFoundError
from .model import Build, RemoteJob
from .settings import TriggerSettings
from .ui.console import get_console


def ensure_branch_job(
    client: JenkinsClient,
    org: str,
    repo: str,
    branch: str,
    settings: TriggerSettings,
) -> RemoteJob:
    """
    Return the job of `branch` inside the multi-branch project `org/repo`.

    If the branch has no job yet the project is scanned, which creates the job
    and starts build #1 on its own. That first build is cancelled so the caller
    can trigger the build it actually wants.

    The multi-branch project itself must already exist.
    """
    branch_path = f"{org}/{repo}/{branch}"

    # Probe
    try:
        return client.get_multi_branch_job(org, repo, branch)
    except NotFoundError:
        pass

    # LocateParent
    try:
        project = client.get_job_by_path(org, repo)
    except NotFoundError as e:
        raise ConfigurationInvalid(
            f"could not find the multi-branch project {org}/{repo}: {e}",
            project=f"{org}/{repo}",
        ) from e
    except JenkinsError as e:
        raise type(e)(
            f"failed to look up the multi-branch project {org}/{repo}: {e}", status=e.status, url=e.url
        ) from e

    # Scan
    get_console().print_info(f"scanning multi-branch project {project.full_name} for branch {branch}")
    try:
        client.build(project, {})
    except JenkinsError as e:
        raise JenkinsError(f"failed to scan multi-branch project {project.full_name}: {e}", status=e.status, url=e.url) from e

    # AwaitJobCreation
    def branch_job() -> Optional[RemoteJob]:
        try:
            return client.get_multi_branch_job(org, repo, branch)
        except NotFoundError:
            return None

    job = poll(
        branch_job,
        timeout=settings.bootstrap_timeout,
        interval=settings.poll_interval,
        description=f"the scan of {project.full_name} to create {branch_path}",
        job=branch_path,
    )

    # AwaitFirstBuild
    expected = settings.first_build_number

    def first_build() -> Optional[Build]:
        try:
            build = client.get_last_build(job)
        except NotFoundError:
            return None
        if build.number != expected:
            get_console().print_debug(
                f"last build of {branch_path} is #{build.number}, waiting for #{expected}"
            )
            return None
        return build

    poll(
        first_build,
        timeout=settings.bootstrap_timeout,
        interval=settings.poll_interval,
        description=f"build #{expected} of {branch_path}",
        job=branch_path,
    )

    # SuppressAutoBuild
    cancel_build(client, job, settings, timeout=settings.cancel_timeout)
    return job
