# runner.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import IO, List, Optional

from .builds import cancel_build, trigger_build
from .descriptors import pipeline_descriptor
from .errors import BuildFailed, ConfigurationInvalid, PollTimeout
from .git_facts.git import GitRepository
from .jenkins.client import JenkinsClient
from .logs import tail_build_log
from .model import Build, BuildResult, JobKind, JobPath, RemoteJob
from .multibranch import ensure_branch_job
from .resolver import ensure_job_path
from .settings import TriggerSettings
from .ui.console import get_console

# checkout + Jenkinsfile ---> folders/job on Jenkins ---> build ---> (log) ---> result


@dataclass
class TriggerRequest:
    """What to trigger, as given on the command line."""
    branch: str
    directory: Path = Path(".")
    jenkinsfile: str = "Jenkinsfile"

    # defaults to "<organisation>/<repository>/<branch>"
    jenkins_path: Optional[str] = None

    multi_branch: bool = False
    cancel: bool = False
    tail: bool = False
    update_job: bool = False


def job_path_for(request: TriggerRequest, repository: GitRepository) -> JobPath:
    value = request.jenkins_path or f"{repository.organisation}/{repository.name}/{request.branch}"
    try:
        return JobPath.parse(value)
    except ValueError as e:
        raise ConfigurationInvalid(str(e), jenkins_path=value) from e


def _resolve_job(
    client: JenkinsClient,
    repository: GitRepository,
    request: TriggerRequest,
    settings: TriggerSettings,
) -> RemoteJob:
    if request.multi_branch:
        return ensure_branch_job(client, repository.organisation, repository.name, request.branch, settings)

    path = job_path_for(request, repository)
    descriptor = pipeline_descriptor(repository.clone_url, request.branch, request.jenkinsfile)
    get_console().print_trigger_started(str(path), descriptor.git_url, descriptor.branch)
    return ensure_job_path(client, path, descriptor, settings, update_existing=request.update_job)


def trigger_pipeline(
    client: JenkinsClient,
    repository: GitRepository,
    request: TriggerRequest,
    settings: TriggerSettings,
    *,
    sink: Optional[IO[str]] = None,
) -> Optional[Build]:
    """
    Make sure the pipeline job for the checkout exists, then trigger (or cancel) it.

    Returns:
        The started build (its final state when tailing), or None when cancelling.

    Raises:
        ConfigurationInvalid: the pipeline file is missing (checked before any remote call)
        BuildFailed: when tailing and the build did not succeed
        PollTimeout: when tailing stopped before the build finished
    """
    jenkinsfile = Path(request.directory) / request.jenkinsfile
    if not jenkinsfile.is_file():
        raise ConfigurationInvalid(f"{jenkinsfile} does not exist", dir=str(request.directory))

    job = _resolve_job(client, repository, request, settings)

    if request.cancel:
        cancel_build(client, job, settings)
        return None

    build = trigger_build(client, job, settings)
    if not request.tail:
        return build

    tail_build_log(client, job.full_name, build, settings, sink=sink)

    final = client.get_build(job, build.number)
    if final.building:
        raise PollTimeout(
            f"build {job.full_name} #{final.number} is still running after tailing its log for {settings.tail_max_duration:g}s",
            job=job.full_name,
            build=final.number,
        )
    get_console().print_build_status(job.full_name, final.number, final.result.value)
    if final.result is not BuildResult.SUCCESS:
        raise BuildFailed(job.full_name, final.number, final.result.value)
    return final


def list_pipeline_jobs(client: JenkinsClient, name_filter: str = "") -> List[str]:
    """Full names of every pipeline job on the server, descending into folders."""
    names: List[str] = []

    def walk(jobs: List[RemoteJob], prefix: str) -> None:
        for j in jobs:
            name = f"{prefix}/{j.name}" if prefix else j.name
            if j.kind is JobKind.PIPELINE:
                if not name_filter or name_filter in name:
                    names.append(name)
                continue
            children = j.jobs or client.get_job(name).jobs
            walk(children, name)

    walk(client.get_jobs(), "")
    return sorted(names)
