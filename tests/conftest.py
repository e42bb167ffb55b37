from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import urlsplit

import pytest

from triggerpipeline.git_facts.git import GitRepository
from triggerpipeline.jenkins.client import JenkinsError, NotFoundError, job_path
from triggerpipeline.model import Build, BuildResult, JobKind, RemoteJob
from triggerpipeline.settings import TriggerSettings
from triggerpipeline.ui.console import Console, set_console


class FakeJenkins:
    """In-memory stand-in for JenkinsClient that records every mutating call."""

    def __init__(self, base_url: str = "http://jenkins.example"):
        self.base_url = base_url
        self.kinds: Dict[str, JobKind] = {}
        self.configs: Dict[str, str] = {}
        self.builds: Dict[str, List[Build]] = {}

        self.created: List[str] = []
        self.updated: List[str] = []
        self.build_requests: List[str] = []
        self.stop_requests: List[Tuple[str, int]] = []
        self.tailed: List[str] = []

        # full name -> number of lookups that fail with a 500 before answering normally
        self.lookup_errors: Dict[str, int] = {}
        # number of create calls that fail before one succeeds
        self.create_failures = 0
        # replaces the default "queue a new build" behaviour for a job
        self.on_build: Dict[str, Callable[[], None]] = {}
        # polls of the last build a stop takes to show up
        self.stop_delay = 0
        self._stopping: Dict[Tuple[str, int], int] = {}

        self.log_text = "Started by user admin\nFinished: SUCCESS\n"
        self.final_result = BuildResult.SUCCESS

    # setup helpers

    def add_job(self, full_name: str, kind: JobKind, builds: Optional[List[Build]] = None) -> None:
        self.kinds[full_name] = kind
        self.builds[full_name] = list(builds or [])

    def _build_url(self, full_name: str, number: int) -> str:
        return f"{self.job_url(*full_name.split('/'))}/{number}/"

    def _remote(self, full_name: str) -> RemoteJob:
        prefix = full_name + "/"
        children = [
            self._remote(n) for n in sorted(self.kinds)
            if n.startswith(prefix) and "/" not in n[len(prefix):]
        ]
        return RemoteJob(
            name=full_name.split("/")[-1],
            full_name=full_name,
            kind=self.kinds[full_name],
            url=self.job_url(*full_name.split("/")) + "/",
            jobs=children,
        )

    # JenkinsClient surface

    def job_url(self, *segments: str) -> str:
        return self.base_url + job_path(segments)

    def get_job_by_path(self, *segments: str) -> RemoteJob:
        full_name = "/".join(segments)
        if self.lookup_errors.get(full_name, 0) > 0:
            self.lookup_errors[full_name] -= 1
            raise JenkinsError(f"GET {full_name} failed: 500", status=500)
        if full_name not in self.kinds:
            raise NotFoundError(f"GET {full_name} failed: 404", status=404)
        return self._remote(full_name)

    def get_job(self, full_name: str) -> RemoteJob:
        return self.get_job_by_path(*full_name.split("/"))

    def get_multi_branch_job(self, org: str, repo: str, branch: str) -> RemoteJob:
        return self.get_job_by_path(org, repo, branch)

    def get_jobs(self) -> List[RemoteJob]:
        return [self._remote(n) for n in sorted(self.kinds) if "/" not in n]

    def _create(self, xml: str, full_name: str) -> None:
        if self.create_failures > 0:
            self.create_failures -= 1
            raise JenkinsError(f"POST createItem {full_name} failed: 500", status=500)
        if full_name in self.kinds:
            raise JenkinsError(f"A job already exists with the name {full_name}", status=400)
        kind = JobKind.PIPELINE if "<flow-definition" in xml else JobKind.FOLDER
        self.add_job(full_name, kind)
        self.configs[full_name] = xml
        self.created.append(full_name)

    def create_job(self, xml: str, name: str) -> None:
        self._create(xml, name)

    def create_nested_job(self, xml: str, parent_path: str, name: str) -> None:
        parent = parent_path.replace("/job/", "/")
        if parent not in self.kinds:
            raise NotFoundError(f"folder {parent} does not exist", status=404)
        self._create(xml, f"{parent}/{name}")

    def update_job(self, xml: str, *segments: str) -> None:
        full_name = "/".join(segments)
        self.configs[full_name] = xml
        self.updated.append(full_name)

    def build(self, job: RemoteJob, params=None) -> None:
        self.build_requests.append(job.full_name)
        if job.full_name in self.on_build:
            self.on_build[job.full_name]()
            return
        builds = self.builds.setdefault(job.full_name, [])
        number = builds[-1].number + 1 if builds else 1
        builds.append(Build(number=number, building=True, url=self._build_url(job.full_name, number)))

    def get_last_build(self, job: RemoteJob) -> Build:
        builds = self.builds.get(job.full_name)
        if not builds:
            raise NotFoundError(f"{job.full_name} has no builds", status=404)
        last = builds[-1]
        key = (job.full_name, last.number)
        if key in self._stopping:
            if self._stopping[key] <= 0:
                del self._stopping[key]
                last = Build(last.number, building=False, result=BuildResult.OTHER, url=last.url)
                builds[-1] = last
            else:
                self._stopping[key] -= 1
        return last

    def get_build(self, job: RemoteJob, number: int) -> Build:
        for b in self.builds.get(job.full_name, []):
            if b.number == number:
                return b
        raise NotFoundError(f"{job.full_name} #{number} not found", status=404)

    def stop_build(self, job: RemoteJob, number: int) -> None:
        self.stop_requests.append((job.full_name, number))
        self._stopping[(job.full_name, number)] = self.stop_delay

    def tail_log(self, path, sink, poll_interval, max_duration, **kwargs) -> None:
        self.tailed.append(path)
        sink.write(self.log_text)
        # the build is done once its log is complete
        for full_name, builds in self.builds.items():
            for i, b in enumerate(builds):
                if urlsplit(b.url).path == path:
                    builds[i] = Build(b.number, building=False, result=self.final_result, url=b.url)


@pytest.fixture(autouse=True)
def console():
    c = Console()
    set_console(c)
    return c


@pytest.fixture
def jenkins() -> FakeJenkins:
    return FakeJenkins()


@pytest.fixture
def settings() -> TriggerSettings:
    return TriggerSettings(
        creation_retry_attempts=3,
        creation_retry_delay=0,
        poll_interval=0,
        trigger_timeout=2,
        cancel_timeout=2,
        bootstrap_timeout=2,
        tail_max_duration=5,
        first_build_number=1,
        create_on_lookup_error=True,
    )


@pytest.fixture
def repository() -> GitRepository:
    return GitRepository(
        host="https://github.com",
        organisation="myowner",
        name="myrepo",
        clone_url="https://github.com/myowner/myrepo.git",
    )


@pytest.fixture
def checkout(tmp_path):
    (tmp_path / "Jenkinsfile").write_text("pipeline { agent any }\n")
    return tmp_path
