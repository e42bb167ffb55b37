"""Response shapes returned by the Jenkins JSON API.

This is the only place that looks at Jenkins' `_class` strings; everything
past this module works with `JobKind` and `BuildResult`.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..model import Build, BuildResult, JobKind, RemoteJob

FOLDER_CLASS = "com.cloudbees.hudson.plugins.folder.Folder"
PIPELINE_CLASS = "org.jenkinsci.plugins.workflow.job.WorkflowJob"

_KINDS = {
    FOLDER_CLASS: JobKind.FOLDER,
    PIPELINE_CLASS: JobKind.PIPELINE,
}


def job_kind(class_name: str) -> JobKind:
    return _KINDS.get(class_name, JobKind.UNKNOWN)


def build_result(result: Optional[str]) -> BuildResult:
    if not result:
        return BuildResult.UNSET
    if result == "SUCCESS":
        return BuildResult.SUCCESS
    if result == "FAILURE":
        return BuildResult.FAILURE
    # ABORTED, UNSTABLE, NOT_BUILT
    return BuildResult.OTHER


class JobResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    class_name: str = Field(default="", alias="_class")
    name: str = ""
    full_name: str = Field(default="", alias="fullName")
    url: str = ""
    jobs: Optional[List[JobResponse]] = None

    def to_job(self, full_name: str = "") -> RemoteJob:
        full = self.full_name or full_name or self.name
        children = [
            child.to_job(f"{full}/{child.name}") for child in (self.jobs or [])
        ]
        return RemoteJob(
            name=self.name or full.split("/")[-1],
            full_name=full,
            kind=job_kind(self.class_name),
            url=self.url,
            jobs=children,
        )


class BuildResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    number: int
    building: bool = False
    result: Optional[str] = None
    url: str = ""

    def to_build(self) -> Build:
        return Build(
            number=self.number,
            building=self.building,
            result=build_result(self.result),
            url=self.url,
        )


class CrumbResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    crumb: str = ""
    crumb_request_field: str = Field(default="", alias="crumbRequestField")


JobResponse.model_rebuild()
