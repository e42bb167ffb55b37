from __future__ import annotations

import pytest

from triggerpipeline.errors import BuildFailed, ConfigurationInvalid
from triggerpipeline.jenkins.schemas import FOLDER_CLASS, PIPELINE_CLASS, BuildResponse, JobResponse, build_result, job_kind
from triggerpipeline.model import BuildResult, JobKind, JobPath


def test_job_path_parse():
    path = JobPath.parse("org/repo/branch")
    assert path.segments == ("org", "repo", "branch")
    assert path.folders == ("org", "repo")
    assert path.name == "branch"
    assert str(path) == "org/repo/branch"


def test_single_segment_job_path_has_no_folders():
    path = JobPath.parse("standalone")
    assert path.folders == ()
    assert path.name == "standalone"


@pytest.mark.parametrize("value", ["", "org//branch", "/org/repo", "org/repo/"])
def test_job_path_rejects_empty_segments(value):
    with pytest.raises(ValueError):
        JobPath.parse(value)


def test_job_kind_from_class():
    assert job_kind(FOLDER_CLASS) is JobKind.FOLDER
    assert job_kind(PIPELINE_CLASS) is JobKind.PIPELINE
    assert job_kind("org.jenkinsci.plugins.workflow.multibranch.WorkflowMultiBranchProject") is JobKind.UNKNOWN
    assert job_kind("") is JobKind.UNKNOWN


def test_build_result_mapping():
    assert build_result(None) is BuildResult.UNSET
    assert build_result("") is BuildResult.UNSET
    assert build_result("SUCCESS") is BuildResult.SUCCESS
    assert build_result("FAILURE") is BuildResult.FAILURE
    assert build_result("ABORTED") is BuildResult.OTHER
    assert build_result("UNSTABLE") is BuildResult.OTHER


def test_job_response_nests_children():
    resp = JobResponse.model_validate({
        "_class": FOLDER_CLASS,
        "name": "repo",
        "fullName": "org/repo",
        "url": "http://jenkins/job/org/job/repo/",
        "jobs": [{"_class": PIPELINE_CLASS, "name": "master", "url": "http://jenkins/job/org/job/repo/job/master/"}],
    })
    job = resp.to_job()

    assert job.kind is JobKind.FOLDER
    assert job.full_name == "org/repo"
    assert [(j.full_name, j.kind) for j in job.jobs] == [("org/repo/master", JobKind.PIPELINE)]


def test_build_response_to_build():
    build = BuildResponse.model_validate({"number": 7, "building": False, "result": "FAILURE", "url": "u", "extra": 1}).to_build()
    assert build.number == 7
    assert build.result is BuildResult.FAILURE


def test_errors_render_kind_and_details():
    err = ConfigurationInvalid("missing option --jenkins", options="a, b")
    assert str(err) == "configuration_invalid: missing option --jenkins\noptions=a, b"

    failed = BuildFailed("org/repo/master", 3, "failure")
    assert failed.kind == "build_failed"
    assert failed.details == {"job": "org/repo/master", "build": 3}
