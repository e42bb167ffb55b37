from __future__ import annotations

import xml.etree.ElementTree as ET

import pytest

from triggerpipeline.descriptors import pipeline_descriptor, render_folder, render_pipeline
from triggerpipeline.jenkins.schemas import FOLDER_CLASS


def _parse(xml: str) -> ET.Element:
    # drop the declaration, expat only knows XML 1.0
    return ET.fromstring(xml.split("?>", 1)[1].strip())


def test_pipeline_descriptor_requires_url_and_branch():
    with pytest.raises(ValueError):
        pipeline_descriptor("", "master")
    with pytest.raises(ValueError):
        pipeline_descriptor("https://github.com/o/r.git", "")


def test_pipeline_descriptor_defaults_jenkinsfile():
    assert pipeline_descriptor("u", "b", "").jenkinsfile == "Jenkinsfile"


def test_render_pipeline_points_at_repo_branch_and_file():
    xml = render_pipeline(pipeline_descriptor("https://github.com/o/r.git?a=1&b=2", "master", "ci/Jenkinsfile"))
    root = _parse(xml)

    assert root.tag == "flow-definition"
    assert root.find(".//hudson.plugins.git.UserRemoteConfig/url").text == "https://github.com/o/r.git?a=1&b=2"
    assert root.find(".//hudson.plugins.git.BranchSpec/name").text == "*/master"
    assert root.find(".//scriptPath").text == "ci/Jenkinsfile"


def _branch_spec(branch: str) -> str:
    return _parse(render_pipeline(pipeline_descriptor("u", branch))).find(".//hudson.plugins.git.BranchSpec/name").text


def test_render_pipeline_prefixes_branches_containing_slashes():
    assert _branch_spec("feature/x") == "*/feature/x"


def test_render_pipeline_keeps_qualified_branch_specs():
    assert _branch_spec("*/release") == "*/release"
    assert _branch_spec("refs/heads/main") == "refs/heads/main"


def test_render_folder():
    root = _parse(render_folder("org", "http://jenkins/job/org"))
    assert root.tag == FOLDER_CLASS
    assert root.find("description").text == "Folder for http://jenkins/job/org"
    assert root.find("displayName").text == "org"
