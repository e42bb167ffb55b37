from __future__ import annotations

import subprocess

import pytest

from triggerpipeline.errors import ConfigurationInvalid
from triggerpipeline.git_facts import git


@pytest.mark.parametrize(
    "url, host, organisation, name",
    [
        ("https://github.com/myowner/myrepo.git", "https://github.com", "myowner", "myrepo"),
        ("https://github.com/myowner/myrepo", "https://github.com", "myowner", "myrepo"),
        ("git@github.com:myowner/myrepo.git", "github.com", "myowner", "myrepo"),
        ("ssh://git@gitlab.example.com/group/sub/project.git", "gitlab.example.com", "group/sub", "project"),
    ],
)
def test_parse_git_url(url, host, organisation, name):
    repo = git.parse_git_url(url)
    assert (repo.host, repo.organisation, repo.name) == (host, organisation, name)
    assert repo.clone_url == url


@pytest.mark.parametrize("url", ["", "https://github.com/onlyowner", "not a url"])
def test_parse_git_url_rejects_urls_without_owner_and_repo(url):
    with pytest.raises(ValueError):
        git.parse_git_url(url)


def test_discover_repository_reads_the_origin_remote(monkeypatch):
    monkeypatch.setattr(git, "remote_url", lambda remote="origin", cwd=None: "git@github.com:myowner/myrepo.git")
    repo = git.discover_repository("/checkout")
    assert (repo.organisation, repo.name) == ("myowner", "myrepo")


def test_discover_repository_outside_a_checkout(monkeypatch):
    def no_remote(remote="origin", cwd=None):
        raise subprocess.CalledProcessError(1, ["git", "config"])

    monkeypatch.setattr(git, "remote_url", no_remote)
    with pytest.raises(ConfigurationInvalid, match="remote git source URL"):
        git.discover_repository("/tmp")


def test_resolve_branch_prefers_the_explicit_branch(monkeypatch):
    monkeypatch.setattr(git, "current_branch", lambda cwd=None: "feature")
    assert git.resolve_branch("release", ".") == "release"
    assert git.resolve_branch(None, ".") == "feature"


def test_resolve_branch_falls_back_to_master(monkeypatch, capsys):
    def broken(cwd=None):
        raise subprocess.CalledProcessError(128, ["git", "rev-parse"])

    monkeypatch.setattr(git, "current_branch", broken)
    assert git.resolve_branch(None, "/nowhere") == "master"
    assert "failed to get the git branch name" in capsys.readouterr().err


def test_detached_head_resolves_to_master(monkeypatch):
    monkeypatch.setattr(git, "_git", lambda args, cwd=None: "HEAD")
    assert git.current_branch() == ""
    assert git.resolve_branch(None) == "master"
