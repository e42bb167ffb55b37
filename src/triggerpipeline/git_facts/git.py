# git.py
# Small, focused wrapper around the Git CLI.
# This module centralizes all Git interactions so the rest of the codebase
# never needs to call subprocess("git ...") directly.

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..errors import ConfigurationInvalid
from ..ui.console import get_console

DEFAULT_BRANCH = "master"


@dataclass(frozen=True)
class GitRepository:
    """Where a checkout comes from: host, organisation (owner) and repository name."""
    host: str
    organisation: str
    name: str
    clone_url: str


def _git(args: list[str], cwd: Optional[str] = None) -> str:
    """
    Execute a git command and return its stdout as a clean string.

    This is the single low-level entry point for all Git operations in this file.

    Args:
        args: List of git arguments (e.g. ["rev-parse", "--abbrev-ref", "HEAD"])
        cwd: Optional working directory in which to run the git command.

    Returns:
        Stdout from the git command with surrounding whitespace removed.
    """
    out = subprocess.check_output(
        ["git", *args],
        cwd=cwd,
        text=True,
        stderr=subprocess.DEVNULL,
    )
    return out.strip()


def current_branch(cwd: Optional[str] = None) -> str:
    """
    Return the checked out branch name, or "" for a detached HEAD.
    """
    branch = _git(["rev-parse", "--abbrev-ref", "HEAD"], cwd=cwd)
    return "" if branch == "HEAD" else branch


def remote_url(remote: str = "origin", cwd: Optional[str] = None) -> str:
    return _git(["config", "--get", f"remote.{remote}.url"], cwd=cwd)


_SCP_LIKE = re.compile(r"^(?:[\w.-]+@)?(?P<host>[\w.-]+):(?P<path>[^/].*)$")


def parse_git_url(url: str) -> GitRepository:
    """
    Split a clone URL into host, organisation and repository name.

    Supports:
      - https://github.com/myowner/myrepo.git
      - ssh://git@github.com/myowner/myrepo.git
      - git@github.com:myowner/myrepo.git

    Raises:
        ValueError: if the URL has no owner/repo path
    """
    raw = url.strip()
    if "://" in raw:
        scheme, rest = raw.split("://", 1)
        host, _, path = rest.partition("/")
        host = host.rsplit("@", 1)[-1]
        host = f"{scheme}://{host}" if scheme in ("http", "https") else host
    else:
        m = _SCP_LIKE.match(raw)
        if not m:
            raise ValueError(f"unsupported git URL: {url!r}")
        host, path = m.group("host"), m.group("path")

    parts = [p for p in path.strip("/").split("/") if p]
    if len(parts) < 2:
        raise ValueError(f"git URL {url!r} does not contain an owner and a repository")

    name = parts[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    organisation = "/".join(parts[:-1])
    return GitRepository(host=host, organisation=organisation, name=name, clone_url=raw)


def discover_repository(cwd: str | Path = ".", remote: str = "origin") -> GitRepository:
    """
    Find the repository the directory `cwd` is a checkout of.

    Raises:
        ConfigurationInvalid: if git is missing, `cwd` is no checkout, or the remote is unusable
    """
    try:
        url = remote_url(remote, cwd=str(cwd))
    except FileNotFoundError as e:
        raise ConfigurationInvalid("git command not found", dir=str(cwd)) from e
    except subprocess.CalledProcessError as e:
        raise ConfigurationInvalid(
            f"could not find the remote git source URL for remote {remote}",
            dir=str(cwd),
        ) from e

    try:
        return parse_git_url(url)
    except ValueError as e:
        raise ConfigurationInvalid(str(e), dir=str(cwd)) from e


def resolve_branch(branch: Optional[str], cwd: str | Path = ".") -> str:
    """
    Pick the branch to build: the given one, else the checked out one, else master.
    """
    if branch:
        return branch
    try:
        branch = current_branch(cwd=str(cwd))
    except (FileNotFoundError, subprocess.CalledProcessError):
        get_console().print_warning(f"failed to get the git branch name in dir {cwd}")
        branch = ""
    return branch or DEFAULT_BRANCH
