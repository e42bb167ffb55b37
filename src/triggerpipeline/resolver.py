# resolver.py
from __future__ import annotations

from typing import Optional, Tuple

from .descriptors import render_folder, render_pipeline
from .helpers import retry
from .jenkins.client import JenkinsClient, JenkinsError, NotFoundError
from .model import JobKind, JobPath, PipelineDescriptor, RemoteJob
from .settings import TriggerSettings
from .ui.console import get_console

# Walks "org/repo/branch" one segment at a time:
#
#   ()  --ensure_folder("org")-->  ("org",)  --ensure_folder("repo")-->  ("org", "repo")
#       --ensure_pipeline("branch")-->  RemoteJob("org/repo/branch")
#
# Each step gets the prefix resolved so far and returns the next one, so a
# step can be checked on its own: afterwards the node at the new prefix exists.

Prefix = Tuple[str, ...]


def _lookup(client: JenkinsClient, segments: Prefix, settings: TriggerSettings) -> Optional[RemoteJob]:
    """Return the node at `segments`, or None when it should be created."""
    try:
        return client.get_job_by_path(*segments)
    except NotFoundError:
        return None
    except JenkinsError as e:
        if not settings.create_on_lookup_error:
            raise
        # a failed lookup is not proof the node is missing; the create may fail as a duplicate
        get_console().print_warning(
            f"looking up {'/'.join(segments)} failed ({e}); attempting to create it anyway"
        )
        return None


def _create(
    client: JenkinsClient,
    xml: str,
    parent: Prefix,
    name: str,
    what: str,
    job_url: str,
) -> None:
    if not parent:
        try:
            client.create_job(xml, name)
        except JenkinsError as e:
            raise JenkinsError(f"failed to create the {name} {what} at {job_url} in Jenkins: {e}") from e
        return

    folders = "/job/".join(parent)
    try:
        client.create_nested_job(xml, folders, name)
    except JenkinsError as e:
        raise JenkinsError(
            f"failed to create the {name} {what} in folders {folders} at {job_url} in Jenkins: {e}"
        ) from e


def ensure_folder(
    client: JenkinsClient,
    parent: Prefix,
    name: str,
    settings: TriggerSettings,
) -> Prefix:
    """
    Make sure a folder called `name` exists under `parent`.

    Returns:
        The resolved prefix including the folder.
    """
    segments = parent + (name,)
    job_url = client.job_url(*segments)

    node = _lookup(client, segments, settings)
    if node is not None:
        if node.kind is not JobKind.FOLDER:
            get_console().print_warning(f"the folder {job_url} is a {node.kind.value} job, not a folder")
        return segments

    xml = render_folder(name, job_url)
    retry(settings.creation_retry, lambda: _create(client, xml, parent, name, "folder", job_url))
    get_console().print_debug(f"created folder {'/'.join(segments)}")
    return segments


def ensure_pipeline(
    client: JenkinsClient,
    parent: Prefix,
    name: str,
    descriptor: PipelineDescriptor,
    settings: TriggerSettings,
    *,
    update_existing: bool = False,
) -> RemoteJob:
    """Make sure the pipeline job `name` exists under `parent` and return it fresh from the server."""
    segments = parent + (name,)
    job_url = client.job_url(*segments)
    xml = render_pipeline(descriptor)

    node = _lookup(client, segments, settings)
    if node is None:
        retry(settings.creation_retry, lambda: _create(client, xml, parent, name, "pipeline", job_url))
        get_console().print_debug(f"created pipeline {'/'.join(segments)}")
    elif update_existing:
        retry(settings.creation_retry, lambda: client.update_job(xml, *segments))
        get_console().print_debug(f"updated pipeline {'/'.join(segments)}")

    return client.get_job_by_path(*segments)


def ensure_job_path(
    client: JenkinsClient,
    path: JobPath,
    descriptor: PipelineDescriptor,
    settings: TriggerSettings,
    *,
    update_existing: bool = False,
) -> RemoteJob:
    """
    Create whatever is missing of `path`: folders for all but the last segment,
    a pipeline job for the last one.

    Nothing is rolled back if a later segment fails; running again skips what exists.
    """
    prefix: Prefix = ()
    for folder in path.folders:
        prefix = ensure_folder(client, prefix, folder, settings)
    return ensure_pipeline(client, prefix, path.name, descriptor, settings, update_existing=update_existing)
