# cli.py
from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Sequence

import click

from triggerpipeline.errors import ConfigurationInvalid, TriggerError
from triggerpipeline.git_facts.git import discover_repository, resolve_branch
from triggerpipeline.jenkins.client import JenkinsError
from triggerpipeline.registry import JenkinsServer, ServerRegistry, select_server, valid_name
from triggerpipeline.runner import TriggerRequest, list_pipeline_jobs, trigger_pipeline
from triggerpipeline.settings import TriggerSettings
from triggerpipeline.ui.console import Console, get_console, set_console


def _default_batch_mode() -> bool:
    return os.environ.get("JX_BATCH_MODE") == "true"


def _pick_name(names: Sequence[str]) -> str:
    """Ask the user which of the registered servers to use."""
    return click.prompt(
        "Pick which Jenkins server you wish to use",
        type=click.Choice(list(names)),
        show_choices=True,
    )


def _fail(ctx: click.Context, exc: Exception) -> None:
    """Print `exc` the way the user should see it and exit 1."""
    console = get_console()
    if isinstance(exc, ConfigurationInvalid):
        console.print_error(
            "Invalid configuration",
            exc.message,
            details=[f"{k}: {v}" for k, v in exc.details.items()] or None,
        )
    elif isinstance(exc, TriggerError):
        console.print_error(
            exc.kind.replace("_", " ").capitalize(),
            exc.message,
            details=[f"{k}: {v}" for k, v in exc.details.items()] or None,
        )
    elif isinstance(exc, JenkinsError):
        console.print_error(
            "Jenkins request failed",
            str(exc),
            suggestion="Check the server URL and credentials:\n  tp server list",
        )
    else:
        # prints the traceback itself in debug mode
        console.print_exception(exc)
        sys.exit(1)
    if ctx.obj.get("debug", False):
        import traceback
        traceback.print_exc()
    sys.exit(1)


def _registry(ctx: click.Context) -> ServerRegistry:
    return ServerRegistry(ctx.obj["registry_url"]) if ctx.obj.get("registry_url") else ServerRegistry()


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.option(
    "--registry-url",
    default=None,
    envvar="TP_REGISTRY_DATABASE_URL",
    help="Database URL of the Jenkins server registry",
)
@click.pass_context
def cli(ctx, debug, registry_url):
    """tp: trigger pipelines in a Jenkins server."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["registry_url"] = registry_url


@cli.command()
@click.option("--multi-branch-project", "multi_branch", is_flag=True, default=False, help="Use a Multi Branch Project in Jenkins")
@click.option("-d", "--dir", "directory", default=".", help="The directory to look for the Jenkinsfile inside")
@click.option("-f", "--jenkinsfile", default="Jenkinsfile", show_default=True, help="The name of the Jenkinsfile to use")
@click.option(
    "-p",
    "--jenkins-path",
    default=None,
    help="The Jenkins folder path to create the pipeline inside. Defaults to the git 'owner/repoName/branch'",
)
@click.option("--branch", default=None, help="The branch to trigger a build (defaults to the current git branch)")
@click.option("--jenkins", "jenkins_name", default=None, help="The name of the registered Jenkins server to use")
@click.option(
    "--dev-jenkins-url",
    default=None,
    help="A local URL for the Jenkins server, e.g. http://localhost:8080 when using kubectl port-forward",
)
@click.option("-b", "--batch-mode", is_flag=True, default=_default_batch_mode, help="Runs in batch mode without prompting for user input")
@click.option("--cancel", is_flag=True, default=False, help="Cancel the running build of the pipeline instead of triggering one")
@click.option("--tail/--no-tail", default=False, show_default=True, help="Stream the build log and report its result")
@click.option("--update-job", is_flag=True, default=False, help="Overwrite the configuration of an existing pipeline job")
@click.pass_context
def trigger(ctx, multi_branch, directory, jenkinsfile, jenkins_path, branch, jenkins_name, dev_jenkins_url, batch_mode, cancel, tail, update_job):
    """Trigger the Jenkinsfile in the current directory in a Jenkins server."""
    try:
        directory = Path(directory or ".").resolve()
        jenkinsfile_path = directory / jenkinsfile
        if not jenkinsfile_path.is_file():
            raise ConfigurationInvalid(f"{jenkinsfile_path} does not exist", dir=str(directory))

        server = select_server(
            _registry(ctx),
            jenkins_name,
            batch_mode=batch_mode,
            prompt=None if batch_mode else _pick_name,
        )
        client = server.create_client(dev_jenkins_url)

        repository = discover_repository(directory)
        request = TriggerRequest(
            branch=resolve_branch(branch, directory),
            directory=directory,
            jenkinsfile=jenkinsfile,
            jenkins_path=jenkins_path,
            multi_branch=multi_branch,
            cancel=cancel,
            tail=tail,
            update_job=update_job,
        )
        trigger_pipeline(client, repository, request, TriggerSettings())

    except KeyboardInterrupt:
        get_console().print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        _fail(ctx, e)


@cli.group()
def server():
    """Commands for working with Jenkins servers."""


@server.command("add")
@click.option("-n", "--name", default=None, help="The name of the Jenkins server to add")
@click.option("-u", "--url", default=None, help="The URL to use to invoke the Jenkins server")
@click.option("-r", "--username", default=None, help="The username to use to invoke the Jenkins server")
@click.option("-t", "--token", default=None, help="The API token to use to invoke the Jenkins server")
@click.option("-b", "--batch-mode", is_flag=True, default=False, help="Runs in batch mode without prompting for user input")
@click.pass_context
def server_add(ctx, name, url, username, token, batch_mode):
    """Add a Jenkins server to the registry of Jenkins servers."""
    console = get_console()
    try:
        if batch_mode:
            for option, value in (("name", name), ("url", url), ("username", username), ("token", token)):
                if not value:
                    raise ConfigurationInvalid(f"missing option --{option}")
        else:
            if not name:
                name = click.prompt("name of the Jenkins server")
            if not url:
                url = click.prompt("HTTP/HTTPS URL of the Jenkins server")
            if not username:
                username = click.prompt("user name used to access Jenkins", default="admin")
            if not token:
                console.print_info(f"\nPlease go to {url.rstrip('/')}/me/configure to generate the API token:")
                console.print_info("click the Add new Token button")
                console.print_info("click the Generate button")
                console.print_info("Then COPY the token and enter in into the form below:\n")
                token = click.prompt("API token used to access Jenkins", hide_input=True)

        saved = _registry(ctx).add_server(JenkinsServer(name=name, url=url, username=username, token=token))
        console.print_info(f"saved Jenkins server {saved.name}")
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        _fail(ctx, e)


@server.command("delete")
@click.option("-n", "--name", default=None, help="The name of the Jenkins server to remove")
@click.option("-b", "--batch-mode", is_flag=True, default=False, help="Runs in batch mode without prompting for user input")
@click.pass_context
def server_delete(ctx, name, batch_mode):
    """Remove a Jenkins server from the registry of Jenkins servers."""
    console = get_console()
    try:
        registry = _registry(ctx)
        if not name:
            names = registry.names()
            if not names:
                raise ConfigurationInvalid("No Jenkins servers found")
            if batch_mode:
                raise ConfigurationInvalid("missing option --name", options=", ".join(names))
            name = _pick_name(names)

        registry.delete_server(name)
        console.print_info(f"removed Jenkins server {valid_name(name)}")
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        _fail(ctx, e)


@server.command("list")
@click.pass_context
def server_list(ctx):
    """List the registered Jenkins servers."""
    try:
        servers = _registry(ctx).list_servers()
        get_console().print_table(
            ["name", "url", "username"],
            [[s.name, s.url, s.username] for s in servers],
        )
    except Exception as e:
        _fail(ctx, e)


@server.command("jobs")
@click.option("-f", "--filter", "name_filter", default="", help="Filter string to filter the available jobs")
@click.option("--jenkins", "jenkins_name", default=None, help="The name of the registered Jenkins server to use")
@click.option("--dev-jenkins-url", default=None, help="A local URL for the Jenkins server")
@click.option("-b", "--batch-mode", is_flag=True, default=_default_batch_mode, help="Runs in batch mode without prompting for user input")
@click.pass_context
def server_jobs(ctx, name_filter, jenkins_name, dev_jenkins_url, batch_mode):
    """List the pipeline jobs in a Jenkins server."""
    try:
        srv = select_server(
            _registry(ctx),
            jenkins_name,
            batch_mode=batch_mode,
            prompt=None if batch_mode else _pick_name,
        )
        names = list_pipeline_jobs(srv.create_client(dev_jenkins_url), name_filter)
        get_console().print_table(["name"], [[n] for n in names])
    except KeyboardInterrupt:
        get_console().print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        _fail(ctx, e)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
