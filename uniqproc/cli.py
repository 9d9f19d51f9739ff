import asyncio
import logging

import typer

from uniqproc.agent.lifecycle import AgentLifecycle
from uniqproc.agent.models import (
    AddRequest,
    ExecuteRequest,
    KillRequest,
    ListRequest,
    RemoveRequest,
    Request,
    RestartRequest,
    ToggleRequest,
)
from uniqproc.agent.paths import AgentPaths
from uniqproc.client import forward_request
from uniqproc.errors import AgentAlreadyRunningError, UniqProcError

app = typer.Typer(name="uniq-proc", help="Manages unique processes", no_args_is_help=True)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@app.callback()
def main(
    ctx: typer.Context,
    keep: bool = typer.Option(False, "--keep", "-k", help="Continue from last daemon state"),
):
    ctx.obj = {"keep": keep, "paths": AgentPaths.from_env()}


def _send(ctx: typer.Context, request: Request) -> None:
    settings = ctx.obj or {}
    paths = settings.get("paths") or AgentPaths.from_env()
    try:
        response = forward_request(request, paths, keep=bool(settings.get("keep")))
    except UniqProcError as exc:
        typer.echo(f"Failed to reach agent: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(response)


@app.command()
def add(ctx: typer.Context, name: str, command: str):
    """Adds or overwrites a command."""
    _send(ctx, AddRequest(name=name, command=command))


@app.command()
def remove(ctx: typer.Context, name: str):
    """Removes a command."""
    _send(ctx, RemoveRequest(name=name))


@app.command("list")
def list_commands(ctx: typer.Context):
    """Lists all commands."""
    _send(ctx, ListRequest())


@app.command()
def execute(ctx: typer.Context, name: str):
    """Executes a command."""
    _send(ctx, ExecuteRequest(name=name))


@app.command()
def kill(ctx: typer.Context, name: str):
    """Kills a process."""
    _send(ctx, KillRequest(name=name))


@app.command()
def restart(ctx: typer.Context, name: str):
    """Kills and re-executes a process."""
    _send(ctx, RestartRequest(name=name))


@app.command()
def toggle(ctx: typer.Context, name: str):
    """Kills or executes a process, depending on whether it is running."""
    _send(ctx, ToggleRequest(name=name))


def configure_logging(paths: AgentPaths) -> None:
    paths.log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(paths.log_file),
        ],
    )


@app.command()
def daemon(ctx: typer.Context):
    """Starts the agent in the foreground."""
    settings = ctx.obj or {}
    paths = settings.get("paths") or AgentPaths.from_env()
    configure_logging(paths)
    lifecycle = AgentLifecycle(paths, keep=bool(settings.get("keep")))
    try:
        asyncio.run(lifecycle.run())
    except AgentAlreadyRunningError as exc:
        typer.echo(str(exc))
    except UniqProcError as exc:
        logging.getLogger("uniqproc.agent").error("Agent aborted: %s", exc)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
