"""Command line entry point.

    eb-deploy -a web -e production
    eb-deploy --application=web,worker -e staging -c <40 char hash> --run-pre-hook
    eb-deploy web:production
"""

import asyncio
import json
from typing import Optional, Sequence

import click
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from eb_deploy import __version__
from eb_deploy.core.exceptions import ArgumentError, EbDeployError
from eb_deploy.models.deployment import DeployOutcome, DeployRequest
from eb_deploy.services.deploy import DeployService
from eb_deploy.services.factory import create_deploy_service
from eb_deploy.utils.logging import configure_logging, get_logger

COMMIT_HASH_LENGTH = 40

app = typer.Typer(
    name="eb-deploy",
    help="Deploy applications to AWS Elastic Beanstalk",
    add_completion=False,
)
console = Console()
logger = get_logger(__name__)

# Newer typer releases parse with a bundled click; its BadParameter derives from
# that build's UsageError rather than click.UsageError
USAGE_ERRORS: tuple[type[Exception], ...] = (
    click.UsageError,
    next(cls for cls in typer.BadParameter.__mro__ if cls.__name__ == "UsageError"),
)


def build_deploy_request(
    application: str | None,
    environment: str | None,
    commit_hash: str | None = None,
    run_pre_hook: bool = False,
    targets: Sequence[str] | None = None,
) -> DeployRequest:
    """Validate raw command line values and build a DeployRequest.

    ``targets`` holds the optional positional ``{appName}:{envName}`` token,
    which stands in for ``-a`` / ``-e`` when those are not given.

    Raises:
        ArgumentError: With a fixed message for each violated constraint
    """
    targets = list(targets or [])
    if len(targets) > 1:
        raise ArgumentError(
            "Invalid argv - expecting at most one {appName}:{envName} argument",
            {"arguments": targets},
        )

    if targets:
        token = targets[0]
        parts = token.split(":")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise ArgumentError(
                f"Invalid argument {token} - Must be in format {{appName}}:{{envName}}",
                {"argument": token},
            )
        application = application or parts[0]
        environment = environment or parts[1]

    app_names = [name.strip() for name in (application or "").split(",") if name.strip()]
    if not app_names:
        raise ArgumentError("Invalid argv - option -a / --application required")

    seen: set[str] = set()
    for name in app_names:
        if name in seen:
            raise ArgumentError(
                f"Invalid argv - application {name} given more than once",
                {"app_names": app_names},
            )
        seen.add(name)

    if not environment:
        raise ArgumentError("Invalid argv - option -e / --environment required")

    if commit_hash is not None and len(commit_hash) != COMMIT_HASH_LENGTH:
        raise ArgumentError(
            "Invalid argv - option -c / --commit-hash must be a full length git hash "
            f"of {COMMIT_HASH_LENGTH} characters",
            {"commit_hash": commit_hash},
        )

    return DeployRequest(
        app_names=app_names,
        env_name=environment,
        commit_hash=commit_hash,
        run_pre_hook=run_pre_hook,
    )


def parse_command_line_arguments(args: Sequence[str]) -> DeployRequest:
    """Parse command line arguments (without the program name) into a request."""
    command = typer.main.get_command(app)
    try:
        with command.make_context("eb-deploy", list(args)) as ctx:
            params = dict(ctx.params)
    except USAGE_ERRORS as e:
        raise ArgumentError(f"Invalid argv - {e.format_message()}") from e

    return build_deploy_request(
        params.get("application"),
        params.get("environment"),
        params.get("commit_hash"),
        bool(params.get("run_pre_hook")),
        params.get("targets"),
    )


async def deploy_from_command_line_arguments(
    service: DeployService, args: Sequence[str]
) -> list[DeployOutcome]:
    """Parse arguments and run the deploy they describe."""
    request = parse_command_line_arguments(args)
    return await service.deploy_request(request)


def _print_outcomes(outcomes: list[DeployOutcome]) -> None:
    table = Table(title="Deployments")
    table.add_column("Application", style="cyan")
    table.add_column("Environment")
    table.add_column("Version")
    table.add_column("Status")

    for outcome in outcomes:
        table.add_row(
            outcome.app_name,
            outcome.env_name,
            outcome.artifact.version_label if outcome.artifact else "-",
            outcome.status.value,
        )

    console.print(table)
    for outcome in outcomes:
        if outcome.dashboard_url:
            console.print(f"{outcome.app_name}: {outcome.dashboard_url}", soft_wrap=True)


@app.command()
def deploy(
    targets: Optional[list[str]] = typer.Argument(
        None,
        help="Legacy {appName}:{envName} form of -a/-e",
        show_default=False,
    ),
    application: Optional[str] = typer.Option(
        None, "-a", "--application", help="Application name(s), comma separated"
    ),
    environment: Optional[str] = typer.Option(
        None, "-e", "--environment", help="Environment name"
    ),
    commit_hash: Optional[str] = typer.Option(
        None, "-c", "--commit-hash", help="Full 40 character git commit hash"
    ),
    run_pre_hook: bool = typer.Option(
        False, "-p", "--run-pre-hook", help="Run the pre-deploy hook first"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Deploy one or more applications to an Elastic Beanstalk environment."""
    configure_logging()
    logger.info("eb_deploy.starting", version=__version__)

    try:
        request = build_deploy_request(
            application, environment, commit_hash, run_pre_hook, targets
        )
        service = create_deploy_service()
        outcomes = asyncio.run(service.deploy_request(request))
    except (EbDeployError, OSError) as e:
        logger.error(
            "eb_deploy.failed",
            error=str(e),
            error_type=type(e).__name__,
            cause=repr(e.__cause__) if e.__cause__ else None,
        )
        console.print(f"[red]Error:[/red] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(code=1) from e

    if json_output:
        typer.echo(
            json.dumps([outcome.model_dump(mode="json") for outcome in outcomes], indent=2)
        )
        return

    _print_outcomes(outcomes)


if __name__ == "__main__":
    app()
