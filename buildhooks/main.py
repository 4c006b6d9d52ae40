"""buildhooks CLI — all commands."""

from pathlib import Path
from typing import Annotated

import tomlkit
import typer
from pydantic import SecretStr
from rich import print as rprint
from rich.table import Table

from buildhooks.clients.activemq import ActiveMQClient
from buildhooks.clients.scm import ScmManagerClient
from buildhooks.errors import JolokiaError, PipelineError
from buildhooks.log import configure_logging
from buildhooks.models import PullRequestOptions
from buildhooks.pipeline import create_pull_request_in_pipeline
from buildhooks.settings import (
    CONFIG_PATH,
    BrokerSettings,
    ScmSettings,
    _list_profiles,
    get_broker_settings,
    get_scm_settings,
)

app = typer.Typer(help="buildhooks: SCM-Manager pull requests + ActiveMQ queue inspection", no_args_is_help=True)

ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", "-P", help="Profile name from ~/.config/buildhooks/config.toml"),
]
UrlOpt = Annotated[str | None, typer.Option("--url", help="SCM-Manager base URL")]
TokenOpt = Annotated[str | None, typer.Option("--token", help="SCM-Manager API token")]
NamespaceOpt = Annotated[str | None, typer.Option("--namespace", "-n", help="Repository namespace")]
RepositoryOpt = Annotated[str | None, typer.Option("--repository", "-r", help="Repository name")]
BrokerOpt = Annotated[str | None, typer.Option("--broker", "-b", help="Broker name (default from settings)")]


@app.callback()
def main(verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log every HTTP request")] = False) -> None:
    configure_logging(verbose)


# ---------------------------------------------------------------------------
# Settings helpers
# ---------------------------------------------------------------------------


def _scm_settings(
    profile: str | None,
    url: str | None = None,
    token: str | None = None,
    namespace: str | None = None,
    repository: str | None = None,
) -> ScmSettings:
    """Profile + env settings, with explicit CLI flags on top."""
    overrides = {"url": url, "namespace": namespace, "repository": repository}
    if token:
        overrides["api_token"] = SecretStr(token)
    settings = get_scm_settings(profile)
    return settings.model_copy(update={k: v for k, v in overrides.items() if v})


def _scm_client(settings: ScmSettings) -> ScmManagerClient:
    try:
        return ScmManagerClient.from_settings(settings)
    except RuntimeError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc


def _repo_target(settings: ScmSettings) -> tuple[str, str]:
    if not settings.namespace or not settings.repository:
        rprint("[red]No repository specified. Use --namespace/--repository or set SCM_NAMESPACE/SCM_REPOSITORY.[/red]")
        raise typer.Exit(1)
    return settings.namespace, settings.repository


def _broker_client(profile: str | None) -> tuple[ActiveMQClient, BrokerSettings]:
    settings = get_broker_settings(profile)
    return ActiveMQClient.from_settings(settings), settings


# ---------------------------------------------------------------------------
# SCM-Manager commands
# ---------------------------------------------------------------------------


@app.command("whoami")
def whoami(
    profile: ProfileOpt = None,
    url: UrlOpt = None,
    token: TokenOpt = None,
) -> None:
    """Check the API token and show who it belongs to."""
    client = _scm_client(_scm_settings(profile, url, token))
    user = client.test_authentication()
    if user is None:
        rprint("[red]Authentication failed.[/red]")
        raise typer.Exit(1)
    rprint(f"[green]✓[/green] [bold]{user.display_name or user.name}[/bold] {user.mail or ''}")


@app.command("branches")
def branches(
    profile: ProfileOpt = None,
    url: UrlOpt = None,
    token: TokenOpt = None,
    namespace: NamespaceOpt = None,
    repository: RepositoryOpt = None,
) -> None:
    """List the branches of a repository."""
    settings = _scm_settings(profile, url, token, namespace, repository)
    ns, repo = _repo_target(settings)
    found = _scm_client(settings).list_branches(ns, repo)

    table = Table(title=f"{ns}/{repo} branches")
    table.add_column("Name", style="cyan")
    table.add_column("Default")
    table.add_column("Revision", style="dim")
    for branch in found:
        table.add_row(branch.name, "✓" if branch.default_branch else "", branch.revision or "—")

    rprint(table)


@app.command("create-pr")
def create_pr(
    source: Annotated[
        str | None,
        typer.Option("--source", "-s", envvar="BRANCH_NAME", help="Source branch (default: $BRANCH_NAME)"),
    ] = None,
    target: Annotated[str, typer.Option("--target", "-t", help="Target branch")] = "main",
    title: Annotated[str | None, typer.Option("--title", help="Pull request title")] = None,
    description: Annotated[str | None, typer.Option("--description", "-d", help="Pull request description")] = None,
    status: Annotated[str | None, typer.Option("--status", help="DRAFT or OPEN")] = None,
    reviewer: Annotated[list[str] | None, typer.Option("--reviewer", help="Reviewer id (repeatable)")] = None,
    label: Annotated[list[str] | None, typer.Option("--label", help="Label (repeatable)")] = None,
    delete_source_branch: Annotated[
        bool | None,
        typer.Option("--delete-source-branch/--keep-source-branch", help="Delete the source branch after merge"),
    ] = None,
    show_branches: Annotated[bool, typer.Option("--show-branches", help="List branches before creating")] = False,
    build_number: Annotated[str | None, typer.Option("--build-number", envvar="BUILD_NUMBER")] = None,
    job_name: Annotated[str | None, typer.Option("--job-name", envvar="JOB_NAME")] = None,
    output_env: Annotated[
        Path | None,
        typer.Option("--output-env", "-o", help="Write SCM_PR_ID/SCM_PR_URL to this file for later steps"),
    ] = None,
    profile: ProfileOpt = None,
    url: UrlOpt = None,
    token: TokenOpt = None,
    namespace: NamespaceOpt = None,
    repository: RepositoryOpt = None,
) -> None:
    """Create a pull request from a CI pipeline."""
    settings = _scm_settings(profile, url, token, namespace, repository)
    options = PullRequestOptions(
        source_branch=source,
        target_branch=target,
        description=description,
        status=status.upper() if status else None,
        reviewers=reviewer or [],
        labels=label or [],
        should_delete_source_branch=delete_source_branch,
        show_branches=show_branches,
        build_number=build_number,
        job_name=job_name,
        title=title,
    )

    try:
        output = create_pull_request_in_pipeline(settings, options)
    except PipelineError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc

    rprint(f"[green]✓[/green] [bold]{output.build_description}[/bold]")
    rprint(f"  {output.pr_url}")

    if output_env:
        output_env.write_text("".join(f"{key}={value}\n" for key, value in output.as_env().items()))
        rprint(f"[green]✓[/green] Wrote {output_env}")


# ---------------------------------------------------------------------------
# ActiveMQ commands
# ---------------------------------------------------------------------------


@app.command("list-queues")
def list_queues(
    broker: BrokerOpt = None,
    method: Annotated[str, typer.Option("--method", "-m", help="Jolokia search form: get or post")] = "get",
    username: Annotated[str | None, typer.Option("--username", "-u", help="Basic auth user")] = None,
    password: Annotated[str | None, typer.Option("--password", help="Basic auth password")] = None,
    profile: ProfileOpt = None,
) -> None:
    """List queue names known to the broker."""
    client, settings = _broker_client(profile)
    broker_name = broker or settings.broker_name

    try:
        if username:
            names = client.get_all_queue_names_with_auth(broker_name, username, password or "")
        elif method.lower() == "post":
            names = client.get_all_queue_names_with_post(broker_name)
        elif method.lower() == "get":
            names = client.get_all_queue_names(broker_name)
        else:
            rprint(f"[red]Unknown method '{method}'. Valid: get, post[/red]")
            raise typer.Exit(1)
    except JolokiaError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc

    rprint(f"Queues on [bold]{broker_name}[/bold]:")
    for name in names:
        rprint(f"- {name}")


@app.command("queue-info")
def queue_info(broker: BrokerOpt = None, profile: ProfileOpt = None) -> None:
    """Show size, consumers and message counters for every queue."""
    client, settings = _broker_client(profile)
    broker_name = broker or settings.broker_name

    try:
        report = client.get_detailed_queue_info(broker_name)
    except JolokiaError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc

    table = Table(title=f"Queues on {broker_name}")
    table.add_column("Queue", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Consumers", justify="right")
    table.add_column("Enqueued", justify="right")
    table.add_column("Dequeued", justify="right")
    for q in report.queues:
        table.add_row(q.name, str(q.queue_size), str(q.consumer_count), str(q.enqueue_count), str(q.dequeue_count))

    rprint(table)
    for failure in report.failures:
        rprint(f"[yellow]Warning:[/yellow] {failure.name}: {failure.error}")


# ---------------------------------------------------------------------------
# Configuration commands
# ---------------------------------------------------------------------------


@app.command("set-default")
def set_default(
    profile: Annotated[str, typer.Argument(help="Profile name to set as default")],
) -> None:
    """Set the default profile in ~/.config/buildhooks/config.toml."""
    doc = tomlkit.parse(CONFIG_PATH.read_text()) if CONFIG_PATH.is_file() else tomlkit.document()
    profiles = _list_profiles(doc)
    if profiles and profile not in profiles:
        rprint(f"[red]Profile '{profile}' not found in {CONFIG_PATH}. Available: {profiles}[/red]")
        raise typer.Exit(1)

    doc["default_profile"] = profile
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    rprint(f'[green]✓[/green] Default profile set to "{profile}" in {CONFIG_PATH}')


@app.command("config-show")
def config_show(profile: ProfileOpt = None) -> None:
    """Show resolved configuration (masks credentials)."""
    scm = get_scm_settings(profile)
    broker = get_broker_settings(profile)

    def mask(val: SecretStr | None) -> str:
        if val is None:
            return "[dim](not set)[/dim]"
        secret = val.get_secret_value()
        if len(secret) <= 5:
            return "***"
        return f"...{secret[-5:]}"

    def show(val: object) -> str:
        return "[dim](not set)[/dim]" if val is None else str(val)

    table = Table(title="buildhooks configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("scm.url", show(scm.url))
    table.add_row("scm.api_token", mask(scm.api_token))
    table.add_row("scm.namespace", show(scm.namespace))
    table.add_row("scm.repository", show(scm.repository))
    table.add_row("activemq.host", broker.host)
    table.add_row("activemq.port", str(broker.port))
    table.add_row("activemq.broker_name", broker.broker_name)
    table.add_row("activemq.username", show(broker.username))
    table.add_row("activemq.password", mask(broker.password))

    rprint(table)
