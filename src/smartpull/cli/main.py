"""CLI entry point for smartpull built with Typer."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer
from pydantic import ValidationError

from smartpull.cli.runtime import PullContext, build_pull_context, load_cli_config
from smartpull.core.report import format_outcome, outcome_to_payload
from smartpull.io import EnvironmentSettings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from smartpull.core.models import PullOutcome


app = typer.Typer(add_completion=False, no_args_is_help=True)


def _resolve_repo(repo: Path | None) -> Path:
    return repo.resolve() if repo is not None else Path.cwd()


def _emit_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False))


def _format_validation_error(exc: ValidationError) -> str:
    """Return a concise summary describing ``exc``."""
    fragments: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "config"
        message = error.get("msg") or str(exc)
        fragments.append(f"{location}: {message}")
    return "; ".join(fragments)


def _prepare_context(
    repo: Path | None,
    config_path: Path | None,
    *,
    remote: str | None,
    branch: str | None,
    dry_run: bool | None,
    json_logs: bool,
    silence_logs: bool,
) -> PullContext:
    repo_path = _resolve_repo(repo)
    try:
        settings = EnvironmentSettings()
        config = load_cli_config(
            config_path,
            settings=settings,
            remote=remote,
            branch=branch,
            dry_run=dry_run,
        )
    except FileNotFoundError as exc:
        typer.echo(f"Configuration file not found: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    except ValidationError as exc:
        message = _format_validation_error(exc) or str(exc)
        typer.echo(f"Invalid configuration: {message}", err=True)
        raise typer.Exit(code=2) from exc
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc

    return build_pull_context(
        repo_path,
        config,
        json_logs=json_logs,
        silence_logs=silence_logs,
        mcp_server=settings.mcp_server,
    )


def _build_payload(context: PullContext, outcome: PullOutcome) -> dict[str, Any]:
    return {
        "repository": str(context.repo_path),
        "dry_run": context.action_facade.dry_run,
        "outcome": outcome_to_payload(outcome),
        "command_history": list(context.action_facade.command_history),
    }


@app.callback()
def cli_root() -> None:
    """Pull from a remote, resolving mechanical conflicts automatically."""


RepoOption = Annotated[Path | None, typer.Option(help="Path to the repository.")]
ConfigOption = Annotated[Path | None, typer.Option(help="Path to a configuration TOML.")]
JsonFlag = Annotated[
    bool,
    typer.Option("--json", "--json-output", help="Emit JSON instead of text."),
]


@app.command("pull")
def pull_command(
    repo: RepoOption = None,
    config: ConfigOption = None,
    remote: Annotated[
        str | None,
        typer.Option("--remote", help="Remote to pull from (default: origin)."),
    ] = None,
    branch: Annotated[
        str | None,
        typer.Option("--branch", help="Branch to pull (default: the current branch)."),
    ] = None,
    dry_run: Annotated[
        bool | None,
        typer.Option(
            "--dry-run/--no-dry-run",
            help="Record mutating git commands without running them.",
            show_default=False,
        ),
    ] = None,
    json_output: JsonFlag = False,
) -> None:
    """Fetch, then fast-forward, rebase or merge, auto-resolving known conflicts."""
    context = _prepare_context(
        repo,
        config,
        remote=remote,
        branch=branch,
        dry_run=dry_run,
        json_logs=json_output,
        silence_logs=json_output,
    )
    outcome = context.build_cascade().run()

    if json_output:
        _emit_json(_build_payload(context, outcome))
    else:
        typer.echo(format_outcome(outcome))

    if not outcome.success:
        raise typer.Exit(code=1)


def main(argv: Sequence[str] | None = None) -> int:
    """Execute the smartpull CLI and return the exit status."""
    command = typer.main.get_command(app)
    try:
        result = command.main(
            args=list(argv) if argv is not None else None,
            prog_name="smartpull",
            standalone_mode=False,
        )
    except SystemExit as exc:  # pragma: no cover - Typer propagates exit codes via SystemExit
        return int(exc.code or 0)
    # Without standalone mode, click returns the exit code of ``typer.Exit``.
    return result if isinstance(result, int) else 0


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
