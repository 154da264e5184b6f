"""CLI entry point for packrunner."""
from __future__ import annotations

import json
import logging
import sys
from typing import List, Optional

import click

from packrunner import PluginError, __version__, bootstrap
from packrunner.backends import backend_manager
from packrunner.config import RunnerConfig
from packrunner.core.models import Project
from packrunner.core.results import SavedTestResult, format_timestamp
from packrunner.core.scoring import VERDICT_MAPPINGS, get_verdict_mapping
from packrunner.history import HistoryError, HistoryRepository, JsonHistoryStore
from packrunner.pack import load_pack, load_projects, run_session
from packrunner.reporting import JsonReporter, Reporter, TerminalReporter
from packrunner.reporting.terminal import result_status

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class CliState:
    """Holds global CLI state."""

    def __init__(self, verbose: bool, config: RunnerConfig) -> None:
        self.verbose = verbose
        self.config = config


def _print_version(_: click.Context, __: click.Parameter, value: bool) -> None:
    if not value or click.get_current_context().resilient_parsing:
        return
    click.echo(f"packrunner {__version__}")
    raise click.exceptions.Exit()


def _configure_logging(level: str) -> None:
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(level)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option("--verbose", is_flag=True, help="Enable verbose logging output.")
@click.option(
    "--version",
    is_flag=True,
    callback=_print_version,
    expose_value=False,
    is_eager=True,
    help="Show the packrunner version and exit.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Run question packs against the document QA service and keep score."""

    try:
        config = RunnerConfig.from_env()
        _configure_logging("DEBUG" if verbose else config.log_level)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    try:
        bootstrap()
    except PluginError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.obj = CliState(verbose=verbose, config=config)


@cli.command()
@click.option(
    "--pack",
    "pack_path",
    type=click.Path(exists=True, dir_okay=False),
    required=True,
    help="YAML or JSON question pack file.",
)
@click.option("--project", "project_id", type=str, required=True, help="Project (ITB) identifier to query.")
@click.option(
    "--projects",
    "projects_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Project list used to resolve the project's display name.",
)
@click.option("--backend", "backend_name", type=str, default="http", show_default=True, help="QA backend to query.")
@click.option(
    "--responses",
    "responses_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Scripted responses file for the stub backend.",
)
@click.option("--endpoint", type=str, help="QA service URL (overrides PACKRUNNER_QA_ENDPOINT).")
@click.option("--timeout", type=float, help="Per-question timeout in seconds.")
@click.option("--history", "history_path", type=click.Path(dir_okay=False), help="History file to save into.")
@click.option("--no-save", is_flag=True, help="Do not save the run to history.")
@click.option(
    "--verdict-mapping",
    type=click.Choice(sorted(VERDICT_MAPPINGS)),
    help="How scores map onto Bid/Pass verdicts.",
)
@click.option(
    "--report",
    "report_format",
    type=click.Choice(["terminal", "json"]),
    default="terminal",
    show_default=True,
    help="Report format (terminal by default).",
)
@click.option("--report-path", type=str, help="When --report json, write to this path.")
@click.option("--no-color", is_flag=True, help="Disable ANSI colors in terminal output.")
@click.pass_obj
def run(
    state: CliState,
    pack_path: str,
    project_id: str,
    projects_path: Optional[str],
    backend_name: str,
    responses_path: Optional[str],
    endpoint: Optional[str],
    timeout: Optional[float],
    history_path: Optional[str],
    no_save: bool,
    verdict_mapping: Optional[str],
    report_format: str,
    report_path: Optional[str],
    no_color: bool,
) -> None:
    """Ask every question of a pack for one project and score the answers."""

    if report_format == "json" and not report_path:
        raise click.UsageError("--report-path is required with --report json")
    config = state.config.with_overrides(
        endpoint=endpoint,
        timeout=timeout,
        history_path=history_path,
        verdict_mapping=verdict_mapping,
        responses_path=responses_path,
    )
    try:
        mapping = get_verdict_mapping(config.verdict_mapping)
        pack = load_pack(pack_path)
        if projects_path:
            project = load_projects(projects_path).resolve(project_id)
        else:
            project = Project(id=project_id, name=project_id)
        store = None if no_save else _open_store(config)
        reporters: List[Reporter] = [TerminalReporter(use_color=not no_color, mapping=mapping)]
        if report_format == "json":
            assert report_path
            reporters = [JsonReporter(report_path, mapping=mapping)]
        backend = backend_manager.create(backend_name, config)
        try:
            outcome = run_session(pack, project, backend, store, mapping=mapping, reporters=reporters)
        finally:
            backend.close()
    except Exception as exc:  # pragma: no cover - CLI error translation
        raise click.ClickException(str(exc)) from exc
    for warning in outcome.warnings:
        click.echo(f"Warning: {warning}", err=True)
    raise click.exceptions.Exit(0 if mapping.is_success(outcome.run.verdict) else 1)


def _open_store(config: RunnerConfig) -> Optional[HistoryRepository]:
    try:
        return JsonHistoryStore(config.resolved_history_path)
    except HistoryError as exc:
        click.echo(f"Warning: history disabled for this run: {exc}", err=True)
        return None


@cli.group()
@click.option("--history", "history_path", type=click.Path(dir_okay=False), help="History file to use.")
@click.pass_context
def history(ctx: click.Context, history_path: Optional[str]) -> None:
    """Inspect and manage saved test results."""

    state: CliState = ctx.obj
    config = state.config.with_overrides(history_path=history_path)
    try:
        ctx.obj = JsonHistoryStore(config.resolved_history_path)
    except HistoryError as exc:
        raise click.ClickException(str(exc)) from exc


@history.command("list")
@click.option("--pack", "pack_id", type=str, help="Only results for this pack.")
@click.option("--project", "project_id", type=str, help="Only results for this project.")
@click.pass_obj
def list_results(store: HistoryRepository, pack_id: Optional[str], project_id: Optional[str]) -> None:
    """List saved results, most recently saved first."""

    if pack_id and project_id:
        found = store.get_by_pack_and_project(pack_id, project_id)
        entries = [found] if found is not None else []
    elif pack_id:
        entries = store.list_for_pack(pack_id)
    elif project_id:
        entries = store.list_for_project(project_id)
    else:
        entries = store.list_all()
    if not entries:
        click.echo("No saved results.")
        return
    for entry in entries:
        run = entry.test_run
        click.echo(
            f"{entry.id}  {run.verdict} (final={run.final_score}, base={run.base_score})  "
            f"{entry.pack_name} / {entry.project_name}  {format_timestamp(entry.created_at)}"
        )


@history.command("show")
@click.argument("pack_id")
@click.argument("project_id")
@click.option("--json", "as_json", is_flag=True, help="Print the saved record as JSON.")
@click.pass_obj
def show_result(store: HistoryRepository, pack_id: str, project_id: str, as_json: bool) -> None:
    """Show the saved result for a pack and project."""

    entry = store.get_by_pack_and_project(pack_id, project_id)
    if entry is None:
        raise click.ClickException(f"No saved result for pack '{pack_id}' and project '{project_id}'")
    if as_json:
        click.echo(json.dumps(entry.to_dict(), indent=2))
        return
    _echo_saved(entry)


@history.command("delete")
@click.argument("result_id")
@click.pass_obj
def delete_result(store: HistoryRepository, result_id: str) -> None:
    """Delete one saved result by id."""

    try:
        deleted = store.delete(result_id)
    except HistoryError as exc:
        raise click.ClickException(str(exc)) from exc
    if not deleted:
        raise click.ClickException(f"No saved result with id '{result_id}'")
    click.echo(f"Deleted {result_id}")


@history.command("clear")
@click.confirmation_option(prompt="Delete every saved result?")
@click.pass_obj
def clear_results(store: HistoryRepository) -> None:
    """Delete every saved result."""

    try:
        store.clear()
    except HistoryError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo("History cleared.")


def _echo_saved(entry: SavedTestResult) -> None:
    run = entry.test_run
    click.echo(f"{entry.pack_name} on {entry.project_name}")
    click.echo(f"  run: {run.id} completed {format_timestamp(run.completed_at)}")
    click.echo(f"  saved: {format_timestamp(entry.created_at)}")
    click.echo(
        f"  verdict: {run.verdict} (final={run.final_score}, base={run.base_score}, "
        f"critical fail={'yes' if run.has_critical_fail else 'no'})"
    )
    for index, result in enumerate(run.results, start=1):
        click.echo(f"  [{index}] {result.question_id} -> {result_status(result).upper()}: {result.answer}")
        for source in result.sources:
            location = source.location()
            click.echo(f"      {source.human_readable}" + (f" ({location})" if location else ""))


def main(argv: Optional[list[str]] = None) -> int:
    """Program entry point for console_scripts shim."""

    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=argv, prog_name="packrunner", standalone_mode=True)
    except click.ClickException as err:  # pragma: no cover - click handles display
        err.show()
        return err.exit_code
    except SystemExit as exc:  # click may raise exit code
        return int(exc.code or 0)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
