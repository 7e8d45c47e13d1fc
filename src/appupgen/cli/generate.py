"""appupgen generate command - compare two releases and write .appup files."""

from __future__ import annotations

import json
from contextlib import nullcontext
from pathlib import Path

import click

from appupgen.appup.models import GenerateReport
from appupgen.appup.ops import AppupGenerator
from appupgen.config.loader import build_generate_config, load_config
from appupgen.core.errors import ConfigError, PreconditionViolation, ReleaseInfoUnavailable
from appupgen.core.logging import configure_logging, get_log_file_path, set_run_id
from appupgen.core.progress import pluralize, spinner, status
from appupgen.release.reader import release_name_from_rebar_config


def _print_report(report: GenerateReport) -> None:
    status(
        f"Release {report.release}: {report.previous_version} -> {report.current_version}",
        style="none",
    )
    if report.added:
        status(f"Added apps (no appup needed): {', '.join(report.added)}")
    if report.removed:
        status(f"Removed apps (not covered by appups): {', '.join(report.removed)}")
    for app in report.skipped:
        status(f"{app} already has an .appup, left untouched", style="warning")
    for app in report.generated:
        status(f"Generated appup for {app}", style="success")
    for failure in report.failures:
        status(f"{failure.app}: {failure.error}", style="error")
    for path in report.written:
        status(str(path), indent=2)
    if not report.generated and not report.failures:
        status("No upgraded applications need an appup", style="info")


@click.command()
@click.option(
    "-n",
    "--name",
    "release_name",
    default=None,
    help="Release name (default: the relx release in rebar.config)",
)
@click.option(
    "-p",
    "--previous",
    required=True,
    type=click.Path(path_type=Path),
    help="Location of the previous release",
)
@click.option("--previous-version", default=None, help="Version of the previous release")
@click.option(
    "-c",
    "--current",
    default=None,
    type=click.Path(path_type=Path),
    help="Location of the current release (default: <base_dir>/rel/<name>)",
)
@click.option(
    "-t",
    "--target-dir",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory to write the .appup files to, instead of the release and build dirs",
)
@click.option(
    "--project-dir",
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Project root holding rebar.config and .appupgen/config.yaml",
)
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.pass_context
def generate_command(
    ctx: click.Context,
    release_name: str | None,
    previous: Path,
    previous_version: str | None,
    current: Path | None,
    target_dir: Path | None,
    project_dir: Path,
    as_json: bool,
) -> None:
    """Compare two releases and generate .appup files for upgraded apps.

    Applications that already ship an .appup in the current release are
    skipped.
    """
    project_dir = project_dir.resolve()
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))

    try:
        config = load_config(project_dir)
        if verbose:
            config.logging.level = "DEBUG"
        configure_logging(config=config.logging)
        set_run_id()

        if release_name is None:
            release_name = release_name_from_rebar_config(project_dir)
        generate_config = build_generate_config(
            config,
            project_dir=project_dir,
            release_name=release_name,
            previous=previous,
            previous_version=previous_version,
            current=current,
            target_dir=target_dir,
        )
        if target_dir is not None:
            target_dir.mkdir(parents=True, exist_ok=True)

        progress = nullcontext() if as_json else spinner(f"Comparing {release_name} releases")
        with progress:
            report = AppupGenerator(generate_config).run()
    except (ConfigError, ReleaseInfoUnavailable, PreconditionViolation) as e:
        raise click.ClickException(str(e)) from e
    except OSError as e:
        raise click.ClickException(f"{e.filename or target_dir}: {e.strerror or e}") from e

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        _print_report(report)

    if not report.ok:
        status(
            f"{pluralize(len(report.failures), 'application')} failed",
            style="error",
        )
        if (log_file := get_log_file_path()) is not None:
            status(f"Details in {log_file}", indent=2)
        raise SystemExit(1)
