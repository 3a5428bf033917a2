from __future__ import annotations

from enum import Enum
from pathlib import Path

import typer

from igs_trails.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from igs_trails.io.write import trails_frame, users_frame, write_summary, write_table
from igs_trails.logging import configure_logging
from igs_trails.paths import build_output_paths
from igs_trails.pipeline.load import EXAMPLE_DATASETS, LoadResult, load_example, load_paths
from igs_trails.session import Session

app = typer.Typer(no_args_is_help=True, add_completion=False)


class TableFormat(str, Enum):
    parquet = "parquet"
    csv = "csv"


def _load_app_config(config_path: Path) -> AppConfig:
    if not config_path.exists():
        return AppConfig()
    return load_config(config_path)


def _build_session(
    paths: list[Path] | None,
    example: str | None,
    example_source: str | None,
    cfg: AppConfig,
) -> tuple[Session, LoadResult]:
    session = Session()
    if example is not None:
        source = example_source or cfg.input.examples_source
        if not source:
            raise typer.BadParameter(
                "Missing --example-source. Required with --example unless "
                "input.examples_source or IGS_EXAMPLES_SOURCE is set."
            )
        if example not in EXAMPLE_DATASETS:
            raise typer.BadParameter(
                f"Unknown example '{example}'. Choose from: {', '.join(sorted(EXAMPLE_DATASETS))}"
            )
        result = load_example(session, example, source, cfg)
    elif paths:
        result = load_paths(session, paths, cfg)
    else:
        raise typer.BadParameter("Provide at least one file path or --example")

    for alert in result.alerts:
        typer.echo(f"ALERT: {alert}", err=True)
    if not result.ok:
        typer.echo("No files were loaded.", err=True)
        raise typer.Exit(code=1)
    return session, result


def _summary_payload(session: Session, result: LoadResult) -> dict[str, object]:
    return {
        "users": [
            {
                "name": user.name,
                "color": user.color,
                "points": len(user.data_trail),
                "segments": list(user.segments),
            }
            for user in session.users
        ],
        "codes": [
            {"code": entry.code, "color": entry.color, "enabled": entry.enabled}
            for entry in session.code_entries
        ],
        "total_duration": session.total_duration,
        "max_time": session.max_time,
        "max_stop_length": session.max_stop_length,
        "floorplan": {
            "source": session.floorplan.source,
            "width": session.floorplan.width,
            "height": session.floorplan.height,
        },
        "video": (
            {"platform": session.video.platform, **session.video.params}
            if session.video is not None
            else None
        ),
        "loaded": dict(result.loaded),
        "alerts": list(result.alerts),
    }


@app.command()
def summarize(
    paths: list[Path] | None = typer.Argument(None, exists=True, readable=True, resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, resolve_path=True),
    example: str | None = typer.Option(None, help="Load a bundled example dataset by id."),
    example_source: str | None = typer.Option(
        None,
        help="Directory or base URL holding the example datasets.",
    ),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level for load messages."),
) -> None:
    """Load movement, conversation, code, and floor plan files and print a summary."""
    configure_logging(log_level)
    cfg = _load_app_config(config)
    session, _result = _build_session(paths, example, example_source, cfg)

    for user in session.users:
        stops = sum(1 for point in user.data_trail if point.is_stopped)
        typer.echo(
            f"{user.name}: points={len(user.data_trail)} stopped={stops} "
            f"color={user.color} codes={','.join(user.segments) or '-'}"
        )
    typer.echo(f"Total duration: {session.total_duration:g}")
    typer.echo(f"Max stop length: {session.max_stop_length:g}")
    if session.code_entries:
        typer.echo(f"Codes: {', '.join(entry.code for entry in session.code_entries)}")


@app.command()
def export(
    paths: list[Path] | None = typer.Argument(None, exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, resolve_path=True),
    fmt: TableFormat | None = typer.Option(
        None,
        "--format",
        help="Override outputs.tables_format.",
    ),
    example: str | None = typer.Option(None, help="Load a bundled example dataset by id."),
    example_source: str | None = typer.Option(
        None,
        help="Directory or base URL holding the example datasets.",
    ),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level for load messages."),
) -> None:
    """Write per-point trail and per-user tables plus a JSON summary."""
    configure_logging(log_level)
    cfg = _load_app_config(config)
    session, result = _build_session(paths, example, example_source, cfg)

    table_format = fmt.value if fmt is not None else cfg.outputs.tables_format
    output_paths = build_output_paths(out)
    trails_path = write_table(
        trails_frame(session.users),
        output_paths.tables / f"trails.{table_format}",
    )
    users_path = write_table(
        users_frame(session.users),
        output_paths.tables / f"users.{table_format}",
    )
    summary_path = write_summary(
        _summary_payload(session, result),
        output_paths.summary / "summary.json",
    )
    typer.echo("Export complete")
    typer.echo(f"- trails: {trails_path}")
    typer.echo(f"- users: {users_path}")
    typer.echo(f"- summary: {summary_path}")


if __name__ == "__main__":
    app()
