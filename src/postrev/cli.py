"""postrev CLI: versioned post store for a Jekyll-style blog.

Commands:
    postrev init [NAME]            create postrev.toml
    postrev check                  ingest posts, print diagnostics
    postrev show IDENTITY          dump a post's revision history
    postrev publish [--build]      export latest revisions, optionally run the site build
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from postrev.config import ConfigError, PostrevConfig, init_config, load_config
from postrev.ingest import IngestReport, collect_units, ingest_units
from postrev.publish import PublishAdapter, run_build

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_cfg() -> PostrevConfig:
    try:
        return load_config()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _ingest(cfg: PostrevConfig) -> IngestReport:
    units = collect_units(cfg.site.content_dir, cfg.site.include, cfg.site.exclude)
    return ingest_units(units, workers=cfg.ingest.workers)


def _echo_diagnostics(report: IngestReport, fail_on: list[str]) -> bool:
    """Print diagnostics; return True if any is fatal under fail_on."""
    fatal = False
    for d in report.diagnostics:
        is_fatal = d.kind in fail_on
        fatal = fatal or is_fatal
        click.echo(d.format_line(), err=is_fatal)
    return fatal


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="postrev")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def cli(verbose: bool) -> None:
    """postrev: versioned post store for a static blog."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(message)s",
    )


# ---------------------------------------------------------------------------
# postrev init
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("name", required=False)
@click.option("--dir", "root", default=".", show_default=True, help="Project root")
def init(name: str | None, root: str) -> None:
    """Create postrev.toml in the current project."""
    root_path = Path(root).resolve()
    try:
        config_path = init_config(root_path, name=name)
        click.echo(f"Created {config_path}")
    except FileExistsError:
        click.echo("postrev.toml already exists, skipping init")

    cfg = load_config(root_path)
    click.echo(f"Content dir : {cfg.site.content_dir}")
    click.echo(f"Publish dir : {cfg.publish.dest_dir}")


# ---------------------------------------------------------------------------
# postrev check
# ---------------------------------------------------------------------------


@cli.command()
def check() -> None:
    """Ingest all posts and report parse, identity and duplicate issues."""
    cfg = _load_cfg()
    report = _ingest(cfg)
    fatal = _echo_diagnostics(report, cfg.diagnostics.fail_on)
    click.echo(
        f"{len(report.store)} documents, {report.created} revisions, "
        f"{report.deduplicated} duplicates, {len(report.errors)} skipped"
    )
    if fatal:
        raise SystemExit(1)


# ---------------------------------------------------------------------------
# postrev show
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("identity")
@click.option("--json", "as_json", is_flag=True, help="Print the full history as JSON")
def show(identity: str, as_json: bool) -> None:
    """Show the revision history of one post."""
    cfg = _load_cfg()
    report = _ingest(cfg)
    history = report.store.get_history(identity)
    if not history:
        raise click.ClickException(f"no such post: {identity}")

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in history], indent=2, ensure_ascii=False, default=str))
        return

    latest = history[-1]
    for rev in history:
        marker = "*" if rev is latest else " "
        click.echo(f"{marker} #{rev.sequence}  {rev.path or '-'}  {rev.title}")


# ---------------------------------------------------------------------------
# postrev publish
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--dest", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Output directory (default: publish.dest_dir)")
@click.option("--build", "do_build", is_flag=True, help="Run publish.build_command afterwards")
def publish(dest: Path | None, do_build: bool) -> None:
    """Write the latest revision of every post for the site renderer."""
    cfg = _load_cfg()
    report = _ingest(cfg)
    if _echo_diagnostics(report, cfg.diagnostics.fail_on):
        click.echo("Not publishing: fix the errors above or relax diagnostics.fail_on", err=True)
        raise SystemExit(1)

    adapter = PublishAdapter(report.store, cfg)
    written = adapter.export(dest or cfg.publish.dest_dir)
    click.echo(f"Published {len(written)} posts to {dest or cfg.publish.dest_dir}")

    if do_build:
        try:
            code = run_build(cfg)
        except (ValueError, OSError) as exc:
            raise click.ClickException(str(exc)) from exc
        if code != 0:
            raise SystemExit(code)
