"""cli command that bumps extension versions"""

import sys
from pathlib import Path

import click

from extver.cli.error_formatting import pretty_print_error
from extver.cli.utils.logging import logger
from extver.config import load_config
from extver.git.changes import GitChangeDetector
from extver.model.manifest import discover_manifests, load_manifests
from extver.reconcile.reconciler import VersionReconciler
from extver.reconcile.summary import RunSummary
from extver.registry.tfx import TfxRegistryClient
from extver.versioning.counter import CounterStore
from extver.versioning.exceptions import ReconciliationAborted, VersioningError


def emit_summary(summary: RunSummary, summary_json=None) -> None:
    """Print the run summary last, optionally also as JSON on disk."""
    if summary_json:
        try:
            Path(summary_json).write_text(summary.to_json(), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not write summary to {summary_json}: {e}")

    click.echo("\nRun summary:")
    for line in summary.lines():
        click.echo(f"  {line}")


@click.command(name="reconcile")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Repository root holding the extension manifests.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file. Default: <root>/extver.cfg or $EXTVER_CONFIG.",
)
@click.option(
    "--publisher-id",
    default=None,
    help="Marketplace publisher. Overrides $PUBLISHER_ID. Enables the registry floor.",
)
@click.option(
    "--force-update/--no-force-update",
    default=None,
    help="Bump every extension regardless of changes. Overrides $FORCE_UPDATE.",
)
@click.option("--counter-file", default=None, help="Counter file, relative to root.")
@click.option("--manifest-pattern", default=None, help="Glob matching manifests.")
@click.option("--units-root", default=None, help="Directory holding extension sources.")
@click.option(
    "--summary-json",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write the run summary as JSON to this file.",
)
@click.option(
    "-d", "--dry-run", is_flag=True, default=False, help="Compute, but write nothing."
)
@click.pass_context
def reconcile(
    ctx,
    root,
    config_path,
    publisher_id,
    force_update,
    counter_file,
    manifest_pattern,
    units_root,
    summary_json,
    dry_run,
):
    """Compute and persist the next version of every extension."""
    ctx.ensure_object(dict)

    try:
        config = load_config(root, config_path).override(
            publisher_id=publisher_id,
            force_update=force_update,
            counter_file=counter_file,
            manifest_pattern=manifest_pattern,
            units_root=units_root,
        )
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    try:
        paths = discover_manifests(config.root, config.manifest_pattern)
        logger.info(f"Found {len(paths)} extension manifest(s):")
        for path in paths:
            logger.info(f"  - {path.name}")
        manifests = load_manifests(paths, config.root, config.units_root)
    except VersioningError as e:
        logger.error(pretty_print_error(e))
        sys.exit(1)

    store = CounterStore(config.counter_path)
    counter = store.read()

    registry = None
    if config.publisher_id:
        registry = TfxRegistryClient(config.registry_tool, config.registry_timeout)

    reconciler = VersionReconciler(
        change_detector=GitChangeDetector(config.root),
        registry=registry,
        publisher_id=config.publisher_id,
        force_update=config.force_update,
        counter_writer=None if dry_run else store.write,
        dry_run=dry_run,
    )

    try:
        summary, counter = reconciler.run(manifests, counter)
    except ReconciliationAborted as e:
        logger.error(pretty_print_error(e))
        if e.summary is not None:
            emit_summary(e.summary, summary_json)
        sys.exit(1)

    emit_summary(summary, summary_json)
