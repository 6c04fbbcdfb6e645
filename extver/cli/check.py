"""cli command that tells CI whether an extension still has to be published"""

import json
import sys
from pathlib import Path

import click

from extver.cli.error_formatting import pretty_print_error
from extver.cli.utils.logging import logger
from extver.config import ENV_PUBLISHER_ID
from extver.model.manifest import load_manifest
from extver.registry.check import check_publish
from extver.registry.tfx import DEFAULT_REGISTRY_TOOL, TfxRegistryClient
from extver.versioning.exceptions import VersioningError

EXIT_NEEDS_PUBLISH = 0
EXIT_SKIP_PUBLISH = 1
EXIT_ERROR = 2


@click.command(name="check")
@click.option(
    "--manifest",
    "manifest_path",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Extension manifest to check.",
)
@click.option(
    "--publisher-id",
    envvar=ENV_PUBLISHER_ID,
    default=None,
    help="Marketplace publisher (default: $PUBLISHER_ID).",
)
@click.option(
    "--registry-tool",
    default=DEFAULT_REGISTRY_TOOL,
    show_default=True,
    help="Registry command line tool.",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Seconds to wait for the registry.",
)
@click.pass_context
def check(ctx, manifest_path, publisher_id, registry_tool, timeout):
    """Check whether an extension needs publishing.

    Exit code 0 means publish, 1 means skip, 2 means error.
    """
    ctx.ensure_object(dict)

    if not manifest_path.exists():
        logger.error(f"Error: Manifest file not found: {manifest_path}")
        sys.exit(EXIT_ERROR)

    try:
        manifest = load_manifest(manifest_path, require_files=False)
    except VersioningError as e:
        logger.error(pretty_print_error(e))
        sys.exit(EXIT_ERROR)

    registry = TfxRegistryClient(registry_tool, timeout)
    result = check_publish(manifest, publisher_id, registry)

    click.echo("\nResult:")
    click.echo(json.dumps(result.to_dict(), indent=2))
    sys.exit(EXIT_NEEDS_PUBLISH if result.needs_publish else EXIT_SKIP_PUBLISH)
