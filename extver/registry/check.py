"""Decide whether a unit's local version still needs to be published."""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from extver.model.manifest import UnitManifest

from .client import NotPublished, Published, RegistryClient, Unknown

logger = logging.getLogger(__name__)


@dataclass
class PublishCheck:
    """Result of comparing a local manifest version with the registry."""

    extension_id: str
    extension_name: str
    local_version: str
    marketplace_version: Optional[str]
    needs_publish: bool
    reason: str
    warning: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        return {
            "extensionId": data["extension_id"],
            "extensionName": data["extension_name"],
            "localVersion": data["local_version"],
            "marketplaceVersion": data["marketplace_version"],
            "needsPublish": data["needs_publish"],
            "reason": data["reason"],
            "warning": data["warning"],
        }


def check_publish(
    manifest: UnitManifest,
    publisher_id: Optional[str],
    registry: RegistryClient,
) -> PublishCheck:
    """
    Compare ``manifest`` with the version the registry currently serves.

    A unit whose registry state cannot be determined is reported as needing
    a publish; the registry rejects the upload if it is not newer.
    """
    local = manifest.version
    logger.info(f"Checking {manifest.name} ({manifest.id})...")
    logger.info(f"  Local version: {local}")

    def result(marketplace, needs_publish, reason, warning=False):
        return PublishCheck(
            extension_id=manifest.id,
            extension_name=manifest.name,
            local_version=str(local),
            marketplace_version=str(marketplace) if marketplace else None,
            needs_publish=needs_publish,
            reason=reason,
            warning=warning,
        )

    if not publisher_id:
        logger.warning("  No publisher ID provided, cannot check marketplace version")
        return result(None, True, "No publisher ID provided")

    record = registry.lookup(publisher_id, manifest.id)

    if isinstance(record, NotPublished):
        logger.info("  Marketplace version: Not published yet")
        return result(None, True, "Not yet published")

    if isinstance(record, Unknown):
        logger.warning(f"  Marketplace version unknown: {record.reason}")
        return result(None, True, "Marketplace version unknown", warning=True)

    if not isinstance(record, Published):
        raise TypeError(f"Unexpected registry record: {record!r}")
    published = record.version
    logger.info(f"  Marketplace version: {published}")

    if local > published:
        logger.info("  Needs publish: local version is newer")
        return result(published, True, "Local version is newer")
    if local < published:
        logger.warning("  Local version is older than marketplace!")
        return result(
            published,
            False,
            "Local version is older (downgrade not allowed)",
            warning=True,
        )
    logger.info("  Skip publish: versions are equal")
    return result(published, False, "Versions are equal")
