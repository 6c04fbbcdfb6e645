"""
Marketplace lookups through the ``tfx`` command line tool.

Identifiers end up as arguments of an external process, so they are checked
against a strict pattern first and always passed as an argument vector.
Everything the tool prints is untrusted: any surprise degrades to Unknown.
"""

import html
import json
import logging
import re
import subprocess
from typing import List, Optional

from extver.versioning.exceptions import VersionFormatError
from extver.versioning.version import Version

from .client import NotPublished, Published, RegistryRecord, Unknown

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_TOOL = "tfx"

VALID_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

NOT_FOUND_MARKERS = ("not found", "does not exist")


def is_valid_identifier(value: Optional[str]) -> bool:
    """True for non-empty identifiers made of letters, digits, ``-`` and ``_``."""
    return isinstance(value, str) and VALID_ID_PATTERN.fullmatch(value) is not None


def build_show_command(tool: str, publisher_id: str, unit_id: str) -> List[str]:
    """Argument vector for ``tfx extension show``."""
    return [
        tool,
        "extension",
        "show",
        "--publisher",
        publisher_id,
        "--extension-id",
        unit_id,
        "--json",
    ]


def parse_show_output(output: str) -> RegistryRecord:
    """
    Interpret the JSON printed by ``tfx extension show``.

    HTML entities that show up in error payloads are decoded before parsing.
    """
    try:
        decoded = html.unescape(output)
    except (TypeError, ValueError) as e:
        return Unknown(f"could not decode registry output: {e}")

    if not decoded.strip():
        return Unknown("empty registry output")

    try:
        data = json.loads(decoded)
    except json.JSONDecodeError as e:
        return Unknown(f"registry output is not JSON: {e.msg}")

    if data is None:
        return NotPublished()
    if not isinstance(data, dict):
        return Unknown("registry output is not a JSON object")

    versions = data.get("versions")
    if not versions:
        return NotPublished()
    if not isinstance(versions, list) or not isinstance(versions[0], dict):
        return Unknown("unexpected 'versions' structure in registry output")

    raw = versions[0].get("version")
    if not raw:
        return NotPublished()

    try:
        return Published(Version(raw))
    except VersionFormatError as e:
        return Unknown(str(e))


class TfxRegistryClient:
    """RegistryClient that shells out to ``tfx``."""

    def __init__(
        self, tool: str = DEFAULT_REGISTRY_TOOL, timeout: Optional[float] = None
    ):
        """
        Args:
            tool: Executable name or path of the tfx CLI
            timeout: Seconds to wait for a single lookup; None waits forever
        """
        self.tool = tool
        self.timeout = timeout

    def lookup(self, publisher_id: str, unit_id: str) -> RegistryRecord:
        if not is_valid_identifier(publisher_id) or not is_valid_identifier(unit_id):
            logger.warning(
                f"Refusing registry lookup for {publisher_id!r}.{unit_id!r}: "
                "identifiers may only contain letters, digits, '-' and '_'"
            )
            return Unknown("invalid publisher or unit identifier")

        command = build_show_command(self.tool, publisher_id, unit_id)
        logger.debug(f"Querying registry: {' '.join(command)}")

        try:
            result = subprocess.run(
                command,
                text=True,
                capture_output=True,
                check=False,
                shell=False,
                timeout=self.timeout,
                errors="replace",
            )
        except FileNotFoundError:
            return Unknown(f"registry tool '{self.tool}' not found")
        except subprocess.TimeoutExpired:
            return Unknown(f"registry lookup timed out after {self.timeout}s")
        except OSError as e:
            return Unknown(f"could not run registry tool: {e}")

        if result.returncode != 0:
            stderr = html.unescape(result.stderr or "").lower()
            if any(marker in stderr for marker in NOT_FOUND_MARKERS):
                return NotPublished()
            first_line = (result.stderr or "").strip().splitlines()[:1]
            detail = first_line[0] if first_line else "no error output"
            return Unknown(f"registry tool exited with {result.returncode}: {detail}")

        return parse_show_output(result.stdout or "")
