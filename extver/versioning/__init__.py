"""
Versioning Module for extver.

All version arithmetic lives here so that manifests, the CLI and the
reconciler agree on one set of rules.

1. **Core Version Logic** (version.py):
   - Version: MAJOR.MINOR[.PATCH] with ordering and patch replacement

2. **Global Counter** (counter.py):
   - CounterState: immutable value of the shared patch counter
   - CounterStore: plain-text persistence with corrupt-value fallback

3. **Floor Resolution** (floors.py):
   - resolve_patch: next patch from counter, local and registry floors,
     free of I/O

4. **Exception Hierarchy** (exceptions.py):
   - Unified exception types for every fatal versioning condition
"""

from .version import Version
from .exceptions import (
    VersioningError,
    VersionFormatError,
    ManifestParseError,
    ManifestWriteError,
    CounterWriteError,
    ReconciliationAborted,
)
from .counter import CounterState, CounterStore
from .floors import Floor, PatchDecision, resolve_patch

__all__ = [
    "Version",
    "CounterState",
    "CounterStore",
    "Floor",
    "PatchDecision",
    "resolve_patch",
    "VersioningError",
    "VersionFormatError",
    "ManifestParseError",
    "ManifestWriteError",
    "CounterWriteError",
    "ReconciliationAborted",
]
