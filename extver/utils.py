"""General utils functions"""

import os
import stat
import tempfile
from pathlib import Path
from typing import Optional


def _target_mode(path: Path) -> int:
    """Mode of the existing file, or the umask default for a new one."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_text_atomic(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` through a temporary sibling file.

    Readers see either the old or the new content, never a partial write.
    The file keeps its permissions; new files get the usual umask default.
    """
    path = Path(path)
    mode = _target_mode(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(content)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    """Interpret an environment-style boolean ("1", "true", "yes", "on")."""
    if value is None:
        return default
    normalized = str(value).strip().lower()
    if normalized in ("1", "true", "yes", "on"):
        return True
    if normalized in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"Not a boolean value: {value!r}")
