"""
Global patch counter persisted as a single integer in a plain-text file.

The counter is the only state shared between units. It is modelled as an
immutable CounterState value that the reconciler receives and returns; the
CounterStore only knows how to move that value to and from disk.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from extver.utils import write_text_atomic

from .exceptions import CounterWriteError

logger = logging.getLogger(__name__)

DEFAULT_COUNTER = 1
DEFAULT_COUNTER_FILE = ".version-counter"


@dataclass(frozen=True)
class CounterState:
    """Value of the global counter at one point of a run."""

    value: int = DEFAULT_COUNTER

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"Counter value must be an int, got {self.value!r}")
        if self.value < 1:
            raise ValueError(f"Counter value must be positive, got {self.value}")

    def advance_past(self, patch: int) -> "CounterState":
        """Return the counter that follows a unit updated to ``patch``."""
        return CounterState(max(self.value, patch + 1))


class CounterStore:
    """Reads and writes the counter file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self) -> CounterState:
        """
        Read the stored counter.

        Missing, unreadable, non-numeric and non-positive values all fall back
        to the default so that no bogus value reaches version arithmetic.
        """
        if not self.path.exists():
            logger.warning(
                f"Counter file {self.path} not found, starting at {DEFAULT_COUNTER}"
            )
            return CounterState(DEFAULT_COUNTER)

        try:
            raw = self.path.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(
                f"Could not read counter file {self.path}: {e}. "
                f"Falling back to {DEFAULT_COUNTER}"
            )
            return CounterState(DEFAULT_COUNTER)

        try:
            value = int(raw)
        except ValueError:
            logger.warning(
                f"Counter file {self.path} is corrupt ({raw!r}). "
                f"Falling back to {DEFAULT_COUNTER}"
            )
            return CounterState(DEFAULT_COUNTER)

        if value < 1:
            logger.warning(
                f"Counter file {self.path} holds non-positive value {value}. "
                f"Falling back to {DEFAULT_COUNTER}"
            )
            return CounterState(DEFAULT_COUNTER)

        logger.debug(f"Loaded version counter {value} from {self.path}")
        return CounterState(value)

    def write(self, state: CounterState) -> None:
        """
        Persist the counter.

        Raises:
            CounterWriteError: If the file cannot be written
        """
        try:
            write_text_atomic(self.path, f"{state.value}\n")
        except OSError as e:
            raise CounterWriteError(self.path, e) from e
        logger.debug(f"Stored version counter {state.value} in {self.path}")
