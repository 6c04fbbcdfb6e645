"""
Change detection over git history.

A unit needs a new version when any commit after its recorded baseline
touched one of its tracked paths. Every failure to answer that question
counts as "changed" so that a version bump is never lost to tooling trouble.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from git import Repo
from git.exc import GitError, InvalidGitRepositoryError, NoSuchPathError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeRecord:
    """Outcome of a change query for one unit."""

    has_changes: bool
    head_revision: Optional[str]
    reason: str


class GitChangeDetector:
    """
    Answers "did anything under these paths change since revision X?".

    Paths are given relative to ``root``; ``root`` may be a subdirectory of
    the git working tree.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self.repo: Optional[Repo] = None
        self._prefix = ""

        try:
            self.repo = Repo(self.root, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            logger.warning(f"{self.root} is not inside a git repository: {e}")
            return

        working_tree = self.repo.working_tree_dir
        if working_tree is not None:
            try:
                prefix = self.root.resolve().relative_to(Path(working_tree).resolve())
                self._prefix = "" if str(prefix) == "." else prefix.as_posix()
            except ValueError:
                self._prefix = ""

    @property
    def git_available(self) -> bool:
        return self.repo is not None

    def head_revision(self) -> Optional[str]:
        """Full sha of HEAD, or None when it cannot be determined."""
        if self.repo is None:
            return None
        try:
            return self.repo.head.commit.hexsha
        except (GitError, ValueError) as e:
            logger.warning(f"Could not resolve HEAD revision: {e}")
            return None

    def _pathspecs(self, tracked_paths: Iterable[str]) -> List[str]:
        specs = []
        for path in tracked_paths:
            if self._prefix:
                specs.append(f"{self._prefix}/{path}")
            else:
                specs.append(path)
        return specs

    def has_changes(
        self, tracked_paths: Iterable[str], since: Optional[str]
    ) -> ChangeRecord:
        """
        Check whether commits after ``since`` touched any tracked path.

        Args:
            tracked_paths: Paths relative to the detector root
            since: Revision recorded at the last version update, or None

        Returns:
            ChangeRecord; has_changes is True when the baseline is unknown or
            the git query fails
        """
        head = self.head_revision()

        if not since:
            return ChangeRecord(True, head, "no recorded baseline commit")

        if self.repo is None:
            logger.warning(
                "Git history unavailable, assuming changes since "
                f"{since[:8]} (fail open)"
            )
            return ChangeRecord(True, head, "git unavailable")

        specs = self._pathspecs(tracked_paths)
        try:
            commits = list(
                self.repo.iter_commits(f"{since}..HEAD", paths=specs, max_count=1)
            )
        except (GitError, ValueError, OSError) as e:
            logger.warning(
                f"Git history query since {since[:8]} failed, assuming changes "
                f"(fail open): {e}"
            )
            return ChangeRecord(True, head, "git query failed")

        if commits:
            return ChangeRecord(
                True, head, f"commit {commits[0].hexsha[:8]} touched tracked paths"
            )
        return ChangeRecord(False, head, f"no commits since {since[:8]}")
