"""
Git queries used by extver.

Only read access is needed: whether tracked paths changed since a recorded
revision, and the current HEAD revision. GitPython drives the git binary.
"""

from .changes import ChangeRecord, GitChangeDetector

__all__ = ["ChangeRecord", "GitChangeDetector"]
