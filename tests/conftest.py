import io
import json
import logging
from pathlib import Path
from typing import Optional

import pytest
from git import Repo


@pytest.fixture
def capture_logs():
    """Fixture to capture log output during tests."""
    log_stream = io.StringIO()
    handler = logging.StreamHandler(log_stream)
    logger = logging.getLogger("extver")
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    yield log_stream

    logger.removeHandler(handler)
    logger.setLevel(previous_level)
    log_stream.close()


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Keep CI variables of the host out of the tests."""
    for name in ("PUBLISHER_ID", "FORCE_UPDATE", "EXTVER_CONFIG"):
        monkeypatch.delenv(name, raising=False)
    yield
    # CLI runs attach a stdout handler bound to the runner's stream
    logger = logging.getLogger("extver")
    for handler in list(logger.handlers):
        if getattr(handler, "_extver_stdout", False):
            logger.removeHandler(handler)


def write_manifest(
    root: Path,
    slug: str,
    version: str = "1.0",
    unit_id: Optional[str] = None,
    files=None,
    metadata=None,
) -> Path:
    """Write an extension manifest the way the repositories lay them out."""
    data = {
        "manifestVersion": 1,
        "id": unit_id or slug,
        "publisher": "contoso",
        "version": version,
        "name": f"Better {slug.title()}",
        "files": (
            files
            if files is not None
            else [{"path": f"apps/{slug}/dist", "addressable": True}]
        ),
    }
    if metadata is not None:
        data["metadata"] = metadata
    path = Path(root) / f"azure-devops-extension-{slug}.json"
    path.write_text(json.dumps(data, indent=2) + "\n")
    return path


@pytest.fixture
def make_manifest(tmp_path):
    """Factory writing manifests into tmp_path."""

    def _make(slug: str, **kwargs) -> Path:
        return write_manifest(tmp_path, slug, **kwargs)

    return _make


class GitWorkspace:
    """A throwaway git repository with helpers to write files and commit."""

    def __init__(self, root: Path):
        self.root = root
        self.repo = Repo.init(root)
        with self.repo.config_writer() as writer:
            writer.set_value("user", "name", "Extver Tests")
            writer.set_value("user", "email", "tests@example.com")
            writer.set_value("commit", "gpgsign", "false")

    def write(self, relative_path: str, content: str) -> Path:
        path = self.root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    def commit(self, message: str, *paths: str) -> str:
        """Commit ``paths`` (everything when empty) and return the sha."""
        if paths:
            self.repo.git.add("--", *paths)
        else:
            self.repo.git.add(A=True)
        self.repo.git.commit("-m", message)
        return self.repo.head.commit.hexsha

    @property
    def head(self) -> str:
        return self.repo.head.commit.hexsha


@pytest.fixture
def git_workspace(tmp_path) -> GitWorkspace:
    return GitWorkspace(tmp_path)


@pytest.fixture
def extensions_repo(git_workspace) -> GitWorkspace:
    """Repository with two extensions, both at 1.0, one initial commit."""
    git_workspace.write("apps/hub/src/index.ts", "export const hub = 1;\n")
    git_workspace.write("apps/logs/src/index.ts", "export const logs = 1;\n")
    git_workspace.write("README.md", "# extensions\n")
    write_manifest(git_workspace.root, "hub")
    write_manifest(git_workspace.root, "logs")
    git_workspace.commit("initial import")
    return git_workspace
