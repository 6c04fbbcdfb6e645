"""Tests for the reconcile command, run against a real git repository."""

import json
from unittest.mock import patch

from click.testing import CliRunner

from extver.cli.main import cli
from extver.registry.client import StaticRegistryClient


def invoke(args, env=None):
    runner = CliRunner()
    return runner.invoke(cli, args, env=env, catch_exceptions=False)


def manifest_version(root, slug):
    path = root / f"azure-devops-extension-{slug}.json"
    return json.loads(path.read_text())["version"]


class TestReconcileCommand:
    def test_first_run(self, extensions_repo):
        root = extensions_repo.root

        result = invoke(["reconcile", "--root", str(root)])

        assert result.exit_code == 0, result.output
        assert "Found 2 extension manifest(s):" in result.output
        assert "Run summary:" in result.output
        assert "hub: 1.0 -> 1.0.1 [updated]" in result.output
        assert "logs: 1.0 -> 1.0.2 [updated]" in result.output
        assert "2 unit(s): 2 updated, 0 skipped, 0 failed" in result.output
        assert manifest_version(root, "logs") == "1.0.2"
        assert (root / ".version-counter").read_text() == "3\n"

    def test_second_run_skips(self, extensions_repo):
        root = extensions_repo.root
        invoke(["reconcile", "--root", str(root)])

        result = invoke(["reconcile", "--root", str(root)])

        assert result.exit_code == 0, result.output
        assert "hub: 1.0.1 [skipped] no changes" in result.output
        assert "2 unit(s): 0 updated, 2 skipped" in result.output

    def test_force_update_flag(self, extensions_repo):
        root = extensions_repo.root
        invoke(["reconcile", "--root", str(root)])

        result = invoke(["reconcile", "--root", str(root), "--force-update"])

        assert result.exit_code == 0, result.output
        assert manifest_version(root, "hub") == "1.0.3"
        assert manifest_version(root, "logs") == "1.0.4"

    def test_force_update_from_environment(self, extensions_repo):
        root = extensions_repo.root
        invoke(["reconcile", "--root", str(root)])

        result = invoke(["reconcile", "--root", str(root)], env={"FORCE_UPDATE": "1"})

        assert result.exit_code == 0, result.output
        assert manifest_version(root, "hub") == "1.0.3"

    def test_dry_run_writes_nothing(self, extensions_repo):
        root = extensions_repo.root
        before = (root / "azure-devops-extension-hub.json").read_bytes()

        result = invoke(["reconcile", "--root", str(root), "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "hub: 1.0 -> 1.0.1 [updated] dry run" in result.output
        assert "(dry run, nothing written)" in result.output
        assert (root / "azure-devops-extension-hub.json").read_bytes() == before
        assert not (root / ".version-counter").exists()

    def test_summary_json(self, extensions_repo, tmp_path_factory):
        root = extensions_repo.root
        out = tmp_path_factory.mktemp("out") / "summary.json"

        result = invoke(["reconcile", "--root", str(root), "--summary-json", str(out)])

        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text())
        assert data["counterStart"] == 1
        assert data["counterEnd"] == 3
        assert data["counts"]["updated"] == 2

    def test_registry_floor(self, extensions_repo):
        root = extensions_repo.root
        registry = StaticRegistryClient({"hub": "1.0.15"})

        with patch(
            "extver.cli.reconcile.TfxRegistryClient", return_value=registry
        ):
            result = invoke(
                ["reconcile", "--root", str(root), "--publisher-id", "contoso"]
            )

        assert result.exit_code == 0, result.output
        assert "hub: 1.0 -> 1.0.16 [updated] patch raised" in result.output
        assert "logs: 1.0 -> 1.0.17 [updated] not yet published" in result.output
        assert registry.calls == [("contoso", "hub"), ("contoso", "logs")]
        assert (root / ".version-counter").read_text() == "18\n"

    def test_custom_counter_file(self, extensions_repo):
        root = extensions_repo.root
        (root / "ci").mkdir()
        (root / "ci" / "counter").write_text("20\n")

        result = invoke(
            ["reconcile", "--root", str(root), "--counter-file", "ci/counter"]
        )

        assert result.exit_code == 0, result.output
        assert manifest_version(root, "hub") == "1.0.20"
        assert (root / "ci" / "counter").read_text() == "22\n"


class TestReconcileCommandErrors:
    def test_invalid_manifest(self, extensions_repo):
        root = extensions_repo.root
        (root / "azure-devops-extension-hub.json").write_text(
            json.dumps({"id": "hub", "version": "1", "files": [{"path": "x"}]})
        )

        result = invoke(["reconcile", "--root", str(root)])

        assert result.exit_code == 1
        assert "Invalid manifest" in result.output
        assert "Expected MAJOR.MINOR format" in result.output
        assert manifest_version(root, "logs") == "1.0"

    def test_no_manifests(self, tmp_path):
        result = invoke(["reconcile", "--root", str(tmp_path)])

        assert result.exit_code == 1
        assert "No extension manifest files found" in result.output

    def test_invalid_force_update_value(self, extensions_repo):
        result = invoke(
            ["reconcile", "--root", str(extensions_repo.root)],
            env={"FORCE_UPDATE": "perhaps"},
        )

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_write_failure_aborts_with_summary(self, extensions_repo):
        root = extensions_repo.root

        with patch(
            "extver.model.manifest.write_text_atomic",
            side_effect=PermissionError("read-only file system"),
        ):
            result = invoke(["reconcile", "--root", str(root)])

        assert result.exit_code == 1
        assert "Run aborted at unit 'hub'" in result.output
        assert "Counter left at: 1" in result.output
        assert "[failed]" in result.output
        assert "logs" not in result.output.split("Run summary:")[1]
        assert manifest_version(root, "hub") == "1.0"
        assert not (root / ".version-counter").exists()


def test_version_option():
    result = invoke(["--version"])

    assert result.exit_code == 0
    assert "extver" in result.output
