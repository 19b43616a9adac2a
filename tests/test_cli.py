"""Tests for the command line interface."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from visualcheck.cli import cli


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = {
        "baseline_dir": str(tmp_path / "baselines"),
        "actual_dir": str(tmp_path / "actual"),
        "diff_dir": str(tmp_path / "diffs"),
        "report_output_dir": str(tmp_path / "reports"),
        "attachments_dir": str(tmp_path / "attachments"),
    }
    (tmp_path / "visual-config.json").write_text(json.dumps(config))
    return tmp_path


@pytest.fixture
def runner():
    return CliRunner()


class TestCompareCommand:
    """Tests for `visualcheck compare`."""

    def test_bootstrap_then_pass(self, runner, workspace, black_2x2):
        image = workspace / "shot.png"
        image.write_bytes(black_2x2)

        first = runner.invoke(cli, ["compare", "home", str(image)])
        assert first.exit_code == 0, first.output
        assert "NEW" in first.output
        assert (workspace / "baselines" / "home.png").exists()

        second = runner.invoke(cli, ["compare", "home", str(image)])
        assert second.exit_code == 0
        assert "PASS" in second.output

    def test_failure_exits_nonzero(self, runner, workspace, black_2x2, one_white_pixel_2x2):
        (workspace / "base.png").write_bytes(black_2x2)
        (workspace / "new.png").write_bytes(one_white_pixel_2x2)
        runner.invoke(cli, ["compare", "home", "base.png"])

        result = runner.invoke(cli, ["compare", "home", "new.png"])

        assert result.exit_code == 1
        assert "25.00% difference" in result.output
        assert (workspace / "diffs" / "home-diff.png").exists()
        assert list((workspace / "attachments").glob("*.png"))

    def test_threshold_override(self, runner, workspace, black_2x2, one_white_pixel_2x2):
        (workspace / "base.png").write_bytes(black_2x2)
        (workspace / "new.png").write_bytes(one_white_pixel_2x2)
        runner.invoke(cli, ["compare", "home", "base.png"])

        result = runner.invoke(cli, ["compare", "home", "new.png", "--diff-threshold", "0.3"])
        assert result.exit_code == 0

    def test_environment_overrides_without_config_file(
        self, runner, tmp_path, monkeypatch, black_2x2, one_white_pixel_2x2
    ):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "base.png").write_bytes(black_2x2)
        (tmp_path / "new.png").write_bytes(one_white_pixel_2x2)
        runner.invoke(cli, ["compare", "home", "base.png"])
        assert (tmp_path / "visual-baselines" / "home.png").exists()

        monkeypatch.setenv("VISUALCHECK_DIFF_THRESHOLD", "0.3")
        result = runner.invoke(cli, ["compare", "home", "new.png"])
        assert result.exit_code == 0, result.output

    def test_invalid_environment_override_without_config_file(self, runner, tmp_path, monkeypatch, black_2x2):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "base.png").write_bytes(black_2x2)
        monkeypatch.setenv("VISUALCHECK_PIXEL_TOLERANCE", "2")
        result = runner.invoke(cli, ["compare", "home", "base.png"])
        assert result.exit_code == 2
        assert "VISUALCHECK_PIXEL_TOLERANCE" in result.output

    def test_invalid_threshold(self, runner, workspace, black_2x2):
        (workspace / "base.png").write_bytes(black_2x2)
        result = runner.invoke(cli, ["compare", "home", "base.png", "--diff-threshold", "3"])
        assert result.exit_code == 2
        assert "between 0 and 1" in result.output

    def test_undecodable_image(self, runner, workspace):
        (workspace / "bad.png").write_bytes(b"nope")
        result = runner.invoke(cli, ["compare", "home", "bad.png"])
        assert result.exit_code == 2
        assert "decode" in result.output.lower()


class TestBatchCommand:
    """Tests for `visualcheck batch`."""

    def test_batch_writes_reports_and_fails(self, runner, workspace, black_2x2, one_white_pixel_2x2):
        shots = workspace / "shots"
        shots.mkdir()
        (shots / "header.png").write_bytes(black_2x2)
        (shots / "footer.png").write_bytes(black_2x2)
        assert runner.invoke(cli, ["batch", str(shots)]).exit_code == 0

        (shots / "footer.png").write_bytes(one_white_pixel_2x2)
        result = runner.invoke(cli, ["batch", str(shots)])

        assert result.exit_code == 1
        assert "footer: 25.00% diff" in result.output
        assert len(list((workspace / "reports").glob("report_*.json"))) == 2
        assert list((workspace / "reports").glob("report_*.html"))

    def test_empty_directory(self, runner, workspace):
        (workspace / "empty").mkdir()
        result = runner.invoke(cli, ["batch", "empty"])
        assert result.exit_code == 0
        assert "No PNG files" in result.output


class TestBaselineCommands:
    """Tests for approve, list, export and clean."""

    def test_approve_list_export(self, runner, workspace, black_2x2):
        (workspace / "shot.png").write_bytes(black_2x2)

        assert runner.invoke(cli, ["approve", "Home Page", "shot.png"]).exit_code == 0
        listed = runner.invoke(cli, ["list"])
        assert "Home Page" in listed.output

        exported = runner.invoke(cli, ["export", "Home Page", "-o", "out.png"])
        assert exported.exit_code == 0
        assert (workspace / "out.png").read_bytes() == black_2x2

    def test_export_missing(self, runner, workspace):
        result = runner.invoke(cli, ["export", "ghost", "-o", "out.png"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_list_empty(self, runner, workspace):
        result = runner.invoke(cli, ["list"])
        assert "No baselines stored" in result.output

    def test_clean_keeps_baselines(self, runner, workspace, black_2x2):
        (workspace / "shot.png").write_bytes(black_2x2)
        runner.invoke(cli, ["compare", "home", "shot.png"])

        result = runner.invoke(cli, ["clean"])

        assert "Removed 1 artifacts" in result.output
        assert (workspace / "baselines" / "home.png").exists()
        assert not (workspace / "actual" / "home.png").exists()


class TestInitCommand:
    """Tests for `visualcheck init`."""

    def test_creates_config(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(cli, ["init", "--baseline-dir", "golden"])
        assert result.exit_code == 0
        data = json.loads((tmp_path / "visual-config.json").read_text())
        assert data["baseline_dir"] == "golden"
