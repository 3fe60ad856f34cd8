#!/usr/bin/env python3
"""
Tests for the projcheck command-line interface.

Run with: python -m pytest tests/test_cli.py -v
"""

import json
import os
import sys

import pytest
import yaml
from typer.testing import CliRunner

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from projection_check.cli import app
from projection_check.errors import OracleConversionError
from projection_check.oracle import ProjectionOracle
from projection_check.projection import project_points

runner = CliRunner()


class FailingOracle(ProjectionOracle):
    def project(self, extrinsics, intrinsics, world_points):
        raise OracleConversionError("distortion", "synthetic failure")


class ShiftedOracle(ProjectionOracle):
    def project(self, extrinsics, intrinsics, world_points):
        return project_points(extrinsics, intrinsics, world_points) + 1.0


@pytest.fixture
def use_oracle(monkeypatch):
    """Replace the default OpenCV oracle used by the harness."""
    def _use(oracle_cls):
        monkeypatch.setattr("projection_check.harness.OpenCVOracle", oracle_cls)
    return _use


# ============================================================================
# Running The Harness
# ============================================================================


class TestRun:
    """Running the harness from the command line."""

    def test_summary_printed(self):
        result = runner.invoke(
            app, ["--iterations", "50", "--seed", "1", "--n-points", "2", "--min-depth", "2"]
        )

        assert result.exit_code == 0, result.output
        lines = result.stdout.strip().splitlines()
        assert lines[-5:] == [
            "use epsilon 0.001",
            "50 test cases",
            "50 pass",
            "0 fail",
            "100.000% success rate",
        ]

    def test_epsilon_override(self):
        result = runner.invoke(app, ["--iterations", "5", "--seed", "2", "--epsilon", "0.5"])

        assert result.exit_code == 0, result.output
        assert "use epsilon 0.5" in result.stdout

    def test_comparison_failures_keep_exit_code_zero(self, use_oracle):
        use_oracle(ShiftedOracle)

        result = runner.invoke(app, ["--iterations", "3", "--seed", "4", "--min-depth", "1"])

        assert result.exit_code == 0, result.output
        assert result.stdout.count("==== Numerical difference detected ====") == 3
        lines = result.stdout.strip().splitlines()
        assert lines[-2:] == ["3 fail", "0.000% success rate"]

    def test_json_format(self, use_oracle):
        use_oracle(ShiftedOracle)

        result = runner.invoke(
            app, ["--iterations", "4", "--seed", "4", "--min-depth", "1", "--format", "json"]
        )

        assert result.exit_code == 0, result.output
        doc = json.loads(result.stdout)
        assert doc["iterations"] == 4
        assert doc["failed"] == 4
        assert len(doc["failures"]) == 4
        assert set(doc["failures"][0]) >= {"extrinsic", "intrinsics", "model_pixels", "opencv_pixels"}

    def test_config_file(self, tmp_path):
        path = tmp_path / "run.yaml"
        path.write_text("harness:\n  iterations: 7\n  seed: 3\n  min_depth: 2.0\n")

        result = runner.invoke(app, ["--config", str(path)])

        assert result.exit_code == 0, result.output
        assert "7 test cases" in result.stdout

    def test_cli_overrides_config_file(self, tmp_path):
        path = tmp_path / "run.yaml"
        path.write_text("harness:\n  iterations: 7\n  seed: 3\n")

        result = runner.invoke(app, ["-c", str(path), "--iterations", "2"])

        assert result.exit_code == 0, result.output
        assert "2 test cases" in result.stdout


# ============================================================================
# Errors
# ============================================================================


class TestErrors:
    """Harness and configuration errors exit with status 1."""

    def test_oracle_error_exits_1(self, use_oracle):
        use_oracle(FailingOracle)

        result = runner.invoke(app, ["--iterations", "10", "--seed", "0"])

        assert result.exit_code == 1
        assert "Error: Oracle conversion 'distortion' failed: synthetic failure" in result.output
        assert "test cases" not in result.output

    def test_missing_config_file(self, tmp_path):
        result = runner.invoke(app, ["--config", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 1
        assert "Configuration file not found" in result.output

    def test_invalid_iterations(self):
        result = runner.invoke(app, ["--iterations", "0"])

        assert result.exit_code == 1
        assert "Error: Invalid configuration" in result.output

    def test_invalid_config_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("harness:\n  epsilon: -1\n")

        result = runner.invoke(app, ["--config", str(path)])

        assert result.exit_code == 1
        assert "epsilon" in result.output

    def test_unknown_format_is_usage_error(self):
        result = runner.invoke(app, ["--format", "xml"])
        assert result.exit_code == 2


# ============================================================================
# config Subcommand
# ============================================================================


class TestConfigCommand:
    """Printing the effective configuration."""

    def test_prints_defaults(self):
        result = runner.invoke(app, ["config"])

        assert result.exit_code == 0, result.output
        data = yaml.safe_load(result.stdout)
        assert data["harness"]["iterations"] == 10000
        assert data["harness"]["epsilon"] == 0.001
        assert data["harness"]["seed"] is None

    def test_reflects_overrides(self):
        result = runner.invoke(app, ["--iterations", "12", "--seed", "5", "config"])

        assert result.exit_code == 0, result.output
        data = yaml.safe_load(result.stdout)
        assert data["harness"]["iterations"] == 12
        assert data["harness"]["seed"] == 5

    def test_does_not_run_harness(self, use_oracle):
        use_oracle(FailingOracle)

        result = runner.invoke(app, ["config"])

        assert result.exit_code == 0, result.output
        assert "test cases" not in result.stdout

    def test_help_lists_command(self):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "config" in result.output
