#!/usr/bin/env python3
"""
Tests for the differential test loop.

These tests verify:
1. Seeded runs with a depth guard agree with OpenCV everywhere
2. Disagreement is counted, never raised
3. Harness errors abort the run
4. passed + failed always equals the number of iterations

Run with: python -m pytest tests/test_harness.py -v
"""

import io
import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from projection_check.config import HarnessConfig
from projection_check.errors import HarnessError, OracleConversionError
from projection_check.harness import run_harness, run_iteration
from projection_check.oracle import OpenCVOracle, ProjectionOracle
from projection_check.projection import project_points
from projection_check.reporter import Reporter
from projection_check.sampler import ScenarioSampler

# ============================================================================
# Test Oracles
# ============================================================================


class ShiftedOracle(ProjectionOracle):
    """Numpy model shifted by a fixed pixel offset."""

    def __init__(self, shift):
        self.shift = shift

    def project(self, extrinsics, intrinsics, world_points):
        return project_points(extrinsics, intrinsics, world_points) + self.shift


class BrokenOracle(ProjectionOracle):
    """Fails conversion after a number of successful calls."""

    def __init__(self, fail_after=0):
        self.calls = 0
        self.fail_after = fail_after

    def project(self, extrinsics, intrinsics, world_points):
        self.calls += 1
        if self.calls > self.fail_after:
            raise OracleConversionError("camera_matrix", "synthetic failure")
        return project_points(extrinsics, intrinsics, world_points)


class MisalignedOracle(ProjectionOracle):
    """Returns one pixel fewer than requested."""

    def project(self, extrinsics, intrinsics, world_points):
        return project_points(extrinsics, intrinsics, world_points)[:-1]


@pytest.fixture
def stream():
    return io.StringIO()


# ============================================================================
# run_iteration
# ============================================================================


class TestRunIteration:
    """One sampled scenario through both paths."""

    def test_record_contents(self):
        sampler = ScenarioSampler(np.random.default_rng(0), n_points=3, min_depth=2.0)
        record = run_iteration(5, sampler, OpenCVOracle(), 1e-3)

        assert record.iteration == 5
        assert record.model_pixels.shape == (3, 2)
        assert record.reference_pixels.shape == (3, 2)
        assert np.allclose(
            record.camera_points,
            record.scenario.extrinsics.world_to_camera(record.scenario.world_points),
        )
        assert record.outcome.passed, f"max |diff| {record.outcome.max_abs_error}"

    def test_identical_oracle_always_passes(self):
        sampler = ScenarioSampler(np.random.default_rng(1), n_points=2)
        for i in range(50):
            record = run_iteration(i, sampler, ShiftedOracle(0.0), 0.0)
            finite = np.all(np.isfinite(record.model_pixels))
            assert record.outcome.passed or not finite


# ============================================================================
# run_harness
# ============================================================================


class TestRunHarness:
    """End-to-end loop."""

    def test_seeded_run_with_depth_guard_agrees(self, stream):
        config = HarnessConfig(iterations=300, n_points=2, seed=1234, min_depth=2.0)
        summary = run_harness(config, reporter=Reporter(config.epsilon, stream=stream))

        assert summary.iterations == 300
        assert summary.failed == 0, stream.getvalue()
        assert summary.success_rate == 100.0
        assert "300 test cases" in stream.getvalue()

    def test_pass_plus_fail_equals_iterations(self, stream):
        config = HarnessConfig(iterations=200, seed=99)
        summary = run_harness(config, reporter=Reporter(config.epsilon, stream=stream))

        assert summary.passed + summary.failed == 200

    def test_same_seed_same_summary(self):
        config = HarnessConfig(iterations=100, n_points=3, seed=5)

        a = run_harness(config, reporter=Reporter(config.epsilon, stream=io.StringIO()))
        b = run_harness(config, reporter=Reporter(config.epsilon, stream=io.StringIO()))

        assert a == b

    def test_disagreement_is_counted_not_raised(self, stream):
        config = HarnessConfig(iterations=25, seed=3, min_depth=1.0)
        summary = run_harness(
            config,
            oracle=ShiftedOracle(1.0),
            reporter=Reporter(config.epsilon, stream=stream),
        )

        assert summary.failed == 25
        assert summary.passed == 0
        assert summary.max_abs_error == pytest.approx(1.0)
        assert stream.getvalue().count("==== Numerical difference detected ====") == 25

    def test_oracle_error_aborts(self, stream):
        oracle = BrokenOracle(fail_after=3)
        config = HarnessConfig(iterations=10, seed=0)

        with pytest.raises(OracleConversionError) as exc_info:
            run_harness(config, oracle=oracle, reporter=Reporter(config.epsilon, stream=stream))

        assert exc_info.value.step == "camera_matrix"
        assert oracle.calls == 4
        assert "test cases" not in stream.getvalue()

    def test_misaligned_result_is_harness_error(self, stream):
        config = HarnessConfig(iterations=5, n_points=2, seed=0)
        with pytest.raises(HarnessError, match="index-aligned"):
            run_harness(
                config,
                oracle=MisalignedOracle(),
                reporter=Reporter(config.epsilon, stream=stream),
            )

    def test_explicit_rng_overrides_seed(self):
        config = HarnessConfig(iterations=20, seed=None)
        a = run_harness(
            config,
            oracle=ShiftedOracle(0.5),
            rng=np.random.default_rng(8),
            reporter=Reporter(config.epsilon, stream=io.StringIO()),
        )
        b = run_harness(
            config,
            oracle=ShiftedOracle(0.5),
            rng=np.random.default_rng(8),
            reporter=Reporter(config.epsilon, stream=io.StringIO()),
        )
        assert a == b
