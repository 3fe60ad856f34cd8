"""
Failure dumps and run statistics.

The Reporter owns the only counters that live for a whole run. Each recorded
iteration bumps the iteration count; failing iterations also bump the fail
count and are either printed as a labeled block (human output) or collected
as plain dicts for a final JSON document. At the end of the run it prints:

    use epsilon 0.001
    10000 test cases
    9987 pass
    13 fail
    99.870% success rate
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import IO, Any, NamedTuple

import numpy as np

from projection_check.comparator import ComparisonOutcome
from projection_check.pose import ExtrinsicParameters
from projection_check.sampler import Scenario
from projection_check.types import Degrees

logger = logging.getLogger(__name__)


class OutputFormat(str, Enum):
    """Output format options."""

    HUMAN = "human"
    JSON = "json"


class IterationRecord(NamedTuple):
    """Everything computed in one iteration, enough to reproduce a mismatch."""

    iteration: int
    scenario: Scenario
    camera_points: np.ndarray
    model_pixels: np.ndarray
    reference_pixels: np.ndarray
    outcome: ComparisonOutcome


@dataclass(frozen=True)
class RunSummary:
    """Aggregate statistics for a run.

    Attributes:
        epsilon: Absolute tolerance used by the comparator.
        iterations: Number of iterations recorded.
        passed: Iterations whose pixel results agreed.
        failed: Iterations whose pixel results disagreed.
        max_abs_error: Largest finite absolute pixel difference seen.
        failures: Serialized failing iterations (only when collected).
    """

    epsilon: float
    iterations: int
    passed: int
    failed: int
    max_abs_error: float
    failures: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    @property
    def success_rate(self) -> float:
        """Percentage of passing iterations (0.0 for an empty run)."""
        if self.iterations == 0:
            return 0.0
        return 100.0 * self.passed / self.iterations

    def to_dict(self) -> dict[str, Any]:
        return {
            "epsilon": self.epsilon,
            "iterations": self.iterations,
            "passed": self.passed,
            "failed": self.failed,
            "success_rate": round(self.success_rate, 3),
            "max_abs_error": self.max_abs_error,
            "failures": list(self.failures),
        }


def _fmt(arr: np.ndarray) -> str:
    arr = np.asarray(arr)
    text = np.array2string(arr, precision=6, max_line_width=200)
    return "\n" + text if arr.ndim > 1 else text


def _rows(arr: np.ndarray, n_cols: int) -> list[list[float | None]]:
    # JSON has no nan/inf literals
    rows = np.asarray(arr, dtype=np.float64).reshape(-1, n_cols).tolist()
    return [[v if math.isfinite(v) else None for v in row] for row in rows]


def _euler_degrees(extrinsics: ExtrinsicParameters) -> tuple[Degrees, Degrees, Degrees]:
    roll, pitch, yaw = extrinsics.euler_angles()
    return Degrees(math.degrees(roll)), Degrees(math.degrees(pitch)), Degrees(math.degrees(yaw))


def failure_to_dict(record: IterationRecord) -> dict[str, Any]:
    """Serialize a failing iteration for JSON output."""
    scenario = record.scenario
    intr = scenario.intrinsics
    roll, pitch, yaw = _euler_degrees(scenario.extrinsics)
    max_error = record.outcome.max_abs_error

    return {
        "iteration": record.iteration,
        "extrinsic": np.asarray(scenario.extrinsics.matrix).tolist(),
        "euler_deg": {
            "roll": roll,
            "pitch": pitch,
            "yaw": yaw,
        },
        "translation": scenario.extrinsics.translation.tolist(),
        "intrinsics": {"fx": intr.fx, "fy": intr.fy, "cx": intr.cx, "cy": intr.cy},
        "distortion": intr.distortion.to_array().tolist(),
        "world_points": _rows(scenario.world_points, 3),
        "camera_points": _rows(record.camera_points, 3),
        "model_pixels": _rows(record.model_pixels, 2),
        "opencv_pixels": _rows(record.reference_pixels, 2),
        "max_abs_error": max_error if math.isfinite(max_error) else None,
    }


class Reporter:
    """Accumulates pass/fail counts and prints failure context.

    In HUMAN format every failing iteration is printed as a labeled block as
    it happens. In JSON format nothing is printed until the end, when a single
    JSON document with the summary and all failing iterations is written.

    Args:
        epsilon: Tolerance reported in the summary.
        stream: Output stream (stdout when None).
        output_format: HUMAN text or a JSON document.
    """

    def __init__(
        self,
        epsilon: float,
        stream: IO[str] | None = None,
        output_format: OutputFormat = OutputFormat.HUMAN,
    ):
        self.epsilon = epsilon
        self.stream = stream
        self.output_format = OutputFormat(output_format)

        self.iterations = 0
        self.failed = 0
        self.max_abs_error = 0.0
        self._failures: list[dict[str, Any]] = []

    @property
    def passed(self) -> int:
        return self.iterations - self.failed

    def _print(self, text: str) -> None:
        print(text, file=self.stream)

    def record(self, record: IterationRecord) -> None:
        """Count one iteration and report it if it failed."""
        self.iterations += 1

        error = record.outcome.max_abs_error
        if math.isfinite(error) and error > self.max_abs_error:
            self.max_abs_error = error

        if record.outcome.passed:
            return

        self.failed += 1
        logger.debug(
            f"Iteration {record.iteration} failed: max |diff| = {error:.6g} "
            f"(epsilon {record.outcome.epsilon})"
        )
        if self.output_format == OutputFormat.JSON:
            self._failures.append(failure_to_dict(record))
        else:
            self._print(self.format_failure(record))

    @staticmethod
    def format_failure(record: IterationRecord) -> str:
        """Render the labeled multi-line block for a failing iteration."""
        scenario = record.scenario
        ext = scenario.extrinsics
        intr = scenario.intrinsics
        roll, pitch, yaw = _euler_degrees(ext)

        lines = [
            "==== Numerical difference detected ====",
            f"extrinsic = {_fmt(ext.matrix)}",
            f"(roll, pitch, yaw) = ({roll}, {pitch}, {yaw})",
            f"translation = {_fmt(ext.translation)}",
            f"(fx, fy, cx, cy) = ({intr.fx}, {intr.fy}, {intr.cx}, {intr.cy})",
            f"distortion = {_fmt(intr.distortion.to_array())}",
            f"world_points = {_fmt(scenario.world_points)}",
            f"camera_points = {_fmt(record.camera_points)}",
            f"model_pixels = {_fmt(record.model_pixels)}",
            f"opencv_pixels = {_fmt(record.reference_pixels)}",
        ]
        return "\n".join(lines)

    def summary(self) -> RunSummary:
        return RunSummary(
            epsilon=self.epsilon,
            iterations=self.iterations,
            passed=self.passed,
            failed=self.failed,
            max_abs_error=self.max_abs_error,
            failures=tuple(self._failures),
        )

    @staticmethod
    def format_summary(summary: RunSummary) -> str:
        lines = [
            f"use epsilon {summary.epsilon}",
            f"{summary.iterations} test cases",
            f"{summary.passed} pass",
            f"{summary.failed} fail",
            f"{summary.success_rate:.3f}% success rate",
        ]
        return "\n".join(lines)

    def print_summary(self) -> RunSummary:
        summary = self.summary()
        if self.output_format == OutputFormat.JSON:
            self._print(json.dumps(summary.to_dict(), indent=2))
        else:
            self._print(self.format_summary(summary))
        return summary
