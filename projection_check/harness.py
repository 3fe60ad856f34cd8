"""
Differential test loop.

Each iteration draws one scenario, projects its world points through the
numpy projection model and through the reference oracle, compares the two
pixel results and hands everything to the Reporter:

    Sampler -> {projection model, reference oracle} -> comparator -> reporter

The loop is sequential and runs for a fixed number of iterations. Numerical
disagreement is counted, never raised; a HarnessError (including an
OracleConversionError) aborts the run immediately.
"""

from __future__ import annotations

import logging

import numpy as np

from projection_check.comparator import compare_pixels
from projection_check.config import HarnessConfig
from projection_check.oracle import OpenCVOracle, ProjectionOracle
from projection_check.projection import camera_to_pixel
from projection_check.reporter import IterationRecord, Reporter, RunSummary
from projection_check.sampler import ScenarioSampler

logger = logging.getLogger(__name__)


def run_iteration(
    iteration: int,
    sampler: ScenarioSampler,
    oracle: ProjectionOracle,
    epsilon: float,
) -> IterationRecord:
    """Sample one scenario and compare both projection paths on it."""
    scenario = sampler.sample()

    camera_points = scenario.extrinsics.world_to_camera(scenario.world_points)
    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        model_pixels = camera_to_pixel(camera_points, scenario.intrinsics)

    reference_pixels = oracle.project(scenario.extrinsics, scenario.intrinsics, scenario.world_points)

    outcome = compare_pixels(model_pixels, reference_pixels, epsilon)
    return IterationRecord(
        iteration=iteration,
        scenario=scenario,
        camera_points=camera_points,
        model_pixels=model_pixels,
        reference_pixels=reference_pixels,
        outcome=outcome,
    )


def run_harness(
    config: HarnessConfig | None = None,
    oracle: ProjectionOracle | None = None,
    rng: np.random.Generator | None = None,
    reporter: Reporter | None = None,
) -> RunSummary:
    """
    Run the full differential test and print the summary.

    Args:
        config: Run configuration (defaults when None).
        oracle: Reference implementation (OpenCV when None).
        rng: Shared random generator (seeded from config.seed when None).
        reporter: Where results go (stdout reporter when None).

    Returns:
        RunSummary with pass/fail counts; passed + failed == config.iterations.

    Raises:
        HarnessError: On any harness or oracle-boundary failure.
    """
    if config is None:
        config = HarnessConfig()
    if oracle is None:
        oracle = OpenCVOracle()
    if rng is None:
        rng = np.random.default_rng(config.seed)
    if reporter is None:
        reporter = Reporter(config.epsilon)

    sampler = ScenarioSampler(
        rng,
        bounds=config.bounds,
        n_points=config.n_points,
        min_depth=config.min_depth,
    )

    logger.info(
        f"Running {config.iterations} iterations with {config.n_points} point(s) each, "
        f"epsilon={config.epsilon}, seed={config.seed}"
    )
    if config.min_depth == 0:
        logger.debug("Depth guard disabled; points near the camera plane may fail to agree")

    for i in range(config.iterations):
        reporter.record(run_iteration(i, sampler, oracle, config.epsilon))

    summary = reporter.print_summary()
    logger.info(
        f"Finished: {summary.passed} pass, {summary.failed} fail, "
        f"max |diff| {summary.max_abs_error:.3g}px"
    )
    return summary
