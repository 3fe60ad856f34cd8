"""
Differential testing of a pinhole camera projection model.

This package projects randomized world points through two independent
implementations of the same camera model and reports where they disagree:

    - Projection model: numpy implementation of pose transform, perspective
      divide, radial/tangential distortion and camera matrix
    - Reference oracle: OpenCV's cv2.projectPoints

Example Usage:
    >>> import numpy as np
    >>> from projection_check import HarnessConfig, run_harness
    >>>
    >>> summary = run_harness(HarnessConfig(iterations=1000, seed=42))
    >>> print(f"{summary.success_rate:.3f}% success rate")

    >>> from projection_check import (
    ...     ExtrinsicParameters,
    ...     IntrinsicParameters,
    ...     Pose,
    ...     project_points,
    ... )
    >>> ext = ExtrinsicParameters.from_pose(Pose.identity())
    >>> K = IntrinsicParameters(fx=1.0, fy=1.0, cx=0.0, cy=0.0)
    >>> project_points(ext, K, np.array([[0.0, 0.0, 5.0]]))
    array([[0., 0.]])
"""

# Camera model
from projection_check.camera_parameters import DistortionCoefficients, IntrinsicParameters
from projection_check.pose import ExtrinsicParameters, Pose, UnitQuaternion
from projection_check.projection import (
    camera_to_pixel,
    distort,
    normalize,
    project_points,
    to_pixels,
)

# Differential test harness
from projection_check.comparator import ComparisonOutcome, compare_pixels
from projection_check.config import HarnessConfig, get_default_config
from projection_check.errors import HarnessError, OracleConversionError
from projection_check.harness import run_harness, run_iteration
from projection_check.oracle import OpenCVOracle, ProjectionOracle
from projection_check.reporter import IterationRecord, OutputFormat, Reporter, RunSummary
from projection_check.sampler import SamplingBounds, Scenario, ScenarioSampler, ValueRange

# Define public API
__all__ = [
    # Camera model
    'DistortionCoefficients',
    'IntrinsicParameters',
    'ExtrinsicParameters',
    'Pose',
    'UnitQuaternion',
    'camera_to_pixel',
    'distort',
    'normalize',
    'project_points',
    'to_pixels',

    # Harness
    'ComparisonOutcome',
    'compare_pixels',
    'HarnessConfig',
    'get_default_config',
    'HarnessError',
    'OracleConversionError',
    'run_harness',
    'run_iteration',
    'OpenCVOracle',
    'ProjectionOracle',
    'IterationRecord',
    'OutputFormat',
    'Reporter',
    'RunSummary',
    'SamplingBounds',
    'Scenario',
    'ScenarioSampler',
    'ValueRange',
]

# Package metadata
__version__ = '0.1.0'
__description__ = 'Differential test of a pinhole projection model against OpenCV'
