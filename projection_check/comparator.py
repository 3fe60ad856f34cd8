"""Absolute-tolerance comparison of two pixel results."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from projection_check.errors import HarnessError

DEFAULT_EPSILON = 1e-3


@dataclass(frozen=True)
class ComparisonOutcome:
    """Result of comparing model pixels against reference pixels.

    Attributes:
        passed: True iff every coordinate agrees within epsilon.
        max_abs_error: Largest per-coordinate absolute difference (nan if any
            coordinate is nan).
        epsilon: Absolute tolerance used.
    """

    passed: bool
    max_abs_error: float
    epsilon: float


def compare_pixels(
    model_pixels: np.ndarray,
    reference_pixels: np.ndarray,
    epsilon: float = DEFAULT_EPSILON,
) -> ComparisonOutcome:
    """
    Compare two index-aligned (N, 2) pixel results.

    Passes iff ``|a[i, j] - b[i, j]| <= epsilon`` for every point and
    coordinate. There is no relative-tolerance fallback, and a NaN on either
    side never passes.

    Args:
        model_pixels: Pixels from the projection model.
        reference_pixels: Pixels from the reference oracle.
        epsilon: Absolute tolerance.

    Returns:
        ComparisonOutcome for this pair.

    Raises:
        HarnessError: If the two results are not the same shape.
        ValueError: If epsilon is negative or NaN.
    """
    if not epsilon >= 0:
        raise ValueError(f"epsilon must be non-negative, got {epsilon}")

    a = np.asarray(model_pixels, dtype=np.float64)
    b = np.asarray(reference_pixels, dtype=np.float64)
    if a.shape != b.shape:
        raise HarnessError(
            f"Pixel results are not index-aligned: model {a.shape} vs reference {b.shape}"
        )

    diff = np.abs(a - b)
    passed = bool(np.all(diff <= epsilon))
    max_abs_error = float(np.max(diff)) if diff.size else 0.0

    return ComparisonOutcome(passed=passed, max_abs_error=max_abs_error, epsilon=epsilon)
