"""
Unit type annotations for type-safe numeric parameters.

This module defines NewType aliases for the physical units used across the
projection_check codebase. They document expected units in signatures and let
static type checkers catch unit mismatches, with zero runtime overhead.

Usage Example:
    >>> from projection_check.types import Degrees, Radians
    >>>
    >>> def to_degrees(angle: Radians) -> Degrees:
    ...     return Degrees(math.degrees(angle))
"""

from typing import NewType

# Angular units
Degrees = NewType('Degrees', float)
"""Angle in degrees (e.g., reported roll, pitch, yaw)"""

Radians = NewType('Radians', float)
"""Angle in radians (e.g., sampled Euler angles, quaternion construction)"""

# Image coordinate units
PixelsFloat = NewType('PixelsFloat', float)
"""Floating-point image coordinates in pixels (e.g., fx, fy, cx, cy, projected u, v)"""

# Dimensionless quantities
Unitless = NewType('Unitless', float)
"""Dimensionless scalar (e.g., distortion coefficients, comparison tolerance)"""
