"""
Configuration for a differential projection run.

All run parameters have defaults; a YAML file may override any of them:

    harness:
      iterations: 10000
      epsilon: 0.001
      n_points: 1
      seed: null
      min_depth: 0.0
      bounds:
        world_coordinate: [-10.0, 10.0]
        translation: [-0.1, 0.1]
        euler_angle: [0.0, 6.283185307179586]
        focal_length: [0.1, 2.0]
        principal_point: [-1000.0, 1000.0]
        distortion: [-0.5, 0.5]
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from projection_check.comparator import DEFAULT_EPSILON
from projection_check.sampler import SamplingBounds, ValueRange

logger = logging.getLogger(__name__)

DEFAULT_ITERATIONS = 10000
DEFAULT_N_POINTS = 1

_KNOWN_KEYS = {"iterations", "epsilon", "n_points", "seed", "min_depth", "bounds"}


@dataclass
class HarnessConfig:
    """Configuration for a harness run.

    Attributes:
        iterations: Number of randomized scenarios to check.
        epsilon: Absolute pixel tolerance for agreement.
        n_points: World points per scenario.
        seed: Seed for the shared random generator (None = fresh entropy,
            runs are not reproducible).
        min_depth: Minimum camera-frame |z| for sampled world points
            (0 disables the guard).
        bounds: Sampling domains.
    """
    iterations: int = DEFAULT_ITERATIONS
    epsilon: float = DEFAULT_EPSILON
    n_points: int = DEFAULT_N_POINTS
    seed: int | None = None
    min_depth: float = 0.0
    bounds: SamplingBounds = field(default_factory=SamplingBounds)

    def __post_init__(self) -> None:
        """Validate run parameters."""
        if isinstance(self.iterations, bool) or not isinstance(self.iterations, int):
            raise ValueError(f"'iterations' must be an integer, got {self.iterations!r}")
        if self.iterations < 1:
            raise ValueError(f"'iterations' must be at least 1, got {self.iterations}")

        if isinstance(self.n_points, bool) or not isinstance(self.n_points, int):
            raise ValueError(f"'n_points' must be an integer, got {self.n_points!r}")
        if self.n_points < 1:
            raise ValueError(f"'n_points' must be at least 1, got {self.n_points}")

        if not isinstance(self.epsilon, (int, float)) or not math.isfinite(self.epsilon) \
                or self.epsilon < 0:
            raise ValueError(f"'epsilon' must be a non-negative number, got {self.epsilon!r}")

        if not isinstance(self.min_depth, (int, float)) or not math.isfinite(self.min_depth) \
                or self.min_depth < 0:
            raise ValueError(f"'min_depth' must be a non-negative number, got {self.min_depth!r}")

        if self.seed is not None and (isinstance(self.seed, bool) or not isinstance(self.seed, int)):
            raise ValueError(f"'seed' must be an integer or null, got {self.seed!r}")

        coord = self.bounds.world_coordinate
        reach = math.sqrt(3.0) * max(abs(coord.low), abs(coord.high))
        if self.min_depth >= reach:
            raise ValueError(
                f"'min_depth' {self.min_depth} is unreachable with world coordinates "
                f"in [{coord.low}, {coord.high})"
            )

    @classmethod
    def from_yaml(cls, path: str | Path) -> HarnessConfig:
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            HarnessConfig instance loaded from file

        Raises:
            FileNotFoundError: If configuration file does not exist
            ValueError: If configuration file is malformed or contains invalid values
        """
        config_path = Path(path)

        if not config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {path}\n"
                f"Please create a configuration file or use get_default_config()"
            )

        try:
            with open(config_path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse YAML configuration file: {e}") from e

        if not data:
            raise ValueError(
                f"Configuration file is empty: {path}\n"
                f"Expected a 'harness' section with run configuration"
            )

        if not isinstance(data, dict) or 'harness' not in data:
            raise ValueError(
                f"Configuration file missing 'harness' section: {path}\n"
                f"Expected structure: harness:\n  iterations: ...\n  ..."
            )

        logger.info(f"Loaded harness configuration from {config_path}")
        return cls.from_dict(data['harness'] or {})

    @staticmethod
    def _parse_bounds(bounds: Any) -> SamplingBounds:
        """Parse a 'bounds' mapping of field -> [low, high].

        Fields that are not given keep their default range.
        """
        if not isinstance(bounds, dict):
            raise ValueError(f"'bounds' must be a mapping, got {type(bounds).__name__}")

        valid_fields = SamplingBounds.field_names()
        ranges: dict[str, ValueRange] = {}
        for name, value in bounds.items():
            if name not in valid_fields:
                raise ValueError(
                    f"Unknown bounds field '{name}'. Must be one of: {', '.join(valid_fields)}"
                )
            if not isinstance(value, (list, tuple)) or len(value) != 2:
                raise ValueError(f"bounds.{name} must be a [low, high] pair, got {value!r}")
            try:
                ranges[name] = ValueRange(float(value[0]), float(value[1]))
            except (TypeError, ValueError) as e:
                raise ValueError(f"Invalid bounds.{name}: {e}") from e

        return SamplingBounds(**ranges)

    @classmethod
    def from_dict(cls, config: dict) -> HarnessConfig:
        """Create configuration from dictionary.

        Args:
            config: Dictionary with any of the keys 'iterations', 'epsilon',
                'n_points', 'seed', 'min_depth', 'bounds'.

        Returns:
            HarnessConfig instance

        Raises:
            ValueError: If configuration is invalid or contains unknown keys

        Example:
            >>> config = HarnessConfig.from_dict({'iterations': 500, 'epsilon': 1e-4})
        """
        if not isinstance(config, dict):
            raise ValueError(f"Configuration must be a dictionary, got {type(config)}")

        unknown = set(config) - _KNOWN_KEYS
        if unknown:
            raise ValueError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}. "
                f"Must be among: {', '.join(sorted(_KNOWN_KEYS))}"
            )

        kwargs: dict[str, Any] = {}
        for key in ('iterations', 'n_points', 'seed'):
            if key in config:
                kwargs[key] = config[key]
        for key in ('epsilon', 'min_depth'):
            if key in config:
                value = config[key]
                # YAML reads "1e-3" as a string
                if isinstance(value, str):
                    try:
                        value = float(value)
                    except ValueError:
                        raise ValueError(f"'{key}' must be a number, got {value!r}") from None
                kwargs[key] = value
        if 'bounds' in config:
            kwargs['bounds'] = cls._parse_bounds(config['bounds'])

        return cls(**kwargs)

    def to_dict(self) -> dict:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation suitable for YAML serialization
        """
        return {
            'iterations': self.iterations,
            'epsilon': self.epsilon,
            'n_points': self.n_points,
            'seed': self.seed,
            'min_depth': self.min_depth,
            'bounds': {
                name: getattr(self.bounds, name).to_list()
                for name in SamplingBounds.field_names()
            },
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump({'harness': self.to_dict()}, sort_keys=False)


def get_default_config() -> HarnessConfig:
    """Get the default configuration: 10000 iterations, epsilon 1e-3, one point."""
    return HarnessConfig()
