"""Fatal harness errors.

Numerical disagreement between the projection model and the reference oracle
is an expected outcome and is never raised. The exceptions here signal defects
in the harness itself and abort a run.
"""


class HarnessError(RuntimeError):
    """Harness contract violation (e.g. index-misaligned pixel results)."""


class OracleConversionError(HarnessError):
    """Marshalling data across the reference oracle boundary failed.

    Attributes:
        step: Name of the conversion step that failed (e.g. ``"camera_matrix"``).
    """

    def __init__(self, step: str, message: str):
        self.step = step
        super().__init__(f"Oracle conversion '{step}' failed: {message}")
