"""Allow ``python -m projection_check``."""

from projection_check.cli import app

app(prog_name="projcheck")
