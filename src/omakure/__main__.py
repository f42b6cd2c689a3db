"""Allow ``python -m omakure``."""

from omakure.cli.main import app

app()
