"""Allow ``python -m exporter_release``."""

from .cli import app

app()
