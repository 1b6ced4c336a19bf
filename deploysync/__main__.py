"""Allow `python -m deploysync`."""

from .main import cli

cli()
