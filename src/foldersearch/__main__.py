"""Allow ``python -m foldersearch``."""

from foldersearch.cli import app

app(prog_name="foldersearch")
