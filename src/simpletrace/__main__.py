"""Allow ``python -m simpletrace``."""

from simpletrace.ui.cli import app

app(prog_name="simpletrace")
