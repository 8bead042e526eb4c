"""Command-line entrypoints, each runnable with ``python -m prepdesk.cli.<name>``."""
