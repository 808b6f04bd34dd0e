"""Command-line tools for pysunsynk."""
