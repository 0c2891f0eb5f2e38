"""Command line interface (``ghbackup``)."""
