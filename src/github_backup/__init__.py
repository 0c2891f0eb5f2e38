"""GitHub Issue Backup - incremental mirror of issue and PR metadata."""

__version__ = "0.1.0"
