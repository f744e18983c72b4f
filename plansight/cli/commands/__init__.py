"""CLI command modules."""

from . import enrich_cmd

__all__ = ["enrich_cmd"]
