"""Command line interface for plansight."""
