"""Command line interface for packrunner."""
