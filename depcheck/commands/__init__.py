"""Subcommands for depcheck."""
