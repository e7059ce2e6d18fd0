"""Proveit CLI: Typer-based command-line interface.

Provides the ``proveit`` command with subcommands for verifying a
collection against its provenance hash and inspecting content addresses.

All output uses Rich for formatted terminal display.
"""
