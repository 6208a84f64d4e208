"""
CLI layer for tagorm.

Provides a Typer application for inspecting how record types map to
tables.  All mapping logic lives in :mod:`tagorm.mapper` and
:mod:`tagorm.statements`; this package handles only argument parsing and
terminal output.

Entry point::

    tagorm --help
"""

from tagorm.cli.app import app

__all__ = ["app"]
