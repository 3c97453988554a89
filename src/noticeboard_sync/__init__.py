"""Noticeboard Sync - pushes locally cached notices, reports and media to the server."""

__version__ = "1.0.0"
