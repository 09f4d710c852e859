"""Serve one prepared SQL query over HTTP, one CSV line per execution."""

__version__ = "0.1.0"
