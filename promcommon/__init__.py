"""Monitoring data model, levelled logging, WSGI routing and static files."""

__version__ = "0.1.0"