"""
File Transfer Layer.

This package is responsible for writing resolved package files to disk.
"""

from .downloader import Downloader

__all__ = ["Downloader"]
