"""
msstore-dl: resolve Microsoft Store products into installer package files.
"""

__version__ = "1.0.0"
