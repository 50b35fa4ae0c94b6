"""
pagetext - compact, diffable text snapshots of live web pages.
"""

__version__ = "0.1.0"
