"""Recursively mirror websites to local disk."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("sitemirror")
except PackageNotFoundError:
    __version__ = "0.0.0+dev"
