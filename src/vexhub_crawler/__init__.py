"""
vexhub-crawler

Purpose
- Crawl package source repositories for OpenVEX documents and collect the ones
  about each package into a VEX hub checkout, under
  ``pkg/<type>/<namespace>/<name>/`` with a ``manifest.json`` recording where
  every document came from.

Import boundary
- No side effects at import time (no config loading, no logging setup).
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
