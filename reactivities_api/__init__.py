"""
Top-level package for the Reactivities API.

This file makes ``reactivities_api`` a Python package so that modules
within ``app`` can be imported using fully qualified names like
``reactivities_api.app.main``.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
