"""
API Module
==========
HTTP surface for the ZKP login service.
"""

from .app import create_app

__all__ = ["create_app"]
