"""
URLs — Remote endpoint paths for store resources.
"""

from viewstore.urls.builder import POSTFIX, ResourceUrlBuilder

__all__ = [
    "POSTFIX",
    "ResourceUrlBuilder",
]
