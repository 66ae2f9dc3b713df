"""
Storage module for episode objects.

Provides the abstract object-store interface with an S3 backend and a local
filesystem backend, plus the key generator used to name uploaded objects.
"""

from .base import BaseStorage
from .cloud import CloudStorage
from .local import LocalStorage
from .keys import UniqueClock, make_key

__all__ = [
    "BaseStorage",
    "CloudStorage",
    "LocalStorage",
    "UniqueClock",
    "make_key",
]
