# dog_api/utils/__init__.py
"""
Helpers shared across the dog service.
"""

from .datetime_utils import DateTimeUtils

__all__ = ['DateTimeUtils']
