"""
Shared helpers: date/time normalization and Firestore path builders.
"""

from .datetime_utils import DateTimeUtils

__all__ = ['DateTimeUtils']
