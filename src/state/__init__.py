"""
User state persistence for the exposure notification client.

Typed accessors over a generic key-value preferences store: first-use date,
last agreement dates for the terms of service and privacy policy, and the
last processed exposure key timestamp per region.
"""

from .errors import MalformedDataError, PreferencesError, UnsupportedKindError, UserDataError
from .models import NEVER_AGREED, PreferenceKey, ProcessedTimestamps, TermsType
from .preferences import InMemoryPreferences, JsonFilePreferences, PreferencesService
from .user_data import UserDataRepository

__all__ = [
    "InMemoryPreferences",
    "JsonFilePreferences",
    "MalformedDataError",
    "NEVER_AGREED",
    "PreferenceKey",
    "PreferencesError",
    "PreferencesService",
    "ProcessedTimestamps",
    "TermsType",
    "UnsupportedKindError",
    "UserDataError",
    "UserDataRepository",
]
