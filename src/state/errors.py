from __future__ import annotations


class UserDataError(Exception):
    """Base error for user data persistence."""


class UnsupportedKindError(UserDataError, ValueError):
    """Document kind is not one of the known TermsType values."""


class MalformedDataError(UserDataError, ValueError):
    """A stored value exists but cannot be decoded."""


class PreferencesError(RuntimeError):
    """The backing preferences document is unreadable."""
