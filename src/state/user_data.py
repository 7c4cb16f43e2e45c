from __future__ import annotations

from datetime import UTC, datetime
from typing import Callable, Dict, Optional, Union

from common.logger import LoggerService

from .errors import MalformedDataError, UnsupportedKindError
from .models import (
    NEVER_AGREED,
    PreferenceKey,
    TermsType,
    dump_timestamps_json,
    load_timestamps_json,
)
from .preferences import PreferencesService


_TERMS_KEYS: Dict[TermsType, str] = {
    TermsType.TERMS_OF_SERVICE: PreferenceKey.TERMS_OF_SERVICE_LAST_UPDATE_DATE_TIME,
    TermsType.PRIVACY_POLICY: PreferenceKey.PRIVACY_POLICY_LAST_UPDATE_DATE_TIME,
}


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _terms_key(kind: Union[TermsType, str]) -> str:
    try:
        return _TERMS_KEYS[TermsType(kind)]
    except ValueError as ex:
        raise UnsupportedKindError(f"Unsupported terms type: {kind!r}") from ex


def _dump_datetime(value: datetime) -> str:
    return value.isoformat()


def _load_datetime(key: str, value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise MalformedDataError(f"Expected ISO 8601 text under {key}, got {type(value).__name__}")
    try:
        return datetime.fromisoformat(value)
    except ValueError as ex:
        raise MalformedDataError(f"Invalid ISO 8601 timestamp under {key}: {value!r}") from ex


class UserDataRepository:
    """
    Typed access to per-user app state kept in a `PreferencesService`.

    Defaults on missing keys differ on purpose:
    - start date: "now" (unset reads as zero days of use)
    - agreement dates: `NEVER_AGREED`
    - processed exposure key timestamps: 0 per region

    Processed timestamps for all regions live in one JSON value. Setting one
    region reads, updates and rewrites the whole map without any locking, so two
    concurrent writers can lose an update. Callers are expected to have a single
    writer per process.
    """

    def __init__(
        self,
        preferences: PreferencesService,
        logger: Optional[LoggerService] = None,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._preferences = preferences
        self._logger = logger or LoggerService(__name__)
        self._clock = clock

    # -------- Start date --------
    def set_start_date(self, date_time: datetime) -> None:
        self._preferences.set_value(PreferenceKey.START_DATE_TIME, _dump_datetime(date_time))

    def get_start_date(self) -> datetime:
        stored = self._preferences.get_value(PreferenceKey.START_DATE_TIME, None)
        if stored is None:
            return self._clock()
        return _load_datetime(PreferenceKey.START_DATE_TIME, stored)

    def get_days_of_use(self) -> int:
        start = self.get_start_date()
        if start.tzinfo is None:
            start = start.replace(tzinfo=UTC)
        return (self._clock() - start).days

    def remove_start_date(self) -> None:
        self._logger.start_method()

        self._preferences.remove_value(PreferenceKey.START_DATE_TIME)

        self._logger.end_method()

    # -------- Terms agreement --------
    def get_last_update_date(self, terms_type: Union[TermsType, str]) -> datetime:
        self._logger.start_method()
        key = _terms_key(terms_type)

        last_update_date = NEVER_AGREED
        if self._preferences.contains_key(key):
            last_update_date = _load_datetime(key, self._preferences.get_value(key, None))

        self._logger.end_method()
        return last_update_date

    def save_last_update_date(self, terms_type: Union[TermsType, str], update_date: datetime) -> None:
        self._logger.start_method()

        key = _terms_key(terms_type)
        self._preferences.set_value(key, _dump_datetime(update_date))

        self._logger.end_method()

    def is_all_agreed(self) -> bool:
        # Presence only: an agreement saved with any timestamp counts
        self._logger.start_method()
        agreed = all(self._preferences.contains_key(key) for key in _TERMS_KEYS.values())
        self._logger.end_method()
        return agreed

    def remove_all_update_date(self) -> None:
        self._logger.start_method()
        for key in _TERMS_KEYS.values():
            self._preferences.remove_value(key)
        self._logger.end_method()

    # -------- Processed exposure key timestamps --------
    def get_last_process_tek_timestamp(self, region: str) -> int:
        """Return the last processed timestamp for `region`, 0 if none.

        Raises MalformedDataError if the stored map cannot be decoded.
        """
        self._logger.start_method()
        stored = self._preferences.get_value(PreferenceKey.LAST_PROCESS_TEK_TIMESTAMP, None)
        result = load_timestamps_json(stored).get(region)
        self._logger.end_method()
        return result

    def set_last_process_tek_timestamp(self, region: str, created: int) -> None:
        """Record `created` for `region`, keeping every other region's entry.

        Read-modify-write of the whole map; not atomic. A `created` value outside
        the signed 64-bit range raises pydantic.ValidationError before anything is written.
        """
        self._logger.start_method()
        stored = self._preferences.get_value(PreferenceKey.LAST_PROCESS_TEK_TIMESTAMP, None)
        timestamps = load_timestamps_json(stored)
        timestamps.set(region, created)
        self._preferences.set_value(
            PreferenceKey.LAST_PROCESS_TEK_TIMESTAMP, dump_timestamps_json(timestamps)
        )
        self._logger.end_method()

    def remove_last_process_tek_timestamp(self) -> None:
        self._logger.start_method()
        self._preferences.remove_value(PreferenceKey.LAST_PROCESS_TEK_TIMESTAMP)
        self._logger.end_method()
