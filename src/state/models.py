from __future__ import annotations

import json
from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Dict

from pydantic import Field, RootModel, StrictInt, TypeAdapter, ValidationError

from .errors import MalformedDataError


# Agreement dates default to this when the user never agreed (0001-01-01).
NEVER_AGREED = datetime.min.replace(tzinfo=UTC)


class TermsType(str, Enum):
    """Legal documents the user must accept."""

    TERMS_OF_SERVICE = "terms_of_service"
    PRIVACY_POLICY = "privacy_policy"


class PreferenceKey:
    START_DATE_TIME = "StartDateTime"
    TERMS_OF_SERVICE_LAST_UPDATE_DATE_TIME = "TermsOfServiceLastUpdateDateTime"
    PRIVACY_POLICY_LAST_UPDATE_DATE_TIME = "PrivacyPolicyLastUpdateDateTime"
    LAST_PROCESS_TEK_TIMESTAMP = "LastProcessTekTimestamp"


# Epoch millis as a signed 64-bit integer; strings, bools and floats are rejected
TekTimestamp = Annotated[StrictInt, Field(ge=-(2**63), le=2**63 - 1)]

_TIMESTAMP_ADAPTER = TypeAdapter(TekTimestamp)


class ProcessedTimestamps(RootModel[Dict[str, TekTimestamp]]):
    """
    Region -> last processed exposure key timestamp (epoch millis).

    Stored as a single JSON object under `PreferenceKey.LAST_PROCESS_TEK_TIMESTAMP`,
    e.g. {"JP":2000,"US":1000}. A region without an entry reads as 0.
    """

    @classmethod
    def empty(cls) -> "ProcessedTimestamps":
        return cls({})

    def get(self, region: str) -> int:
        return self.root.get(region, 0)

    def set(self, region: str, timestamp: int) -> None:
        """Raises pydantic.ValidationError (a ValueError) if `timestamp` is not an int64."""
        self.root[region] = _TIMESTAMP_ADAPTER.validate_python(timestamp)


def dump_timestamps_json(timestamps: ProcessedTimestamps) -> str:
    # Deterministic JSON: stable key order, no extra whitespace
    return json.dumps(timestamps.model_dump(), separators=(",", ":"), sort_keys=True)


def load_timestamps_json(data: object) -> ProcessedTimestamps:
    """Decode the stored region map.

    `None` and "" mean "never written" and yield an empty map. Anything else
    must be a JSON object of integers, otherwise MalformedDataError is raised.
    """
    if data is None or data == "":
        return ProcessedTimestamps.empty()
    if not isinstance(data, str):
        raise MalformedDataError(
            f"Expected JSON text for processed timestamps, got {type(data).__name__}"
        )
    try:
        raw = json.loads(data)
    except json.JSONDecodeError as ex:
        raise MalformedDataError("Processed timestamps are not valid JSON") from ex
    if not isinstance(raw, dict):
        raise MalformedDataError("Processed timestamps must be a JSON object")
    try:
        return ProcessedTimestamps.model_validate(raw)
    except ValidationError as ex:
        raise MalformedDataError("Processed timestamps must be 64-bit integers") from ex
