from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import ClientError

from .errors import PreferencesError
from .preferences import PreferencesService


# Environment variable names for convenience configuration
ENV_BUCKET = "RADAR_PREFS_BUCKET"
ENV_KEY = "RADAR_PREFS_KEY"


def _dump_document(data: Dict[str, Any]) -> bytes:
    return json.dumps(data, separators=(",", ":"), sort_keys=True).encode("utf-8")


def _load_document(body: bytes) -> Dict[str, Any]:
    try:
        raw = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as ex:
        raise PreferencesError("Failed to parse preferences JSON") from ex
    if not isinstance(raw, dict):
        raise PreferencesError("Preferences document must be a JSON object")
    return raw


@dataclass
class S3ObjectRef:
    bucket: str
    key: str


class S3Preferences(PreferencesService):
    """
    S3-backed preferences stored as a single JSON object.

    - Every read fetches the object; a missing object is an empty document.
    - Every mutation rewrites the whole object (plain put, last writer wins).
    - S3 errors other than a missing key propagate as `ClientError`.

    Environment variables (optional)
    - `RADAR_PREFS_BUCKET`: S3 bucket for the preferences object
    - `RADAR_PREFS_KEY`:    S3 key (path) for the preferences object
    """

    def __init__(
        self,
        *,
        s3: Optional[object] = None,
        bucket: str,
        key: str,
        region_name: Optional[str] = None,
    ) -> None:
        self._s3 = s3 or boto3.client("s3", region_name=region_name)
        self._obj = S3ObjectRef(bucket=bucket, key=key)

    @classmethod
    def from_env(cls) -> "S3Preferences":
        bucket = os.environ.get(ENV_BUCKET)
        key = os.environ.get(ENV_KEY)
        if not bucket or not key:
            missing = [name for name, val in [(ENV_BUCKET, bucket), (ENV_KEY, key)] if not val]
            raise RuntimeError(
                f"Missing required environment variables for S3 preferences: {', '.join(missing)}"
            )
        return cls(bucket=bucket, key=key)

    def _read(self) -> Dict[str, Any]:
        try:
            resp = self._s3.get_object(Bucket=self._obj.bucket, Key=self._obj.key)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("NoSuchKey", "404"):
                return {}
            raise
        return _load_document(resp["Body"].read())

    def _write(self, data: Dict[str, Any]) -> None:
        self._s3.put_object(
            Bucket=self._obj.bucket,
            Key=self._obj.key,
            Body=_dump_document(data),
            ContentType="application/json",
        )

    def get_value(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set_value(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_value(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def contains_key(self, key: str) -> bool:
        return key in self._read()
