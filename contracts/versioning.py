"""Schema and application version metadata for exported session data."""

from __future__ import annotations

from typing import Any, Dict

SCHEMA_VERSION = "1.0.0"
APP_VERSION = "0.4.0"


def stamp_versions(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Add schema/app versions to an export payload in place."""
    payload["schemaVersion"] = SCHEMA_VERSION
    payload["appVersion"] = APP_VERSION
    return payload
