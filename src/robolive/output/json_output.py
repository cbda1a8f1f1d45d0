from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel

from robolive.telemetry.cache import TelemetrySnapshot


def _serialize(obj: Any) -> Any:
    """Convert *obj* to a JSON-friendly structure.

    Pydantic models are dumped by field name with ``None`` values dropped,
    telemetry snapshots become a ``channel -> payload`` mapping, and
    containers are recursed.
    """
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", exclude_none=True)
    if isinstance(obj, TelemetrySnapshot):
        return {
            "robot_id": obj.robot_id,
            "last_updated": obj.last_updated.isoformat() if obj.last_updated else None,
            "channels": obj.to_dict(),
        }
    if isinstance(obj, list):
        return [_serialize(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    return obj


def format_json_response(*, data: Any, command: str) -> str:
    """Return a JSON envelope for a successful response.

    The envelope has the shape::

        {
          "ok": true,
          "command": "<command>",
          "data": <serialised payload>,
          "timestamp": "<ISO-8601 UTC>"
        }
    """
    envelope: dict[str, Any] = {
        "ok": True,
        "command": command,
        "data": _serialize(data),
        "timestamp": datetime.now(UTC).isoformat(),
    }
    return json.dumps(envelope, indent=2, default=str)


def format_json_error(*, code: str, message: str, command: str, **extra: Any) -> str:
    """Return a JSON envelope for an error response (``"ok": false``)."""
    envelope: dict[str, Any] = {
        "ok": False,
        "command": command,
        "error": {"code": code, "message": message, **extra},
        "timestamp": datetime.now(UTC).isoformat(),
    }
    return json.dumps(envelope, indent=2, default=str)
