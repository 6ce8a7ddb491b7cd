from __future__ import annotations

import json
import math
from typing import Any

from services.protocol import TIMELINE_SCHEMA, ProtocolValidator
from services.timeline.model import (
    Action,
    ActionKind,
    TimelineCompileError,
    TimelineData,
    VisualObject,
    decode_property,
    encode_value,
)

IR_VERSION = "v1"

_validator = ProtocolValidator()


def _finite(value: Any, field: str) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"{field} must be finite, got {value!r}")
    return number


def action_to_dict(action: Action) -> dict[str, Any]:
    return {
        "id": action.id,
        "kind": action.kind.value,
        "target_id": action.target_id,
        "start_time": action.start_time,
        "duration": action.duration,
        "start_value": encode_value(action.start_value),
        "end_value": encode_value(action.end_value),
        "easing": action.easing,
    }


def _decode_payload(kind: ActionKind, value: Any) -> Any:
    if kind in (ActionKind.UPDATE, ActionKind.MOVE) and isinstance(value, dict):
        return {str(key): decode_property(str(key), item) for key, item in value.items()}
    if kind == ActionKind.GLOW and isinstance(value, dict):
        return {**value, "color": decode_property("shadow_color", value.get("color"))}
    return value


def action_from_dict(data: dict[str, Any]) -> Action:
    kind = ActionKind(str(data["kind"]))
    return Action(
        id=str(data["id"]),
        kind=kind,
        target_id=data.get("target_id"),
        start_time=_finite(data["start_time"], "start_time"),
        duration=_finite(data["duration"], "duration"),
        start_value=_decode_payload(kind, data.get("start_value")),
        end_value=_decode_payload(kind, data.get("end_value")),
        easing=str(data.get("easing", "linear")),
    )


def timeline_to_dict(timeline: TimelineData) -> dict[str, Any]:
    return {
        "version": IR_VERSION,
        "duration": timeline.duration,
        "actions": [action_to_dict(action) for action in timeline.actions],
        "objects": {object_id: obj.to_dict() for object_id, obj in timeline.objects.items()},
    }


def timeline_from_dict(payload: dict[str, Any], *, validate: bool = True) -> TimelineData:
    """Rebuild a timeline from its exported form.

    Schema violations raise :class:`ProtocolValidationError`; anything the
    schema admits but the model cannot hold raises ``invalid_timeline``.
    """
    if validate:
        _validator.validate(TIMELINE_SCHEMA, payload)
    try:
        return TimelineData(
            duration=_finite(payload["duration"], "duration"),
            actions=[action_from_dict(row) for row in payload.get("actions", [])],
            objects={
                str(object_id): VisualObject.from_dict({**row, "id": str(object_id)})
                for object_id, row in payload.get("objects", {}).items()
            },
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise TimelineCompileError(
            code="invalid_timeline",
            message="timeline payload could not be decoded",
            detail={"reason": str(exc)},
        ) from exc


def dumps_timeline(timeline: TimelineData, indent: int | None = 2) -> str:
    return json.dumps(timeline_to_dict(timeline), indent=indent)


def loads_timeline(text: str) -> TimelineData:
    return timeline_from_dict(json.loads(text))


def objects_to_dicts(objects: list[VisualObject]) -> list[dict[str, Any]]:
    return [obj.to_dict() for obj in objects]


__all__ = [
    "IR_VERSION",
    "action_from_dict",
    "action_to_dict",
    "dumps_timeline",
    "loads_timeline",
    "objects_to_dicts",
    "timeline_from_dict",
    "timeline_to_dict",
]
