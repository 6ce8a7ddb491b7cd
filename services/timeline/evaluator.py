from __future__ import annotations

import copy
import logging
import math
from typing import Any, Callable

from services.config.engine_config import default_policy
from services.timeline.easing import get_easing
from services.timeline.hierarchy import resolve_hierarchy
from services.timeline.model import (
    COLOR_KEYS,
    OBJECT_FIELDS,
    Action,
    ActionKind,
    Gradient,
    GradientStop,
    TimelineData,
    Vec2,
    VisualObject,
    format_count,
)

logger = logging.getLogger("motioncore.evaluator")

WIGGLE_FREQUENCY = 10.0
SHAKE_FREQUENCY = 20.0

Applier = Callable[[VisualObject, Action, float, float], None]


def action_progress(action: Action, t: float) -> tuple[float, float]:
    """Return (raw, eased) progress of ``action`` at time ``t``, both in [0, 1]."""
    if action.duration <= 0:
        raw = 1.0
    else:
        raw = (t - action.start_time) / action.duration
        raw = 0.0 if math.isnan(raw) else min(max(raw, 0.0), 1.0)
    if raw >= 1.0:
        return 1.0, 1.0
    return raw, get_easing(action.easing)(raw)


def active_actions(actions: list[Action], t: float) -> list[Action]:
    # sorted() is stable, so equal start times keep insertion order.
    return sorted((action for action in actions if action.start_time <= t), key=lambda action: action.start_time)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_point_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, Vec2) for item in value)


def _lerp(start: float, end: float, progress: float) -> float:
    if progress == 1.0:
        return end
    return start + (end - start) * progress


def property_category(key: str, start: Any, end: Any) -> str:
    if _is_number(start) and _is_number(end):
        return "numeric"
    if key in COLOR_KEYS:
        return "color"
    if isinstance(start, Vec2) and isinstance(end, Vec2):
        return "point"
    if _is_point_list(start) and _is_point_list(end):
        return "points"
    return "discrete"


def blend_gradients(start: Gradient, end: Gradient, eased: float) -> Gradient:
    """Geometry and stop offsets move continuously; stop colours switch at the midpoint."""
    stops = [
        GradientStop(offset=_lerp(a.offset, b.offset, eased), color=b.color if eased >= 0.5 else a.color)
        for a, b in zip(start.stops, end.stops)
    ]
    return Gradient(
        type=end.type,
        stops=stops,
        x1=_lerp(start.x1, end.x1, eased),
        y1=_lerp(start.y1, end.y1, eased),
        x2=_lerp(start.x2, end.x2, eased),
        y2=_lerp(start.y2, end.y2, eased),
        r1=_lerp(start.r1, end.r1, eased),
        r2=_lerp(start.r2, end.r2, eased),
    )


def interpolate_property(key: str, start: Any, end: Any, raw: float, eased: float) -> Any:
    category = property_category(key, start, end)
    if category == "numeric":
        return _lerp(start, end, eased)
    if category == "color":
        if eased >= 1.0:
            return copy.deepcopy(end)
        if isinstance(start, Gradient) and isinstance(end, Gradient) and start.type == end.type:
            return blend_gradients(start, end, eased)
        return copy.deepcopy(end if eased >= 0.5 else start)
    if category == "point":
        return Vec2(_lerp(start.x, end.x, eased), _lerp(start.y, end.y, eased))
    if category == "points":
        if eased >= 1.0 and len(start) == len(end):
            return list(end)
        return [Vec2(_lerp(a.x, b.x, eased), _lerp(a.y, b.y, eased)) for a, b in zip(start, end)]
    return copy.deepcopy(end if raw > 0 else start)


def _apply_update(obj: VisualObject, action: Action, raw: float, eased: float) -> None:
    start_props = action.start_value if isinstance(action.start_value, dict) else {}
    end_props = action.end_value if isinstance(action.end_value, dict) else {}
    for key, end in end_props.items():
        if key not in OBJECT_FIELDS or key in ("id", "kind"):
            continue
        setattr(obj, key, interpolate_property(key, start_props.get(key), end, raw, eased))


def _apply_move(obj: VisualObject, action: Action, raw: float, eased: float) -> None:
    start = action.start_value if isinstance(action.start_value, dict) else {}
    end = action.end_value if isinstance(action.end_value, dict) else {}
    for axis in ("x", "y", "z"):
        if _is_number(start.get(axis)) and _is_number(end.get(axis)):
            setattr(obj, axis, _lerp(start[axis], end[axis], eased))


def _apply_arc(obj: VisualObject, action: Action, raw: float, eased: float) -> None:
    snapshot = action.start_value
    if not isinstance(snapshot, dict) or not _is_number(action.end_value):
        return
    if not all(_is_number(snapshot.get(key)) for key in ("center_x", "center_y", "radius", "start_angle")):
        return
    angle = snapshot["start_angle"] + action.end_value * eased
    obj.x = snapshot["center_x"] + snapshot["radius"] * math.cos(angle)
    obj.y = snapshot["center_y"] + snapshot["radius"] * math.sin(angle)


def _apply_rotate(obj: VisualObject, action: Action, raw: float, eased: float) -> None:
    if _is_number(action.start_value) and _is_number(action.end_value):
        obj.rotation = _lerp(action.start_value, action.end_value, eased)


def _apply_count(obj: VisualObject, action: Action, raw: float, eased: float) -> None:
    if _is_number(action.start_value) and _is_number(action.end_value):
        obj.text = format_count(_lerp(action.start_value, action.end_value, eased))


def _apply_typewriter(obj: VisualObject, action: Action, raw: float, eased: float) -> None:
    obj.opacity = 1.0
    full_text = action.end_value
    if isinstance(full_text, str):
        obj.text = full_text[: int(math.floor(len(full_text) * eased))]


def _decaying_wave(raw: float, frequency: float, strength: float) -> float:
    return math.sin(raw * math.pi * frequency) * strength * (1 - raw)


def _apply_wiggle(obj: VisualObject, action: Action, raw: float, eased: float) -> None:
    base = action.start_value
    if not (_is_number(base) and _is_number(action.end_value)):
        return
    if raw < 1:
        obj.rotation = base + _decaying_wave(raw, WIGGLE_FREQUENCY, action.end_value)
    else:
        obj.rotation = base


def _apply_shake(obj: VisualObject, action: Action, raw: float, eased: float) -> None:
    base = action.start_value
    if not (_is_number(base) and _is_number(action.end_value)):
        return
    if raw < 1:
        obj.x = base + _decaying_wave(raw, SHAKE_FREQUENCY, action.end_value)
    else:
        obj.x = base


def _apply_pulse(obj: VisualObject, action: Action, raw: float, eased: float) -> None:
    base = action.start_value
    if not (_is_number(base) and _is_number(action.end_value)):
        return
    if raw < 1:
        obj.scale = base + (action.end_value - base) * math.sin(raw * math.pi)
    else:
        obj.scale = base


def _apply_glow(obj: VisualObject, action: Action, raw: float, eased: float) -> None:
    start = action.start_value if isinstance(action.start_value, dict) else {}
    end = action.end_value if isinstance(action.end_value, dict) else {}
    if _is_number(start.get("blur")) and _is_number(end.get("blur")):
        obj.shadow_blur = _lerp(start["blur"], end["blur"], eased)
    if raw > 0:
        obj.shadow_color = copy.deepcopy(end.get("color", obj.shadow_color))


_APPLIERS: dict[ActionKind, Applier] = {
    ActionKind.UPDATE: _apply_update,
    ActionKind.MOVE: _apply_move,
    ActionKind.ARC: _apply_arc,
    ActionKind.ROTATE: _apply_rotate,
    ActionKind.COUNT: _apply_count,
    ActionKind.TYPEWRITER: _apply_typewriter,
    ActionKind.WIGGLE: _apply_wiggle,
    ActionKind.SHAKE: _apply_shake,
    ActionKind.PULSE: _apply_pulse,
    ActionKind.GLOW: _apply_glow,
}


def apply_actions(objects: dict[str, VisualObject], actions: list[Action], t: float) -> dict[str, VisualObject]:
    """Apply every action started by ``t`` to ``objects`` in place; later writes win."""
    for action in active_actions(actions, t):
        if not action.target_id:
            continue
        obj = objects.get(action.target_id)
        applier = _APPLIERS.get(action.kind)
        if obj is None or applier is None:
            continue
        raw, eased = action_progress(action, t)
        applier(obj, action, raw, eased)
    return objects


def render_at_time(timeline: TimelineData, t: float, *, rotation_mode: str | None = None) -> list[VisualObject]:
    """World-space objects for time ``t``; pure and safe to call concurrently."""
    objects = copy.deepcopy(timeline.objects)
    apply_actions(objects, timeline.actions, t)
    mode = rotation_mode or default_policy().rotation_mode
    return resolve_hierarchy(objects, mode=mode)


def frame_times(duration: float, fps: float, *, max_frames: int | None = None) -> list[float]:
    """Sample times at ``fps`` ending exactly on ``duration``.

    The frame count is checked against ``max_frames`` before any list is built.
    """
    if fps <= 0 or not math.isfinite(fps):
        raise ValueError("fps must be a positive finite number")
    total = max(0.0, float(duration))
    if not math.isfinite(total * fps):
        raise ValueError(f"duration {duration!r} cannot be sampled at {fps} fps")
    count = int(math.floor(total * fps + 1e-9))
    needed = count + 1 if count / fps >= total else count + 2
    if max_frames is not None and needed > max_frames:
        raise ValueError(f"{needed} frames requested, limit is {max_frames}")
    times = [idx / fps for idx in range(count + 1)]
    if times[-1] < total:
        times.append(total)
    return times


def sample_frames(
    timeline: TimelineData,
    fps: float,
    *,
    rotation_mode: str | None = None,
    max_frames: int | None = None,
) -> list[tuple[float, list[VisualObject]]]:
    limit = max_frames if max_frames is not None else default_policy().max_frames
    times = frame_times(timeline.duration, fps, max_frames=limit)
    mode = rotation_mode or default_policy().rotation_mode
    logger.debug("sampling %d frames at %.2f fps", len(times), fps)
    return [(t, render_at_time(timeline, t, rotation_mode=mode)) for t in times]


__all__ = [
    "SHAKE_FREQUENCY",
    "WIGGLE_FREQUENCY",
    "action_progress",
    "active_actions",
    "apply_actions",
    "frame_times",
    "interpolate_property",
    "property_category",
    "render_at_time",
    "sample_frames",
]
