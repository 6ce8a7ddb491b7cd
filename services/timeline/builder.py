from __future__ import annotations

import copy
import dataclasses
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from services.config.engine_config import EnginePolicy, default_policy
from services.timeline.model import (
    MUTABLE_FIELDS,
    Action,
    ActionKind,
    ShapeKind,
    TimelineCompileError,
    TimelineData,
    Vec2,
    VisualObject,
    as_vec2,
    decode_property,
    format_count,
    parse_number,
)

logger = logging.getLogger("motioncore.builder")

STYLE_KEYS = frozenset(
    {
        "z",
        "color",
        "opacity",
        "anchor",
        "background_color",
        "border_color",
        "border_width",
        "border_radius",
    }
)
ROTATE_DIRECTIONS = {"short", "cw", "ccw"}
TWO_PI = math.pi * 2

Target = Any
SceneTask = Callable[["SceneBuilder"], Any]


@dataclass
class SceneHandle:
    id: str
    result: Any = None


class SceneBuilder:
    """Compiles sequential/parallel script calls into a :class:`TimelineData`.

    Every verb reads the cached current state of its target, appends one
    action stamped with ``current_time`` and then advances the clock by the
    verb's duration. The cache never leaves the builder.
    """

    def __init__(self, policy: EnginePolicy | None = None, *, id_prefix: str = "") -> None:
        self.policy = policy or default_policy()
        self.current_time = 0.0
        self.actions: list[Action] = []
        self.initial_objects: dict[str, VisualObject] = {}
        self._current: dict[str, VisualObject] = {}
        self._id_prefix = id_prefix
        self._counters: dict[str, int] = {}

    @property
    def width(self) -> int:
        return self.policy.canvas_width

    @property
    def height(self) -> int:
        return self.policy.canvas_height

    # ids and bookkeeping

    def _mint(self, namespace: str) -> str:
        idx = int(self._counters.get(namespace, 1))
        self._counters[namespace] = idx + 1
        return f"{self._id_prefix}{namespace}#{idx:03d}"

    @staticmethod
    def _resolve_id(target: Target) -> str:
        if isinstance(target, str):
            return target
        if isinstance(target, Mapping) and "id" in target:
            return str(target["id"])
        target_id = getattr(target, "id", None)
        if target_id is not None:
            return str(target_id)
        return str(target)

    def _require(self, target: Target, operation: str) -> tuple[str, VisualObject]:
        object_id = self._resolve_id(target)
        current = self._current.get(object_id)
        if current is None:
            raise TimelineCompileError(
                code="unknown_object_id",
                message=f"{operation}: object '{object_id}' was not found",
                detail={"object_id": object_id, "operation": operation},
            )
        return object_id, current

    @staticmethod
    def _check_duration(duration: float, operation: str) -> float:
        try:
            value = float(duration)
        except (TypeError, ValueError):
            value = float("nan")
        if not math.isfinite(value) or value < 0:
            raise TimelineCompileError(
                code="invalid_duration",
                message=f"{operation}: duration must be a finite number >= 0",
                detail={"operation": operation, "duration": repr(duration)},
            )
        return value

    @staticmethod
    def _check_opacity(values: Mapping[str, Any], operation: str) -> None:
        opacity = values.get("opacity")
        if opacity is None:
            return
        if not (isinstance(opacity, (int, float)) and 0.0 <= opacity <= 1.0):
            raise TimelineCompileError(
                code="invalid_value",
                message=f"{operation}: opacity must be within [0, 1]",
                detail={"operation": operation, "key": "opacity", "value": repr(opacity)},
            )

    def _easing(self, easing: str | None) -> str:
        return easing or self.policy.default_easing

    def _append(self, action: Action) -> Action:
        if len(self.actions) >= self.policy.max_actions:
            raise TimelineCompileError(
                code="budget_exceeded",
                message="action cap exceeded",
                detail={"cap": self.policy.max_actions, "scope": "actions"},
            )
        self.actions.append(action)
        return action

    def _emit(
        self,
        kind: ActionKind,
        target_id: str | None,
        duration: float,
        start_value: Any = None,
        end_value: Any = None,
        easing: str = "linear",
    ) -> Action:
        return self._append(
            Action(
                id=self._mint("act"),
                kind=kind,
                target_id=target_id,
                start_time=self.current_time,
                duration=duration,
                start_value=start_value,
                end_value=end_value,
                easing=easing,
            )
        )

    def _adopt(self, obj: VisualObject, current: VisualObject | None = None) -> None:
        if obj.id not in self.initial_objects and len(self.initial_objects) >= self.policy.max_objects:
            raise TimelineCompileError(
                code="budget_exceeded",
                message="object cap exceeded",
                detail={"cap": self.policy.max_objects, "scope": "objects"},
            )
        self.initial_objects[obj.id] = copy.deepcopy(obj)
        self._current[obj.id] = copy.deepcopy(current if current is not None else obj)

    def _register(self, obj: VisualObject) -> str:
        self._adopt(obj)
        self._emit(ActionKind.CREATE, obj.id, 0.0)
        return obj.id

    def _base_object(self, kind: ShapeKind, x: float, y: float, style: Mapping[str, Any]) -> VisualObject:
        unknown = sorted(set(style) - STYLE_KEYS)
        if unknown:
            raise TimelineCompileError(
                code="unknown_property",
                message=f"add {kind.value}: unsupported style keys {', '.join(unknown)}",
                detail={"operation": f"add_{kind.value}", "keys": unknown},
            )
        obj = VisualObject(id=self._mint(kind.value), kind=kind, x=float(x), y=float(y))
        self._check_opacity(style, f"add_{kind.value}")
        for key, value in style.items():
            if value is None:
                continue
            setattr(obj, key, decode_property(key, value))
        return obj

    def state_of(self, target: Target) -> VisualObject:
        """Copy of the compile-time state a following verb would start from."""
        _, current = self._require(target, "state_of")
        return copy.deepcopy(current)

    # nouns

    def add_circle(self, x: float = 0.0, y: float = 0.0, radius: float = 50.0, **style: Any) -> str:
        obj = self._base_object(ShapeKind.CIRCLE, x, y, style)
        obj.radius = float(radius)
        return self._register(obj)

    def add_rect(self, x: float = 0.0, y: float = 0.0, width: float = 100.0, height: float = 100.0, **style: Any) -> str:
        obj = self._base_object(ShapeKind.RECT, x, y, style)
        obj.width = float(width)
        obj.height = float(height)
        return self._register(obj)

    def add_square(self, x: float = 0.0, y: float = 0.0, size: float = 100.0, **style: Any) -> str:
        return self.add_rect(x, y, width=size, height=size, **style)

    def add_regular_polygon(
        self,
        x: float = 0.0,
        y: float = 0.0,
        radius: float = 50.0,
        sides: int = 6,
        **style: Any,
    ) -> str:
        obj = self._base_object(ShapeKind.REGULAR_POLYGON, x, y, style)
        obj.radius = float(radius)
        obj.sides = max(3, int(sides))
        return self._register(obj)

    def add_triangle(self, x: float = 0.0, y: float = 0.0, radius: float = 50.0, **style: Any) -> str:
        return self.add_regular_polygon(x, y, radius=radius, sides=3, **style)

    def add_polygon(self, points: Iterable[Any], x: float = 0.0, y: float = 0.0, **style: Any) -> str:
        obj = self._base_object(ShapeKind.POLYGON, x, y, style)
        obj.points = [as_vec2(point) for point in points]
        return self._register(obj)

    def add_rhombus(self, x: float = 0.0, y: float = 0.0, width: float = 100.0, height: float = 100.0, **style: Any) -> str:
        half_w = float(width) / 2
        half_h = float(height) / 2
        points = [Vec2(0.0, -half_h), Vec2(half_w, 0.0), Vec2(0.0, half_h), Vec2(-half_w, 0.0)]
        return self.add_polygon(points, x, y, **style)

    def add_text(
        self,
        text: str,
        x: float = 0.0,
        y: float = 0.0,
        font_size: float = 32.0,
        font_style: str | None = None,
        font_weight: str | int | None = None,
        font_family: str | None = None,
        **style: Any,
    ) -> str:
        obj = self._base_object(ShapeKind.TEXT, x, y, style)
        obj.text = str(text)
        obj.font_size = float(font_size)
        obj.font_style = font_style
        obj.font_weight = font_weight
        obj.font_family = font_family
        return self._register(obj)

    def add_math(self, latex: str, x: float = 0.0, y: float = 0.0, scale: float = 1.0, **style: Any) -> str:
        obj = self._base_object(ShapeKind.MATH, x, y, style)
        obj.latex = str(latex)
        obj.scale = float(scale)
        return self._register(obj)

    def _line_object(self, kind: ShapeKind, p1: Any, p2: Any, thickness: float, color: Any, opacity: float) -> VisualObject:
        start = as_vec2(p1)
        end = as_vec2(p2)
        dx = end.x - start.x
        dy = end.y - start.y
        obj = self._base_object(
            kind,
            (start.x + end.x) / 2,
            (start.y + end.y) / 2,
            {"color": color, "opacity": opacity},
        )
        obj.width = math.hypot(dx, dy)
        obj.height = float(thickness)
        obj.rotation = math.atan2(dy, dx)
        return obj

    def add_line(self, p1: Any, p2: Any, thickness: float = 2.0, color: Any = "#ffffff", opacity: float = 1.0) -> str:
        return self._register(self._line_object(ShapeKind.LINE, p1, p2, thickness, color, opacity))

    def add_arrow(self, p1: Any, p2: Any, thickness: float = 2.0, color: Any = "#ffffff", opacity: float = 1.0) -> str:
        return self._register(self._line_object(ShapeKind.ARROW, p1, p2, thickness, color, opacity))

    def add_dotted_line(
        self,
        p1: Any,
        p2: Any,
        thickness: float = 2.0,
        color: Any = "#ffffff",
        dash: list[float] | None = None,
        opacity: float = 1.0,
    ) -> str:
        obj = self._line_object(ShapeKind.LINE, p1, p2, thickness, color, opacity)
        obj.line_dash = [float(step) for step in (dash or [20.0, 20.0])]
        return self._register(obj)

    def add_image(
        self,
        url: str,
        x: float = 0.0,
        y: float = 0.0,
        width: float = 200.0,
        height: float | None = None,
        scale: float = 1.0,
        **style: Any,
    ) -> str:
        obj = self._base_object(ShapeKind.IMAGE, x, y, style)
        obj.image_url = str(url)
        obj.width = float(width)
        obj.height = float(height) if height is not None else None
        obj.scale = float(scale)
        return self._register(obj)

    def add_matrix(
        self,
        data: list[list[Any]],
        x: float = 0.0,
        y: float = 0.0,
        font_size: float = 40.0,
        bracket_style: str = "square",
        cell_spacing: Any = None,
        font_family: str | None = None,
        **style: Any,
    ) -> str:
        obj = self._base_object(ShapeKind.MATRIX, x, y, style)
        obj.matrix_data = [list(row) for row in data]
        obj.font_size = float(font_size)
        obj.bracket_style = bracket_style
        obj.cell_spacing = as_vec2(cell_spacing) if cell_spacing is not None else Vec2(60.0, 60.0)
        obj.font_family = font_family
        return self._register(obj)

    def add_group(self, x: float = 0.0, y: float = 0.0, scale: float = 1.0, rotation: float = 0.0, **style: Any) -> str:
        obj = self._base_object(ShapeKind.GROUP, x, y, style)
        obj.scale = float(scale)
        obj.rotation = float(rotation)
        obj.color = "transparent"
        return self._register(obj)

    # grouping and sub-scenes

    def group(self, object_ids: Iterable[Target], **props: Any) -> str:
        members: list[str] = []
        for target in object_ids:
            object_id = self._resolve_id(target)
            if object_id in self.initial_objects and object_id not in members:
                members.append(object_id)
        if not members:
            logger.warning("group called without any known members; no group created")
            return ""

        count = float(len(members))
        center_x = sum(self._current[oid].x for oid in members) / count
        center_y = sum(self._current[oid].y for oid in members) / count
        center_z = sum(self._current[oid].z for oid in members) / count
        group_id = self.add_group(**{"x": center_x, "y": center_y, "z": center_z, **props})

        for object_id in members:
            for state in (self.initial_objects[object_id], self._current[object_id]):
                state.parent_id = group_id
                state.x -= center_x
                state.y -= center_y
                state.z -= center_z
        return group_id

    def ungroup(self, group: Target) -> None:
        group_id, group_current = self._require(group, "ungroup")
        group_initial = self.initial_objects[group_id]
        if group_initial.kind != ShapeKind.GROUP:
            logger.warning("ungroup ignored for non-group object '%s'", group_id)
            return
        for object_id, initial_child in self.initial_objects.items():
            if initial_child.parent_id != group_id:
                continue
            pairs = [(initial_child, group_initial)]
            current_child = self._current.get(object_id)
            if current_child is not None and current_child.parent_id == group_id:
                pairs.append((current_child, group_current))
            for child, frame in pairs:
                child.x += frame.x
                child.y += frame.y
                child.z += frame.z
                child.parent_id = None

    def add_scene(
        self,
        scene_fn: SceneTask,
        x: float = 0.0,
        y: float = 0.0,
        scale: float = 1.0,
        rotation: float = 0.0,
        **style: Any,
    ) -> SceneHandle:
        group_id = self.add_group(x=x, y=y, scale=scale, rotation=rotation, **style)
        sub = SceneBuilder(self.policy, id_prefix=f"{group_id}/")
        result = scene_fn(sub)
        timeline = sub.get_timeline()

        for object_id, obj in timeline.objects.items():
            final_state = copy.deepcopy(sub._current.get(object_id, obj))
            imported = copy.deepcopy(obj)
            if imported.parent_id is None:
                imported.parent_id = group_id
                final_state.parent_id = group_id
            self._adopt(imported, final_state)

        offset = self.current_time
        for action in timeline.actions:
            self._append(dataclasses.replace(action, id=self._mint("act"), start_time=action.start_time + offset))
        logger.debug(
            "imported sub-scene %s: %d objects, %d actions at t=%.3f",
            group_id,
            len(timeline.objects),
            len(timeline.actions),
            offset,
        )
        return SceneHandle(id=group_id, result=result)

    # verbs

    def wait(self, duration: float) -> None:
        duration = self._check_duration(duration, "wait")
        self._emit(ActionKind.WAIT, None, duration)
        self.current_time += duration

    def _anchor_shift(self, current: VisualObject, new_anchor: Vec2) -> dict[str, float]:
        old_anchor = current.anchor or Vec2(0.5, 0.5)
        extent_w = current.width or 0.0
        extent_h = current.height or 0.0
        if current.kind == ShapeKind.CIRCLE:
            extent_w = extent_h = (current.radius or 0.0) * 2
        dx = (new_anchor.x - old_anchor.x) * extent_w * current.scale
        dy = (new_anchor.y - old_anchor.y) * extent_h * current.scale
        cos_r = math.cos(current.rotation)
        sin_r = math.sin(current.rotation)
        return {
            "x": current.x + dx * cos_r - dy * sin_r,
            "y": current.y + dx * sin_r + dy * cos_r,
        }

    def _tween(
        self,
        kind: ActionKind,
        operation: str,
        target: Target,
        props: Mapping[str, Any],
        duration: float,
        easing: str | None,
    ) -> str:
        object_id, current = self._require(target, operation)
        duration = self._check_duration(duration, operation)
        unknown = sorted(str(key) for key in props if key not in MUTABLE_FIELDS)
        if unknown:
            raise TimelineCompileError(
                code="unknown_property",
                message=f"{operation}: unknown properties {', '.join(unknown)} for object '{object_id}'",
                detail={"object_id": object_id, "operation": operation, "keys": unknown},
            )
        end_values = {key: decode_property(key, value) for key, value in props.items()}
        self._check_opacity(end_values, operation)
        if "anchor" in end_values and "x" not in end_values and "y" not in end_values:
            end_values.update(self._anchor_shift(current, end_values["anchor"]))
        start_values = {key: copy.deepcopy(getattr(current, key)) for key in end_values}

        self._emit(kind, object_id, duration, start_values, end_values, self._easing(easing))
        for key, value in end_values.items():
            setattr(current, key, copy.deepcopy(value))
        self.current_time += duration
        return object_id

    def update(
        self,
        target: Target,
        props: Mapping[str, Any],
        duration: float = 0.0,
        easing: str | None = None,
    ) -> None:
        self._tween(ActionKind.UPDATE, "update", target, props, duration, easing)

    def move_to(self, target: Target, position: Any, duration: float = 1.0, easing: str | None = None) -> None:
        _, current = self._require(target, "move_to")
        if isinstance(position, Mapping):
            coords = {axis: position.get(axis) for axis in ("x", "y", "z")}
        else:
            point = as_vec2(position)
            coords = {"x": point.x, "y": point.y, "z": None}
        props = {
            axis: float(value) if value is not None else getattr(current, axis)
            for axis, value in coords.items()
        }
        self._tween(ActionKind.MOVE, "move_to", target, props, duration, easing)

    def move_by(self, target: Target, delta: Any, duration: float = 1.0, easing: str | None = None) -> None:
        _, current = self._require(target, "move_by")
        if isinstance(delta, Mapping):
            offsets = {axis: float(delta.get(axis) or 0.0) for axis in ("x", "y", "z")}
        else:
            point = as_vec2(delta)
            offsets = {"x": point.x, "y": point.y, "z": 0.0}
        self.move_to(
            target,
            {axis: getattr(current, axis) + offset for axis, offset in offsets.items()},
            duration,
            easing,
        )

    def move_z(self, target: Target, z: float, duration: float = 1.0, easing: str | None = None) -> None:
        self._tween(ActionKind.UPDATE, "move_z", target, {"z": float(z)}, duration, easing)

    def arc(
        self,
        target: Target,
        center: Any,
        degrees: float,
        duration: float = 1.0,
        easing: str | None = None,
    ) -> None:
        object_id, current = self._require(target, "arc")
        duration = self._check_duration(duration, "arc")
        pivot = as_vec2(center)
        dx = current.x - pivot.x
        dy = current.y - pivot.y
        radius = math.hypot(dx, dy)
        start_angle = math.atan2(dy, dx)
        sweep = math.radians(float(degrees))

        self._emit(
            ActionKind.ARC,
            object_id,
            duration,
            {"center_x": pivot.x, "center_y": pivot.y, "radius": radius, "start_angle": start_angle},
            sweep,
            self._easing(easing),
        )
        current.x = pivot.x + radius * math.cos(start_angle + sweep)
        current.y = pivot.y + radius * math.sin(start_angle + sweep)
        self.current_time += duration

    def scale(self, target: Target, factor: float, duration: float = 1.0, easing: str | None = None) -> None:
        self._tween(ActionKind.UPDATE, "scale", target, {"scale": float(factor)}, duration, easing)

    def rotate(
        self,
        target: Target,
        degrees: float,
        duration: float = 1.0,
        direction: str = "short",
        easing: str | None = None,
    ) -> None:
        object_id, current = self._require(target, "rotate")
        duration = self._check_duration(duration, "rotate")
        policy = str(direction or "short").strip().lower()
        if policy not in ROTATE_DIRECTIONS:
            raise TimelineCompileError(
                code="invalid_direction",
                message=f"rotate: direction must be one of short, cw, ccw (got '{direction}')",
                detail={"object_id": object_id, "operation": "rotate", "direction": str(direction)},
            )
        start = current.rotation
        end = math.radians(float(degrees))
        if policy == "cw" and end <= start:
            end += (math.floor((start - end) / TWO_PI) + 1) * TWO_PI
        elif policy == "ccw" and end >= start:
            end -= (math.floor((end - start) / TWO_PI) + 1) * TWO_PI

        self._emit(ActionKind.ROTATE, object_id, duration, start, end, self._easing(easing))
        current.rotation = end
        self.current_time += duration

    def rotate_x(self, target: Target, degrees: float, duration: float = 1.0, easing: str | None = None) -> None:
        self._tween(ActionKind.UPDATE, "rotate_x", target, {"rotation_x": math.radians(float(degrees))}, duration, easing)

    def rotate_y(self, target: Target, degrees: float, duration: float = 1.0, easing: str | None = None) -> None:
        self._tween(ActionKind.UPDATE, "rotate_y", target, {"rotation_y": math.radians(float(degrees))}, duration, easing)

    def rotate_by(self, target: Target, degrees: float, duration: float = 1.0, easing: str | None = None) -> None:
        _, current = self._require(target, "rotate_by")
        props = {"rotation": current.rotation + math.radians(float(degrees))}
        self._tween(ActionKind.UPDATE, "rotate_by", target, props, duration, easing)

    def resize(self, target: Target, value: Any, duration: float = 1.0, easing: str | None = None) -> None:
        _, current = self._require(target, "resize")
        props: dict[str, float] = {}
        if isinstance(value, Mapping):
            aliases = {"width": "width", "height": "height", "radius": "radius", "length": "width", "thickness": "height"}
            for key, field_name in aliases.items():
                if value.get(key) is not None:
                    props[field_name] = float(value[key])
        elif current.kind in (ShapeKind.CIRCLE, ShapeKind.REGULAR_POLYGON):
            props["radius"] = float(value)
        elif current.kind in (ShapeKind.LINE, ShapeKind.ARROW, ShapeKind.IMAGE, ShapeKind.RECT):
            props["width"] = float(value)
        self._tween(ActionKind.UPDATE, "resize", target, props, duration, easing)

    def change_color(self, target: Target, color: Any, duration: float = 1.0, easing: str | None = None) -> None:
        self._tween(ActionKind.UPDATE, "change_color", target, {"color": color}, duration, easing)

    def fade_in(self, target: Target, duration: float = 1.0, easing: str | None = None) -> None:
        self._tween(ActionKind.UPDATE, "fade_in", target, {"opacity": 1.0}, duration, easing)

    def fade_out(self, target: Target, duration: float = 1.0, easing: str | None = None) -> None:
        self._tween(ActionKind.UPDATE, "fade_out", target, {"opacity": 0.0}, duration, easing)

    def count(self, target: Target, end_value: float, duration: float = 1.0) -> None:
        object_id, current = self._require(target, "count")
        duration = self._check_duration(duration, "count")
        start_value = parse_number(current.text)
        self._emit(ActionKind.COUNT, object_id, duration, start_value, float(end_value), "linear")
        current.text = format_count(end_value)
        self.current_time += duration

    def typewriter(self, target: Target, duration: float = 1.0) -> None:
        object_id, current = self._require(target, "typewriter")
        duration = self._check_duration(duration, "typewriter")
        self._emit(ActionKind.TYPEWRITER, object_id, duration, 0, current.text or "", "linear")
        current.opacity = 1.0
        self.current_time += duration

    def wiggle(self, target: Target, duration: float = 1.0, strength: float = 10.0) -> None:
        object_id, current = self._require(target, "wiggle")
        duration = self._check_duration(duration, "wiggle")
        self._emit(ActionKind.WIGGLE, object_id, duration, current.rotation, math.radians(float(strength)), "linear")
        self.current_time += duration

    def shake(self, target: Target, duration: float = 1.0, strength: float = 10.0) -> None:
        object_id, current = self._require(target, "shake")
        duration = self._check_duration(duration, "shake")
        self._emit(ActionKind.SHAKE, object_id, duration, current.x, float(strength), "linear")
        self.current_time += duration

    def pulse(self, target: Target, duration: float = 1.0, scale_factor: float = 1.2) -> None:
        object_id, current = self._require(target, "pulse")
        duration = self._check_duration(duration, "pulse")
        self._emit(ActionKind.PULSE, object_id, duration, current.scale, float(scale_factor), "linear")
        self.current_time += duration

    def glow(
        self,
        target: Target,
        duration: float = 1.0,
        color: str | None = None,
        strength: float = 20.0,
        easing: str | None = None,
    ) -> None:
        object_id, current = self._require(target, "glow")
        duration = self._check_duration(duration, "glow")
        end = {
            "blur": float(strength),
            "color": decode_property("shadow_color", color) if color is not None else copy.deepcopy(current.shadow_color),
        }
        start = {"blur": current.shadow_blur, "color": copy.deepcopy(current.shadow_color)}
        self._emit(ActionKind.GLOW, object_id, duration, start, end, self._easing(easing))
        current.shadow_blur = end["blur"]
        current.shadow_color = copy.deepcopy(end["color"])
        self.current_time += duration

    # composition

    def play_together(self, tasks: Iterable[SceneTask]) -> None:
        start = self.current_time
        longest = 0.0
        for task in tasks:
            self.current_time = start
            task(self)
            longest = max(longest, self.current_time - start)
        self.current_time = start + longest

    def next_page(self, duration: float = 1.0) -> None:
        visible = [object_id for object_id, state in self._current.items() if state.opacity > 0]
        self.play_together([lambda scene, oid=oid: scene.fade_out(oid, duration) for oid in visible])

    def get_timeline(self) -> TimelineData:
        horizon = max([self.current_time] + [action.end_time for action in self.actions])
        return TimelineData(
            duration=horizon,
            actions=list(self.actions),
            objects=copy.deepcopy(self.initial_objects),
        )


__all__ = ["ROTATE_DIRECTIONS", "SceneBuilder", "SceneHandle"]
