from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, NamedTuple, Union


class Vec2(NamedTuple):
    x: float
    y: float


@dataclass
class GradientStop:
    offset: float
    color: str


@dataclass
class Gradient:
    """Fill descriptor; coordinates are relative to the object's extents."""

    type: str = "linear"
    stops: list[GradientStop] = field(default_factory=list)
    x1: float = 0.0
    y1: float = 0.0
    x2: float = 0.0
    y2: float = 1.0
    r1: float = 0.0
    r2: float = 1.0


Color = Union[str, Gradient]


class ShapeKind(str, Enum):
    CIRCLE = "circle"
    RECT = "rect"
    TEXT = "text"
    LINE = "line"
    ARROW = "arrow"
    MATH = "math"
    IMAGE = "image"
    POLYGON = "polygon"
    REGULAR_POLYGON = "regular_polygon"
    MATRIX = "matrix"
    GROUP = "group"


class ActionKind(str, Enum):
    CREATE = "CREATE"
    WAIT = "WAIT"
    MOVE = "MOVE"
    ARC = "ARC"
    ROTATE = "ROTATE"
    COUNT = "COUNT"
    TYPEWRITER = "TYPEWRITER"
    WIGGLE = "WIGGLE"
    SHAKE = "SHAKE"
    PULSE = "PULSE"
    GLOW = "GLOW"
    UPDATE = "UPDATE"


COLOR_KEYS = frozenset({"color", "border_color", "background_color", "shadow_color"})
POINT_KEYS = frozenset({"anchor", "cell_spacing"})
POINT_LIST_KEYS = frozenset({"points"})


@dataclass
class VisualObject:
    id: str
    kind: ShapeKind
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    rotation: float = 0.0
    rotation_x: float = 0.0
    rotation_y: float = 0.0
    scale: float = 1.0
    opacity: float = 1.0
    color: Color = "#ffffff"
    anchor: Vec2 = Vec2(0.5, 0.5)
    parent_id: str | None = None
    shadow_blur: float = 0.0
    shadow_color: str = "transparent"
    background_color: Color | None = None
    border_color: str | None = None
    border_width: float = 0.0
    border_radius: float = 0.0
    radius: float | None = None
    width: float | None = None
    height: float | None = None
    text: str | None = None
    font_size: float | None = None
    font_style: str | None = None
    font_weight: str | int | None = None
    font_family: str | None = None
    latex: str | None = None
    image_url: str | None = None
    points: list[Vec2] | None = None
    sides: int | None = None
    matrix_data: list[list[str | float]] | None = None
    bracket_style: str | None = None
    cell_spacing: Vec2 | None = None
    line_dash: list[float] | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if value is None:
                continue
            payload[item.name] = encode_value(value)
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VisualObject":
        values: dict[str, Any] = {}
        for key, value in data.items():
            if key not in OBJECT_FIELDS:
                continue
            values[key] = decode_property(key, value)
        values["kind"] = ShapeKind(str(data.get("kind", "")))
        return cls(**values)


OBJECT_FIELDS = frozenset(item.name for item in fields(VisualObject))
# Fields a verb may animate or overwrite; identity is fixed at creation.
MUTABLE_FIELDS = OBJECT_FIELDS - {"id", "kind"}


@dataclass(frozen=True)
class Action:
    id: str
    kind: ActionKind
    target_id: str | None
    start_time: float
    duration: float
    start_value: Any = None
    end_value: Any = None
    easing: str = "linear"

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration


@dataclass
class TimelineData:
    duration: float
    actions: list[Action]
    objects: dict[str, VisualObject]


@dataclass
class TimelineCompileError(RuntimeError):
    code: str
    message: str
    detail: dict[str, Any]

    def __str__(self) -> str:
        return self.message


def as_vec2(value: Any) -> Vec2:
    if isinstance(value, Vec2):
        return value
    if isinstance(value, dict):
        return Vec2(float(value.get("x", 0.0)), float(value.get("y", 0.0)))
    if isinstance(value, (list, tuple)) and len(value) >= 2:
        return Vec2(float(value[0]), float(value[1]))
    raise ValueError(f"cannot interpret {value!r} as a 2D point")


def as_color(value: Any) -> Any:
    if isinstance(value, dict):
        stops = [
            GradientStop(offset=float(row.get("offset", 0.0)), color=str(row.get("color", "")))
            for row in value.get("stops", [])
            if isinstance(row, dict)
        ]
        return Gradient(
            type=str(value.get("type", "linear")),
            stops=stops,
            x1=float(value.get("x1", 0.0)),
            y1=float(value.get("y1", 0.0)),
            x2=float(value.get("x2", 0.0)),
            y2=float(value.get("y2", 1.0)),
            r1=float(value.get("r1", 0.0)),
            r2=float(value.get("r2", 1.0)),
        )
    return value


def decode_property(key: str, value: Any) -> Any:
    """Turn a JSON-style property value into its typed form for ``key``."""
    if value is None:
        return None
    if key in POINT_KEYS:
        return as_vec2(value)
    if key in POINT_LIST_KEYS:
        return [as_vec2(row) for row in value]
    if key in COLOR_KEYS:
        return as_color(value)
    if key == "kind" and not isinstance(value, ShapeKind):
        return ShapeKind(str(value))
    return value


def encode_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Vec2):
        return {"x": value.x, "y": value.y}
    if isinstance(value, Gradient):
        return {
            "type": value.type,
            "stops": [{"offset": stop.offset, "color": stop.color} for stop in value.stops],
            "x1": value.x1,
            "y1": value.y1,
            "x2": value.x2,
            "y2": value.y2,
            "r1": value.r1,
            "r2": value.r2,
        }
    if isinstance(value, dict):
        return {str(key): encode_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(item) for item in value]
    return value


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_count(value: float) -> str:
    return str(round_half_up(float(value)))


def parse_number(text: str | None) -> float:
    try:
        value = float(str(text or "0").strip() or "0")
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


__all__ = [
    "COLOR_KEYS",
    "MUTABLE_FIELDS",
    "OBJECT_FIELDS",
    "Action",
    "ActionKind",
    "Color",
    "Gradient",
    "GradientStop",
    "ShapeKind",
    "TimelineCompileError",
    "TimelineData",
    "Vec2",
    "VisualObject",
    "as_color",
    "as_vec2",
    "decode_property",
    "encode_value",
    "format_count",
    "parse_number",
    "round_half_up",
]
