from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass

from services.timeline.model import VisualObject

logger = logging.getLogger("motioncore.hierarchy")

Matrix3 = tuple[float, float, float, float, float, float, float, float, float]
Euler = tuple[float, float, float]

# |m31| above this means the middle (Y) angle sits at +/-90 degrees.
GIMBAL_THRESHOLD = 0.99999


@dataclass(frozen=True)
class WorldTransform:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    scale: float = 1.0
    rotation: float = 0.0
    rotation_x: float = 0.0
    rotation_y: float = 0.0
    opacity: float = 1.0

    @classmethod
    def of(cls, obj: VisualObject) -> "WorldTransform":
        return cls(
            x=obj.x,
            y=obj.y,
            z=obj.z,
            scale=obj.scale,
            rotation=obj.rotation,
            rotation_x=obj.rotation_x,
            rotation_y=obj.rotation_y,
            opacity=obj.opacity,
        )


def rotation_matrix(rx: float, ry: float, rz: float) -> Matrix3:
    """Row-major Rz @ Ry @ Rx, i.e. rotate about X first, then Y, then Z."""
    cx, sx = math.cos(rx), math.sin(rx)
    cy, sy = math.cos(ry), math.sin(ry)
    cz, sz = math.cos(rz), math.sin(rz)
    return (
        cz * cy,
        cz * sy * sx - sz * cx,
        cz * sy * cx + sz * sx,
        sz * cy,
        sz * sy * sx + cz * cx,
        sz * sy * cx - cz * sx,
        -sy,
        cy * sx,
        cy * cx,
    )


def multiply(a: Matrix3, b: Matrix3) -> Matrix3:
    out = [0.0] * 9
    for row in range(3):
        for col in range(3):
            out[row * 3 + col] = sum(a[row * 3 + k] * b[k * 3 + col] for k in range(3))
    return tuple(out)  # type: ignore[return-value]


def apply_matrix(m: Matrix3, x: float, y: float, z: float) -> tuple[float, float, float]:
    return (
        m[0] * x + m[1] * y + m[2] * z,
        m[3] * x + m[4] * y + m[5] * z,
        m[6] * x + m[7] * y + m[8] * z,
    )


def extract_euler(m: Matrix3) -> Euler:
    """Decompose an Rz @ Ry @ Rx matrix back into (x, y, z) angles.

    At gimbal lock the X angle is pinned to zero and Z is solved from
    m12 = -sin(z) and m22 = cos(z).
    """
    m11, m12, _m13, m21, m22, _m23, m31, m32, m33 = m
    ry = -math.asin(max(-1.0, min(1.0, m31)))
    if abs(m31) < GIMBAL_THRESHOLD:
        rx = math.atan2(m32, m33)
        rz = math.atan2(m21, m11)
    else:
        rx = 0.0
        rz = math.atan2(-m12, m22)
    return (rx, ry, rz)


def compose_rotations(parent: Euler, child: Euler) -> Euler:
    """World Euler triple for ``child`` expressed inside ``parent``'s frame."""
    if parent == (0.0, 0.0, 0.0):
        return child
    return extract_euler(multiply(rotation_matrix(*parent), rotation_matrix(*child)))


def _to_world(obj: VisualObject, parent: WorldTransform, mode: str) -> VisualObject:
    world = copy.copy(obj)
    s = parent.scale
    lx, ly, lz = obj.x * s, obj.y * s, obj.z * s

    if mode == "2d":
        cos_r = math.cos(parent.rotation)
        sin_r = math.sin(parent.rotation)
        ox, oy, oz = lx * cos_r - ly * sin_r, lx * sin_r + ly * cos_r, lz
        world.rotation = parent.rotation + obj.rotation
    else:
        ox, oy, oz = apply_matrix(rotation_matrix(parent.rotation_x, parent.rotation_y, parent.rotation), lx, ly, lz)
        rx, ry, rz = compose_rotations(
            (parent.rotation_x, parent.rotation_y, parent.rotation),
            (obj.rotation_x, obj.rotation_y, obj.rotation),
        )
        world.rotation_x, world.rotation_y, world.rotation = rx, ry, rz

    world.x = parent.x + ox
    world.y = parent.y + oy
    world.z = parent.z + oz
    world.scale = obj.scale * s
    world.opacity = obj.opacity * parent.opacity
    return world


def resolve_hierarchy(objects: dict[str, VisualObject], mode: str = "3d") -> list[VisualObject]:
    """Flatten parent-relative objects into world space, parents before children."""
    children: dict[str, list[str]] = {}
    roots: list[str] = []
    for object_id, obj in objects.items():
        parent_id = obj.parent_id
        if parent_id and parent_id in objects:
            children.setdefault(parent_id, []).append(object_id)
        else:
            if parent_id:
                logger.warning("object '%s' references missing parent '%s'; treating as root", object_id, parent_id)
            roots.append(object_id)

    resolved: list[VisualObject] = []
    visited: set[str] = set()
    stack: list[tuple[str, WorldTransform | None]] = [(root, None) for root in reversed(roots)]
    while stack:
        object_id, parent = stack.pop()
        if object_id in visited:
            continue
        visited.add(object_id)
        obj = objects[object_id]
        world = copy.copy(obj) if parent is None else _to_world(obj, parent, mode)
        resolved.append(world)
        frame = WorldTransform.of(world)
        for child_id in reversed(children.get(object_id, [])):
            stack.append((child_id, frame))

    unreachable = [object_id for object_id in objects if object_id not in visited]
    if unreachable:
        logger.warning("parent cycle detected; %d object(s) left in local space", len(unreachable))
        resolved.extend(copy.copy(objects[object_id]) for object_id in unreachable)
    return resolved


__all__ = [
    "GIMBAL_THRESHOLD",
    "WorldTransform",
    "apply_matrix",
    "compose_rotations",
    "extract_euler",
    "multiply",
    "resolve_hierarchy",
    "rotation_matrix",
]
