from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

ROTATION_MODES = {"2d", "3d"}


@dataclass(frozen=True)
class EnginePolicy:
    canvas_width: int
    canvas_height: int
    rotation_mode: str
    default_easing: str
    max_objects: int
    max_actions: int
    max_frame_rate: float
    max_frames: int


def _env_int(
    env: Mapping[str, str],
    name: str,
    fallback: int,
    min_value: int = 1,
    max_value: int = 1_000_000,
) -> int:
    raw = str(env.get(name, "")).strip()
    if not raw:
        return fallback
    try:
        value = int(raw)
    except ValueError:
        return fallback
    return max(min_value, min(max_value, value))


def _env_float(
    env: Mapping[str, str],
    name: str,
    fallback: float,
    min_value: float = 0.1,
    max_value: float = 1000.0,
) -> float:
    raw = str(env.get(name, "")).strip()
    if not raw:
        return fallback
    try:
        value = float(raw)
    except ValueError:
        return fallback
    return max(min_value, min(max_value, value))


def _env_choice(env: Mapping[str, str], name: str, fallback: str, choices: set[str]) -> str:
    raw = str(env.get(name, "")).strip().lower()
    return raw if raw in choices else fallback


def _env_easing(env: Mapping[str, str], name: str) -> str:
    from services.timeline.easing import DEFAULT_EASING, is_known_easing

    raw = str(env.get(name, "")).strip()
    return raw if is_known_easing(raw) else DEFAULT_EASING


def parse_env(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    values: dict[str, str] = {}
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        values[key.strip()] = value.strip()
    return values


def default_policy(env: Mapping[str, str] | None = None) -> EnginePolicy:
    source = os.environ if env is None else env
    return EnginePolicy(
        canvas_width=_env_int(source, "MOTIONCORE_CANVAS_WIDTH", 1920, max_value=16_384),
        canvas_height=_env_int(source, "MOTIONCORE_CANVAS_HEIGHT", 1080, max_value=16_384),
        rotation_mode=_env_choice(source, "MOTIONCORE_ROTATION_MODE", "3d", ROTATION_MODES),
        default_easing=_env_easing(source, "MOTIONCORE_DEFAULT_EASING"),
        max_objects=_env_int(source, "MOTIONCORE_MAX_OBJECTS", 5000),
        max_actions=_env_int(source, "MOTIONCORE_MAX_ACTIONS", 50_000),
        max_frame_rate=_env_float(source, "MOTIONCORE_MAX_FRAME_RATE", 120.0, max_value=480.0),
        max_frames=_env_int(source, "MOTIONCORE_MAX_FRAMES", 20_000),
    )


def policy_from_env_file(path: Path) -> EnginePolicy:
    """Environment values win over the file, matching how a process is launched."""
    merged = {**parse_env(path), **{key: value for key, value in os.environ.items() if key.startswith("MOTIONCORE_")}}
    return default_policy(merged)


__all__ = [
    "ROTATION_MODES",
    "EnginePolicy",
    "default_policy",
    "parse_env",
    "policy_from_env_file",
]
