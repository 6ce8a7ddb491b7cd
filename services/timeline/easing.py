from __future__ import annotations

import logging
import math
from typing import Callable

logger = logging.getLogger("motioncore.easing")

EasingFn = Callable[[float], float]

DEFAULT_EASING = "easeInOutCubic"


def linear(t: float) -> float:
    return t


def ease_in_quad(t: float) -> float:
    return t * t


def ease_out_quad(t: float) -> float:
    return t * (2 - t)


def ease_in_out_quad(t: float) -> float:
    return 2 * t * t if t < 0.5 else -1 + (4 - 2 * t) * t


def ease_in_cubic(t: float) -> float:
    return t * t * t


def ease_out_cubic(t: float) -> float:
    shifted = t - 1
    return shifted * shifted * shifted + 1


def ease_in_out_cubic(t: float) -> float:
    if t < 0.5:
        return 4 * t * t * t
    return (t - 1) * (2 * t - 2) * (2 * t - 2) + 1


def ease_in_sine(t: float) -> float:
    return 1 - math.cos((t * math.pi) / 2)


def ease_out_sine(t: float) -> float:
    return math.sin((t * math.pi) / 2)


def ease_in_out_sine(t: float) -> float:
    return -(math.cos(math.pi * t) - 1) / 2


def ease_out_bounce(t: float) -> float:
    n1 = 7.5625
    d1 = 2.75
    if t < 1 / d1:
        return n1 * t * t
    if t < 2 / d1:
        t -= 1.5 / d1
        return n1 * t * t + 0.75
    if t < 2.5 / d1:
        t -= 2.25 / d1
        return n1 * t * t + 0.9375
    t -= 2.625 / d1
    return n1 * t * t + 0.984375


def ease_out_elastic(t: float) -> float:
    if t == 0:
        return 0.0
    if t == 1:
        return 1.0
    c4 = (2 * math.pi) / 3
    return math.pow(2, -10 * t) * math.sin((t * 10 - 0.75) * c4) + 1


_EASINGS: dict[str, EasingFn] = {
    "linear": linear,
    "easeInQuad": ease_in_quad,
    "easeOutQuad": ease_out_quad,
    "easeInOutQuad": ease_in_out_quad,
    "easeInCubic": ease_in_cubic,
    "easeOutCubic": ease_out_cubic,
    "easeInOutCubic": ease_in_out_cubic,
    "easeInSine": ease_in_sine,
    "easeOutSine": ease_out_sine,
    "easeInOutSine": ease_in_out_sine,
    "easeOutBounce": ease_out_bounce,
    "easeOutElastic": ease_out_elastic,
}


def list_easings() -> list[str]:
    return list(_EASINGS)


def is_known_easing(name: str | None) -> bool:
    return str(name or "") in _EASINGS


def get_easing(name: str | None) -> EasingFn:
    """Look up a named curve; unknown names fall back to linear."""
    fn = _EASINGS.get(str(name or ""))
    if fn is None:
        logger.debug("unknown easing '%s', falling back to linear", name)
        return linear
    return fn


def apply_easing(name: str | None, progress: float) -> float:
    return get_easing(name)(progress)


__all__ = [
    "DEFAULT_EASING",
    "EasingFn",
    "apply_easing",
    "get_easing",
    "is_known_easing",
    "list_easings",
]
