from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from services.config.engine_config import EnginePolicy
from services.timeline.builder import SceneBuilder
from services.timeline.model import TimelineCompileError, TimelineData

logger = logging.getLogger("motioncore.recipes")

AXIS_COLOR = "#94a3b8"
GRID_COLOR = "#334155"
BAR_COLOR = "#60a5fa"


@dataclass
class BarElement:
    label_id: str
    bar_id: str
    value_id: str
    current_value: float


@dataclass
class BarChart:
    elements: dict[str, BarElement]
    width: float
    bar_height: float
    gap: float
    max_value: float
    color: str


def grid(scene: SceneBuilder, size: float = 1000.0, step: float = 100.0) -> dict[str, str]:
    if step <= 0:
        raise TimelineCompileError(
            code="invalid_recipe_params",
            message="grid step must be positive",
            detail={"recipe_id": "grid", "step": step},
        )
    offset = -size
    while offset <= size:
        scene.add_line((offset, -size), (offset, size), thickness=1, color=GRID_COLOR, opacity=0.5)
        scene.add_line((-size, offset), (size, offset), thickness=1, color=GRID_COLOR, opacity=0.5)
        offset += step
    x_axis = scene.add_arrow((-size, 0), (size, 0), thickness=3, color=AXIS_COLOR)
    y_axis = scene.add_arrow((0, size), (0, -size), thickness=3, color=AXIS_COLOR)
    return {"x_axis": x_axis, "y_axis": y_axis}


def bar_chart(
    scene: SceneBuilder,
    items: list[dict[str, Any]],
    width: float = 600.0,
    bar_height: float = 40.0,
    gap: float = 20.0,
    domain: tuple[float, float] | None = None,
    color: str = BAR_COLOR,
) -> BarChart:
    values = [float(item.get("value", 0.0)) for item in items]
    max_value = float(domain[1]) if domain else max(values, default=0.0)
    if max_value <= 0:
        max_value = 1.0

    scene.add_line((0, -gap), (0, len(items) * (bar_height + gap)), thickness=2, color="#cbd5e1")
    elements: dict[str, BarElement] = {}
    for idx, item in enumerate(items):
        label = str(item.get("label", f"item-{idx}"))
        value = values[idx]
        y_pos = idx * (bar_height + gap)
        bar_width = (value / max_value) * width
        label_id = scene.add_text(label, x=-15, y=y_pos, font_size=24, font_weight=500, color="#e2e8f0", anchor=(1, 0.5))
        bar_id = scene.add_rect(
            x=0,
            y=y_pos,
            width=bar_width,
            height=bar_height,
            color=item.get("color") or color,
            anchor=(0, 0.5),
            border_radius=4,
        )
        value_id = scene.add_text(
            str(round(value)),
            x=bar_width + 15,
            y=y_pos,
            font_size=24,
            color=AXIS_COLOR,
            anchor=(0, 0.5),
        )
        elements[label] = BarElement(label_id=label_id, bar_id=bar_id, value_id=value_id, current_value=value)

    return BarChart(elements=elements, width=width, bar_height=bar_height, gap=gap, max_value=max_value, color=color)


def update_chart(
    scene: SceneBuilder,
    chart: BarChart,
    new_data: list[dict[str, Any]],
    duration: float = 1.0,
    stagger: float = 0.0,
) -> None:
    """Animate bars to ``new_data``; row ``i`` starts ``i * stagger`` after the current time."""
    base_time = scene.current_time
    end_time = base_time
    for idx, item in enumerate(new_data):
        element = chart.elements.get(str(item.get("label", "")))
        if element is None:
            logger.warning("update_chart skipped unknown label '%s'", item.get("label"))
            continue
        value = float(item.get("value", 0.0))
        new_width = (value / chart.max_value) * chart.width
        scene.current_time = base_time + idx * stagger
        scene.play_together(
            [
                lambda s, bar=element.bar_id: s.update(bar, {"width": new_width}, duration, "easeOutCubic"),
                lambda s, label=element.value_id: s.update(label, {"x": new_width + 15}, duration, "easeOutCubic"),
                lambda s, label=element.value_id: s.count(label, value, duration),
            ]
        )
        end_time = max(end_time, scene.current_time)
        element.current_value = value
    scene.current_time = end_time


def cube3d(scene: SceneBuilder, size: float = 200.0, color: str = BAR_COLOR) -> dict[str, str]:
    half = size / 2
    style = {"color": color, "opacity": 0.8, "border_color": "rgba(255,255,255,0.5)", "border_width": 1}
    faces = {
        "front": {"z": -half},
        "back": {"z": half, "rotation_y": 3.141592653589793},
        "left": {"x": -half, "rotation_y": -1.5707963267948966},
        "right": {"x": half, "rotation_y": 1.5707963267948966},
        "top": {"y": -half, "rotation_x": 1.5707963267948966},
        "bottom": {"y": half, "rotation_x": -1.5707963267948966},
    }
    ids: dict[str, str] = {}
    for name, placement in faces.items():
        face = scene.add_square(0, 0, size=size, **style)
        scene.update(face, placement)
        ids[name] = face
    return ids


@dataclass(frozen=True)
class SceneRecipe:
    recipe_id: str
    version: str
    description: str
    build: Callable[[SceneBuilder, dict[str, Any]], Any]
    defaults: dict[str, Any] = field(default_factory=dict)


def _build_grid(scene: SceneBuilder, params: dict[str, Any]) -> Any:
    return grid(scene, size=float(params["size"]), step=float(params["step"]))


def _build_bar_chart(scene: SceneBuilder, params: dict[str, Any]) -> Any:
    domain = params.get("domain")
    chart = bar_chart(
        scene,
        list(params["items"]),
        width=float(params["width"]),
        bar_height=float(params["bar_height"]),
        gap=float(params["gap"]),
        domain=(float(domain[0]), float(domain[1])) if domain else None,
    )
    for new_data in params.get("updates", []):
        update_chart(scene, chart, list(new_data), duration=float(params["duration"]), stagger=float(params["stagger"]))
    return chart


def _build_cube3d(scene: SceneBuilder, params: dict[str, Any]) -> Any:
    size = float(params["size"])
    color = str(params["color"])
    handle = scene.add_scene(lambda sub: cube3d(sub, size=size, color=color), x=scene.width / 2, y=scene.height / 2)
    spin = float(params["spin_degrees"])
    if spin:
        scene.rotate_y(handle, spin, duration=float(params["duration"]), easing="linear")
    return handle


_RECIPES: dict[str, SceneRecipe] = {
    "grid": SceneRecipe(
        recipe_id="grid",
        version="1.0.0",
        description="Grid lines with x/y axis arrows centred on the origin.",
        build=_build_grid,
        defaults={"size": 1000.0, "step": 100.0},
    ),
    "bar_chart": SceneRecipe(
        recipe_id="bar_chart",
        version="1.0.0",
        description="Labelled horizontal bars with optional animated value updates.",
        build=_build_bar_chart,
        defaults={
            "items": [{"label": "A", "value": 30}, {"label": "B", "value": 60}],
            "width": 600.0,
            "bar_height": 40.0,
            "gap": 20.0,
            "updates": [],
            "duration": 1.0,
            "stagger": 0.0,
        },
    ),
    "cube3d": SceneRecipe(
        recipe_id="cube3d",
        version="1.0.0",
        description="Six-faced cube sub-scene at canvas centre, optionally spun about Y.",
        build=_build_cube3d,
        defaults={"size": 200.0, "color": BAR_COLOR, "spin_degrees": 0.0, "duration": 2.0},
    ),
}


def list_recipes() -> list[dict[str, Any]]:
    return [
        {
            "recipe_id": recipe.recipe_id,
            "version": recipe.version,
            "description": recipe.description,
            "defaults": dict(recipe.defaults),
        }
        for recipe in _RECIPES.values()
    ]


def get_recipe(recipe_id: str) -> SceneRecipe | None:
    return _RECIPES.get(str(recipe_id))


def compile_recipe(
    recipe_id: str,
    params: dict[str, Any] | None = None,
    policy: EnginePolicy | None = None,
) -> TimelineData:
    recipe = get_recipe(recipe_id)
    if recipe is None:
        raise TimelineCompileError(
            code="unknown_recipe_id",
            message=f"recipe '{recipe_id}' is not available",
            detail={"recipe_id": str(recipe_id)},
        )
    merged = {**recipe.defaults, **(params or {})}
    scene = SceneBuilder(policy)
    try:
        recipe.build(scene, merged)
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("recipe '%s' rejected params: %s", recipe_id, exc)
        raise TimelineCompileError(
            code="invalid_recipe_params",
            message=f"recipe '{recipe_id}' rejected its params",
            detail={"recipe_id": recipe_id, "reason": str(exc)},
        ) from exc
    return scene.get_timeline()


__all__ = [
    "BarChart",
    "BarElement",
    "SceneRecipe",
    "bar_chart",
    "compile_recipe",
    "cube3d",
    "get_recipe",
    "grid",
    "list_recipes",
    "update_chart",
]
