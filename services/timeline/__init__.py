from services.timeline.builder import SceneBuilder, SceneHandle
from services.timeline.codec import (
    IR_VERSION,
    dumps_timeline,
    loads_timeline,
    objects_to_dicts,
    timeline_from_dict,
    timeline_to_dict,
)
from services.timeline.easing import DEFAULT_EASING, apply_easing, get_easing, list_easings
from services.timeline.evaluator import frame_times, render_at_time, sample_frames
from services.timeline.hierarchy import compose_rotations, resolve_hierarchy
from services.timeline.model import (
    Action,
    ActionKind,
    Gradient,
    GradientStop,
    ShapeKind,
    TimelineCompileError,
    TimelineData,
    Vec2,
    VisualObject,
)
from services.timeline.recipes import compile_recipe, list_recipes

__all__ = [
    "Action",
    "ActionKind",
    "DEFAULT_EASING",
    "Gradient",
    "GradientStop",
    "IR_VERSION",
    "SceneBuilder",
    "SceneHandle",
    "ShapeKind",
    "TimelineCompileError",
    "TimelineData",
    "Vec2",
    "VisualObject",
    "apply_easing",
    "compile_recipe",
    "compose_rotations",
    "dumps_timeline",
    "frame_times",
    "get_easing",
    "list_easings",
    "list_recipes",
    "loads_timeline",
    "objects_to_dicts",
    "render_at_time",
    "resolve_hierarchy",
    "sample_frames",
    "timeline_from_dict",
    "timeline_to_dict",
]
