from __future__ import annotations

import math

import pytest

from services.timeline.builder import SceneBuilder
from services.timeline.evaluator import (
    action_progress,
    frame_times,
    interpolate_property,
    render_at_time,
    sample_frames,
)
from services.timeline.model import Action, ActionKind, Gradient, GradientStop, TimelineData, Vec2


def _by_id(objects):
    return {obj.id: obj for obj in objects}


def _circle_scene():
    scene = SceneBuilder()
    circle = scene.add_circle(100, 100, radius=50, color="red")
    scene.wait(0.5)
    scene.move_to(circle, {"x": 960, "y": 540}, 2.0)
    return circle, scene.get_timeline()


def test_circle_moves_only_after_wait_elapses() -> None:
    circle, timeline = _circle_scene()
    assert timeline.duration == 2.5

    early = _by_id(render_at_time(timeline, 0.25))[circle]
    assert (early.x, early.y) == (100.0, 100.0)

    middle = _by_id(render_at_time(timeline, 1.5))[circle]
    assert math.isclose(middle.x, 530.0)
    assert math.isclose(middle.y, 320.0)

    done = _by_id(render_at_time(timeline, 3.0))[circle]
    assert (done.x, done.y) == (960.0, 540.0)
    assert done.color == "red"


def test_render_is_pure_and_repeatable() -> None:
    circle, timeline = _circle_scene()
    first = render_at_time(timeline, 1.5)
    render_at_time(timeline, 2.4)
    second = render_at_time(timeline, 1.5)
    assert first == second
    assert timeline.objects[circle].x == 100.0


def test_end_values_are_hit_exactly_at_boundaries() -> None:
    scene = SceneBuilder()
    dot = scene.add_circle(0, 0)
    scene.move_to(dot, (333.3, 777.7), 1.25, easing="easeOutBounce")
    scene.update(dot, {"opacity": 0.123}, 0.75, easing="easeOutElastic")
    timeline = scene.get_timeline()

    at_move_end = _by_id(render_at_time(timeline, 1.25))[dot]
    assert (at_move_end.x, at_move_end.y) == (333.3, 777.7)
    at_end = _by_id(render_at_time(timeline, timeline.duration))[dot]
    assert at_end.opacity == 0.123


def test_typewriter_reveals_floor_of_progress() -> None:
    scene = SceneBuilder()
    title = scene.add_text("HELLO", 0, 0)
    scene.typewriter(title, 1.0)
    timeline = scene.get_timeline()
    assert _by_id(render_at_time(timeline, 0.4))[title].text == "HE"
    assert _by_id(render_at_time(timeline, 0.0))[title].text == ""
    assert _by_id(render_at_time(timeline, 1.0))[title].text == "HELLO"


def test_count_rounds_half_up() -> None:
    scene = SceneBuilder()
    label = scene.add_text("10", 0, 0)
    scene.count(label, 11, 1.0)
    scene.count(label, 0, 1.0)
    timeline = scene.get_timeline()
    assert _by_id(render_at_time(timeline, 0.5))[label].text == "11"
    assert _by_id(render_at_time(timeline, 0.49))[label].text == "10"
    assert _by_id(render_at_time(timeline, 2.0))[label].text == "0"


def test_procedural_effects_return_to_rest() -> None:
    scene = SceneBuilder()
    dot = scene.add_circle(100, 0)
    scene.play_together(
        [
            lambda s: s.wiggle(dot, 1.0, strength=10),
            lambda s: s.shake(dot, 1.0, strength=10),
            lambda s: s.pulse(dot, 1.0, scale_factor=1.5),
        ]
    )
    timeline = scene.get_timeline()

    shaken = _by_id(render_at_time(timeline, 0.025))[dot]
    assert math.isclose(shaken.x, 100 + 10 * 0.975)
    wiggled = _by_id(render_at_time(timeline, 0.05))[dot]
    assert math.isclose(wiggled.rotation, math.radians(10) * 0.95)
    pulsed = _by_id(render_at_time(timeline, 0.5))[dot]
    assert math.isclose(pulsed.scale, 1.5)

    rest = _by_id(render_at_time(timeline, 1.0))[dot]
    assert (rest.x, rest.rotation, rest.scale) == (100.0, 0.0, 1.0)


def test_arc_keeps_constant_distance_from_pivot() -> None:
    scene = SceneBuilder()
    dot = scene.add_circle(200, 100)
    scene.arc(dot, (100, 100), 90, 2.0)
    timeline = scene.get_timeline()
    for t in (0.0, 0.3, 0.9, 1.4, 2.0):
        obj = _by_id(render_at_time(timeline, t))[dot]
        assert math.isclose(math.hypot(obj.x - 100, obj.y - 100), 100.0)
    end = _by_id(render_at_time(timeline, 2.0))[dot]
    assert math.isclose(end.x, 100.0, abs_tol=1e-9)
    assert math.isclose(end.y, 200.0)


def test_glow_interpolates_blur_and_switches_colour() -> None:
    scene = SceneBuilder()
    dot = scene.add_circle()
    scene.glow(dot, 1.0, color="#ffcc00", strength=20, easing="linear")
    timeline = scene.get_timeline()
    start = _by_id(render_at_time(timeline, 0.0))[dot]
    assert (start.shadow_blur, start.shadow_color) == (0.0, "transparent")
    mid = _by_id(render_at_time(timeline, 0.5))[dot]
    assert (mid.shadow_blur, mid.shadow_color) == (10.0, "#ffcc00")


def test_later_sorted_action_wins_on_overlap() -> None:
    scene = SceneBuilder()
    dot = scene.add_circle(0, 0)
    scene.play_together(
        [
            lambda s: s.update(dot, {"x": 100}, 1.0, "linear"),
            lambda s: s.update(dot, {"x": 300}, 2.0, "linear"),
        ]
    )
    timeline = scene.get_timeline()
    assert _by_id(render_at_time(timeline, 0.5))[dot].x == 150.0
    assert _by_id(render_at_time(timeline, 1.0))[dot].x == 200.0


def test_rotate_and_anchor_render_through_generic_paths() -> None:
    scene = SceneBuilder()
    box = scene.add_rect(100, 100, width=200, height=100)
    scene.update(box, {"anchor": (0, 0)}, 1.0, "linear")
    scene.rotate(box, 90, 1.0, direction="cw", easing="linear")
    timeline = scene.get_timeline()

    half = _by_id(render_at_time(timeline, 0.5))[box]
    assert half.anchor == Vec2(0.25, 0.25)
    assert (half.x, half.y) == (50.0, 75.0)
    turned = _by_id(render_at_time(timeline, 1.5))[box]
    assert math.isclose(turned.rotation, math.pi / 4)


def test_unknown_easing_renders_linearly() -> None:
    scene = SceneBuilder()
    dot = scene.add_circle(0, 0)
    scene.move_to(dot, (100, 0), 1.0, easing="wobbleInOut")
    timeline = scene.get_timeline()
    assert math.isclose(_by_id(render_at_time(timeline, 0.3))[dot].x, 30.0)


def test_render_never_raises_for_odd_times() -> None:
    _, timeline = _circle_scene()
    for t in (-5.0, float("nan"), float("inf"), float("-inf"), 1e12):
        objects = render_at_time(timeline, t)
        assert len(objects) == 1
    assert render_at_time(timeline, float("nan"))[0].x == 100.0
    assert render_at_time(timeline, float("inf"))[0].x == 960.0


def test_malformed_action_payloads_are_skipped() -> None:
    scene = SceneBuilder()
    dot = scene.add_circle(5, 5)
    timeline = scene.get_timeline()
    timeline.actions.extend(
        [
            Action("bad#1", ActionKind.ARC, dot, 0.0, 1.0, {"center_x": "?"}, "wide"),
            Action("bad#2", ActionKind.MOVE, dot, 0.0, 1.0, None, {"x": "far"}),
            Action("bad#3", ActionKind.PULSE, "ghost", 0.0, 1.0, 1.0, 2.0),
            Action("bad#4", ActionKind.UPDATE, dot, 0.0, 1.0, {}, {"not_a_field": 1}),
        ]
    )
    obj = render_at_time(timeline, 0.5)[0]
    assert (obj.x, obj.y) == (5.0, 5.0)


def test_zero_duration_actions_complete_immediately() -> None:
    action = Action("a", ActionKind.UPDATE, "x", 2.0, 0.0, {"x": 0}, {"x": 1}, "easeInOutCubic")
    assert action_progress(action, 2.0) == (1.0, 1.0)
    ramp = Action("b", ActionKind.UPDATE, "x", 0.0, 4.0, {}, {}, "easeInQuad")
    assert action_progress(ramp, 2.0) == (0.5, 0.25)


def test_interpolate_property_categories() -> None:
    assert interpolate_property("x", 0.0, 10.0, 0.5, 0.25) == 2.5
    assert interpolate_property("color", "red", "blue", 0.49, 0.49) == "red"
    assert interpolate_property("color", "red", "blue", 0.5, 0.5) == "blue"
    assert interpolate_property("anchor", Vec2(0, 0), Vec2(1, 2), 0.5, 0.5) == Vec2(0.5, 1.0)
    points = interpolate_property("points", [Vec2(0, 0), Vec2(2, 2)], [Vec2(2, 0), Vec2(4, 4), Vec2(9, 9)], 0.5, 0.5)
    assert points == [Vec2(1.0, 0.0), Vec2(3.0, 3.0)]
    assert interpolate_property("font_family", None, "Inter", 0.0, 0.0) is None
    assert interpolate_property("font_family", None, "Inter", 0.01, 0.0) == "Inter"


def test_same_type_gradients_blend() -> None:
    start = Gradient(stops=[GradientStop(0.0, "#000000"), GradientStop(1.0, "#ffffff")])
    end = Gradient(stops=[GradientStop(0.2, "#ff0000"), GradientStop(0.8, "#0000ff")], x2=1.0)

    early = interpolate_property("color", start, end, 0.25, 0.25)
    assert [stop.offset for stop in early.stops] == pytest.approx([0.05, 0.95])
    assert [stop.color for stop in early.stops] == ["#000000", "#ffffff"]
    assert early.x2 == 0.25

    late = interpolate_property("color", start, end, 0.75, 0.75)
    assert [stop.color for stop in late.stops] == ["#ff0000", "#0000ff"]

    radial = Gradient(type="radial", stops=list(end.stops))
    assert interpolate_property("color", start, radial, 0.4, 0.4) is start


def test_frame_times_clamp_the_last_frame_to_duration() -> None:
    assert frame_times(2.5, 2) == [0.0, 0.5, 1.0, 1.5, 2.0, 2.5]
    assert frame_times(1.1, 2) == [0.0, 0.5, 1.0, 1.1]
    assert frame_times(0.0, 30) == [0.0]
    with pytest.raises(ValueError):
        frame_times(1.0, 0)


def test_sample_frames_respects_frame_budget() -> None:
    circle, timeline = _circle_scene()
    frames = sample_frames(timeline, 2)
    assert [t for t, _ in frames] == [0.0, 0.5, 1.0, 1.5, 2.0, 2.5]
    assert _by_id(frames[-1][1])[circle].x == 960.0
    with pytest.raises(ValueError):
        sample_frames(timeline, 60, max_frames=10)


def test_frame_budget_is_checked_before_sampling_times() -> None:
    with pytest.raises(ValueError, match="20000001 frames requested"):
        frame_times(200_000.0, 100.0, max_frames=1000)
    assert len(frame_times(1.1, 2, max_frames=4)) == 4
    with pytest.raises(ValueError):
        frame_times(1.1, 2, max_frames=3)


def test_infinite_duration_cannot_be_sampled() -> None:
    timeline = TimelineData(duration=math.inf, actions=[], objects={})
    with pytest.raises(ValueError):
        sample_frames(timeline, 30, max_frames=10)
    with pytest.raises(ValueError):
        frame_times(1e308, 480.0)


def test_editing_a_rendered_frame_leaves_the_timeline_untouched() -> None:
    scene = SceneBuilder()
    line = scene.add_line((0, 0), (100, 0))
    gradient = {"type": "linear", "stops": [{"offset": 0, "color": "#111"}, {"offset": 1, "color": "#eee"}]}
    scene.change_color(line, gradient, 1.0)
    scene.update(line, {"line_dash": [5, 5]})
    scene.glow(line, 1.0, color={"type": "radial", "stops": [{"offset": 0, "color": "#38bdf8"}]})
    timeline = scene.get_timeline()

    first = _by_id(render_at_time(timeline, 5.0))[line]
    first.color.stops.clear()
    first.line_dash.append(99.0)
    first.shadow_color.stops.clear()

    again = _by_id(render_at_time(timeline, 5.0))[line]
    assert [stop.color for stop in again.color.stops] == ["#111", "#eee"]
    assert again.line_dash == [5.0, 5.0]
    assert len(again.shadow_color.stops) == 1
