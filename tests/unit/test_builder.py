from __future__ import annotations

import math

import pytest

from services.config.engine_config import default_policy
from services.timeline.builder import SceneBuilder
from services.timeline.codec import timeline_from_dict, timeline_to_dict
from services.timeline.model import ActionKind, ShapeKind, TimelineCompileError, Vec2


def test_ids_are_minted_deterministically_per_namespace() -> None:
    scene = SceneBuilder()
    first = scene.add_circle(0, 0)
    second = scene.add_circle(10, 10)
    rect = scene.add_rect(0, 0)
    assert (first, second, rect) == ("circle#001", "circle#002", "rect#001")
    assert [action.id for action in scene.actions] == ["act#001", "act#002", "act#003"]
    assert all(action.kind == ActionKind.CREATE for action in scene.actions)


def test_creation_does_not_advance_the_clock() -> None:
    scene = SceneBuilder()
    scene.add_circle(100, 100, radius=50, color="red")
    assert scene.current_time == 0.0
    assert scene.initial_objects["circle#001"].radius == 50.0
    assert scene.initial_objects["circle#001"].color == "red"


def test_wait_and_move_stamp_actions_on_the_virtual_clock() -> None:
    scene = SceneBuilder()
    circle = scene.add_circle(100, 100, radius=50)
    scene.wait(0.5)
    scene.move_to(circle, {"x": 960, "y": 540}, 2.0)

    wait_action, move_action = scene.actions[1], scene.actions[2]
    assert wait_action.kind == ActionKind.WAIT
    assert wait_action.target_id is None
    assert move_action.kind == ActionKind.MOVE
    assert move_action.start_time == 0.5
    assert move_action.start_value == {"x": 100.0, "y": 100.0, "z": 0.0}
    assert move_action.end_value == {"x": 960.0, "y": 540.0, "z": 0.0}
    assert move_action.easing == "easeInOutCubic"
    assert scene.current_time == 2.5


def test_consecutive_verbs_chain_from_cached_state() -> None:
    scene = SceneBuilder()
    circle = scene.add_circle(0, 0)
    scene.move_to(circle, (100, 0), 1.0)
    scene.move_by(circle, (50, 25), 1.0)
    last = scene.actions[-1]
    assert last.start_value["x"] == 100.0
    assert last.end_value == {"x": 150.0, "y": 25.0, "z": 0.0}
    # the initial snapshot stays where the object was created
    assert scene.initial_objects[circle].x == 0.0


def test_play_together_forks_and_joins_the_clock() -> None:
    scene = SceneBuilder()
    a = scene.add_circle(0, 0)
    b = scene.add_circle(50, 50)
    scene.play_together(
        [
            lambda s: s.move_to(a, (10, 10), 2.0),
            lambda s: s.move_to(b, (20, 20), 5.0),
        ]
    )
    moves = [action for action in scene.actions if action.kind == ActionKind.MOVE]
    assert [action.start_time for action in moves] == [0.0, 0.0]
    assert scene.current_time == 5.0


def test_update_rejects_unknown_properties_and_bad_durations() -> None:
    scene = SceneBuilder()
    circle = scene.add_circle()
    with pytest.raises(TimelineCompileError) as excinfo:
        scene.update(circle, {"wobble": 3})
    assert excinfo.value.code == "unknown_property"
    assert excinfo.value.detail["keys"] == ["wobble"]

    with pytest.raises(TimelineCompileError) as excinfo:
        scene.update(circle, {"x": 3}, duration=-1)
    assert excinfo.value.code == "invalid_duration"

    with pytest.raises(TimelineCompileError) as excinfo:
        scene.wait(float("nan"))
    assert excinfo.value.code == "invalid_duration"


def test_verbs_on_unknown_object_fail_compilation() -> None:
    scene = SceneBuilder()
    with pytest.raises(TimelineCompileError) as excinfo:
        scene.move_to("circle#404", (1, 2))
    assert excinfo.value.code == "unknown_object_id"
    assert excinfo.value.detail == {"object_id": "circle#404", "operation": "move_to"}
    assert scene.actions == []


def test_unknown_style_keys_are_rejected_on_creation() -> None:
    scene = SceneBuilder()
    with pytest.raises(TimelineCompileError) as excinfo:
        scene.add_circle(0, 0, sparkle=True)
    assert excinfo.value.code == "unknown_property"


def test_opacity_outside_unit_range_is_rejected() -> None:
    scene = SceneBuilder()
    with pytest.raises(TimelineCompileError) as excinfo:
        scene.add_circle(0, 0, opacity=2)
    assert excinfo.value.code == "invalid_value"
    assert excinfo.value.detail["key"] == "opacity"

    line = scene.add_line((0, 0), (10, 0), opacity=0)
    with pytest.raises(TimelineCompileError) as excinfo:
        scene.update(line, {"opacity": -0.5}, 1.0)
    assert excinfo.value.code == "invalid_value"

    scene.update(line, {"opacity": 0.75}, 1.0)
    restored = timeline_from_dict(timeline_to_dict(scene.get_timeline()))
    assert restored.objects[line].opacity == 0
    assert restored.duration == 1.0


def test_rotate_direction_policies() -> None:
    scene = SceneBuilder()
    ccw = scene.add_square(0, 0)
    cw = scene.add_square(0, 0)
    short = scene.add_square(0, 0)

    scene.rotate(ccw, 90, 1.0, direction="ccw")
    assert math.isclose(scene.actions[-1].end_value, math.radians(90) - 2 * math.pi)

    scene.rotate(cw, -90, 1.0, direction="cw")
    assert scene.actions[-1].start_value == 0.0
    assert math.isclose(scene.actions[-1].end_value, math.radians(-90) + 2 * math.pi)

    scene.rotate(short, 270, 1.0)
    assert math.isclose(scene.actions[-1].end_value, math.radians(270))

    # target already lies counter-clockwise, so no extra turn
    scene.rotate(ccw, -300, 1.0, direction="ccw")
    assert math.isclose(scene.actions[-1].end_value, math.radians(-300))

    with pytest.raises(TimelineCompileError) as excinfo:
        scene.rotate(short, 10, 1.0, direction="sideways")
    assert excinfo.value.code == "invalid_direction"


def test_anchor_change_compensates_position() -> None:
    scene = SceneBuilder()
    rect = scene.add_rect(100, 100, width=200, height=100)
    scene.update(rect, {"anchor": (0, 0)})
    action = scene.actions[-1]
    assert action.end_value["anchor"] == Vec2(0.0, 0.0)
    assert action.end_value["x"] == 0.0
    assert action.end_value["y"] == 50.0

    circle = scene.add_circle(0, 0, radius=10, anchor=(0, 0))
    scene.update(circle, {"anchor": (1, 1)})
    assert scene.actions[-1].end_value["x"] == 20.0


def test_count_and_typewriter_use_linear_progress() -> None:
    scene = SceneBuilder()
    label = scene.add_text("12", 0, 0)
    scene.count(label, 99, 2.0)
    action = scene.actions[-1]
    assert action.kind == ActionKind.COUNT
    assert (action.start_value, action.end_value, action.easing) == (12.0, 99.0, "linear")
    assert scene.state_of(label).text == "99"

    title = scene.add_text("HELLO", 0, 0, opacity=0)
    scene.typewriter(title, 1.0)
    action = scene.actions[-1]
    assert (action.kind, action.end_value, action.easing) == (ActionKind.TYPEWRITER, "HELLO", "linear")
    assert scene.state_of(title).opacity == 1.0


def test_procedural_effects_capture_base_values() -> None:
    scene = SceneBuilder()
    circle = scene.add_circle(30, 0)
    scene.wiggle(circle, 1.0, strength=15)
    scene.shake(circle, 1.0)
    scene.pulse(circle, 1.0)
    wiggle, shake, pulse = scene.actions[-3:]
    assert math.isclose(wiggle.end_value, math.radians(15))
    assert (shake.start_value, shake.end_value) == (30.0, 10.0)
    assert (pulse.start_value, pulse.end_value) == (1.0, 1.2)
    assert scene.current_time == 3.0


def test_group_reparents_members_around_their_centroid() -> None:
    scene = SceneBuilder()
    a = scene.add_circle(100, 100)
    b = scene.add_circle(300, 200)
    group_id = scene.group([a, b])

    group = scene.initial_objects[group_id]
    assert group.kind == ShapeKind.GROUP
    assert (group.x, group.y) == (200.0, 150.0)
    assert scene.initial_objects[a].parent_id == group_id
    assert (scene.initial_objects[a].x, scene.initial_objects[a].y) == (-100.0, -50.0)
    assert (scene.state_of(b).x, scene.state_of(b).y) == (100.0, 50.0)


def test_group_without_members_creates_nothing() -> None:
    scene = SceneBuilder()
    assert scene.group([]) == ""
    assert scene.group(["circle#999"]) == ""
    assert scene.initial_objects == {}


def test_ungroup_restores_absolute_positions() -> None:
    scene = SceneBuilder()
    a = scene.add_circle(100, 100)
    b = scene.add_circle(300, 200)
    group_id = scene.group([a, b])
    scene.ungroup(group_id)

    for object_id, expected in ((a, (100.0, 100.0)), (b, (300.0, 200.0))):
        assert scene.initial_objects[object_id].parent_id is None
        assert (scene.initial_objects[object_id].x, scene.initial_objects[object_id].y) == expected
        assert (scene.state_of(object_id).x, scene.state_of(object_id).y) == expected

    with pytest.raises(TimelineCompileError):
        scene.ungroup("group#404")


def test_ungroup_of_plain_object_is_ignored() -> None:
    scene = SceneBuilder()
    circle = scene.add_circle(5, 5)
    scene.ungroup(circle)
    assert scene.state_of(circle).x == 5.0


def test_add_scene_prefixes_ids_and_shifts_actions() -> None:
    scene = SceneBuilder()
    scene.wait(1.0)

    def inner(sub: SceneBuilder) -> str:
        dot = sub.add_circle(0, 0, radius=10)
        sub.move_to(dot, (50, 0), 1.0, easing="linear")
        return dot

    handle = scene.add_scene(inner, x=500, y=300)
    assert handle.id == "group#001"
    assert handle.result == "group#001/circle#001"
    assert scene.current_time == 1.0

    imported = scene.initial_objects["group#001/circle#001"]
    assert imported.parent_id == "group#001"
    move = [action for action in scene.actions if action.kind == ActionKind.MOVE][0]
    assert move.start_time == 1.0
    assert move.target_id == "group#001/circle#001"
    assert scene.state_of("group#001/circle#001").x == 50.0
    assert len({action.id for action in scene.actions}) == len(scene.actions)
    assert scene.get_timeline().duration == 2.0


def test_next_page_fades_every_visible_object_together() -> None:
    scene = SceneBuilder()
    scene.add_circle()
    hidden = scene.add_circle(opacity=0)
    scene.add_text("hi")
    scene.next_page(0.5)
    fades = [action for action in scene.actions if action.kind == ActionKind.UPDATE]
    assert len(fades) == 2
    assert hidden not in {action.target_id for action in fades}
    assert all(action.end_value == {"opacity": 0.0} for action in fades)
    assert scene.current_time == 0.5


def test_budget_caps_abort_compilation() -> None:
    scene = SceneBuilder(default_policy({"MOTIONCORE_MAX_OBJECTS": "2"}))
    scene.add_circle()
    scene.add_circle()
    with pytest.raises(TimelineCompileError) as excinfo:
        scene.add_circle()
    assert excinfo.value.code == "budget_exceeded"
    assert excinfo.value.detail["scope"] == "objects"


def test_get_timeline_is_a_detached_snapshot() -> None:
    scene = SceneBuilder()
    circle = scene.add_circle(0, 0)
    scene.move_to(circle, (10, 10), 1.5)
    timeline = scene.get_timeline()
    assert timeline.duration == 1.5
    scene.initial_objects[circle].x = 999.0
    assert timeline.objects[circle].x == 0.0


def test_line_is_built_from_two_points() -> None:
    scene = SceneBuilder()
    line = scene.add_line((0, 0), (0, 100), thickness=4)
    obj = scene.state_of(line)
    assert (obj.x, obj.y, obj.width, obj.height) == (0.0, 50.0, 100.0, 4.0)
    assert math.isclose(obj.rotation, math.pi / 2)
    dotted = scene.state_of(scene.add_dotted_line((0, 0), (10, 0)))
    assert dotted.line_dash == [20.0, 20.0]
