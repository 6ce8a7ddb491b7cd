#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

import httpx

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from services.config.engine_config import default_policy
from services.protocol import ProtocolValidationError
from services.timeline import (
    TimelineCompileError,
    compile_recipe,
    list_easings,
    list_recipes,
    objects_to_dicts,
    render_at_time,
    sample_frames,
    timeline_from_dict,
    timeline_to_dict,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="motioncore", description="Compile, validate and sample animation timelines.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log engine warnings and debug output.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("easings", help="List the registered easing names.")
    sub.add_parser("recipes", help="List the prefabricated scenes.")

    validate = sub.add_parser("validate", help="Validate an exported timeline JSON file.")
    validate.add_argument("file", type=Path)

    render = sub.add_parser("render", help="Print world-space objects at one instant.")
    render.add_argument("file", type=Path)
    render.add_argument("--t", type=float, default=0.0, help="Time in seconds.")
    render.add_argument("--base-url", default="", help="Render through a running player service instead of in-process.")

    frames = sub.add_parser("frames", help="Sample the timeline at a fixed frame rate.")
    frames.add_argument("file", type=Path)
    frames.add_argument("--fps", type=float, default=30.0)
    frames.add_argument("--base-url", default="", help="Sample through a running player service instead of in-process.")

    recipe = sub.add_parser("recipe", help="Compile a prefabricated scene into timeline JSON.")
    recipe.add_argument("recipe_id")
    recipe.add_argument("--params", default="{}", help="JSON object of recipe parameters.")
    recipe.add_argument("--out", type=Path, default=None, help="Write the timeline here instead of stdout.")
    return parser


def _read_payload(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))


def _post(base_url: str, route: str, payload: dict[str, Any]) -> tuple[int, dict[str, Any]]:
    try:
        response = httpx.post(f"{base_url.rstrip('/')}{route}", json=payload, timeout=60)
    except httpx.HTTPError as exc:
        print(f"request failed: {exc}", file=sys.stderr)
        return 2, {}
    body = response.json() if response.content else {}
    if response.status_code != 200:
        print(f"player returned {response.status_code}: {json.dumps(body)}", file=sys.stderr)
        return 2, body
    return 0, body


def _cmd_validate(args: argparse.Namespace) -> int:
    timeline = timeline_from_dict(_read_payload(args.file))
    print(
        json.dumps(
            {
                "ok": True,
                "duration": timeline.duration,
                "objects": len(timeline.objects),
                "actions": len(timeline.actions),
            },
            indent=2,
        )
    )
    return 0


def _cmd_render(args: argparse.Namespace) -> int:
    payload = _read_payload(args.file)
    if args.base_url:
        code, body = _post(args.base_url, "/v1/render", {"timeline": payload, "t": args.t})
        if code == 0:
            print(json.dumps(body, indent=2))
        return code
    timeline = timeline_from_dict(payload)
    objects = render_at_time(timeline, args.t)
    print(json.dumps({"t": args.t, "duration": timeline.duration, "objects": objects_to_dicts(objects)}, indent=2))
    return 0


def _cmd_frames(args: argparse.Namespace) -> int:
    payload = _read_payload(args.file)
    if args.base_url:
        code, body = _post(args.base_url, "/v1/frames", {"timeline": payload, "fps": args.fps})
        if code == 0:
            print(json.dumps(body, indent=2))
        return code
    policy = default_policy()
    if args.fps > policy.max_frame_rate:
        print(f"fps {args.fps} exceeds the configured limit of {policy.max_frame_rate}", file=sys.stderr)
        return 2
    timeline = timeline_from_dict(payload)
    sampled = sample_frames(timeline, args.fps, max_frames=policy.max_frames)
    frames = [{"t": t, "objects": objects_to_dicts(objects)} for t, objects in sampled]
    print(json.dumps({"fps": args.fps, "frame_count": len(frames), "frames": frames}, indent=2))
    return 0


def _cmd_recipe(args: argparse.Namespace) -> int:
    params = json.loads(args.params)
    if not isinstance(params, dict):
        print("--params must be a JSON object", file=sys.stderr)
        return 2
    timeline = compile_recipe(args.recipe_id, params)
    text = json.dumps(timeline_to_dict(timeline), indent=2)
    if args.out is None:
        print(text)
    else:
        args.out.write_text(text + "\n", encoding="utf-8")
        print(f"wrote {args.out} ({len(timeline.objects)} objects, {len(timeline.actions)} actions)")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "easings":
        print("\n".join(list_easings()))
        return 0
    if args.command == "recipes":
        print(json.dumps(list_recipes(), indent=2))
        return 0

    handlers = {
        "validate": _cmd_validate,
        "render": _cmd_render,
        "frames": _cmd_frames,
        "recipe": _cmd_recipe,
    }
    try:
        return handlers[args.command](args)
    except ProtocolValidationError as exc:
        print(str(exc), file=sys.stderr)
        for issue in exc.issues:
            print(f"  {issue['path']}: {issue['message']}", file=sys.stderr)
        return 1
    except TimelineCompileError as exc:
        print(f"{exc.code}: {exc.message}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
