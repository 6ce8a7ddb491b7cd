from __future__ import annotations

import logging
from datetime import datetime, timezone
from time import perf_counter
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from pydantic import BaseModel, Field

from services.config.engine_config import default_policy
from services.protocol import ProtocolValidationError
from services.timeline import (
    ActionKind,
    ShapeKind,
    TimelineCompileError,
    TimelineData,
    compile_recipe,
    list_easings,
    list_recipes,
    objects_to_dicts,
    render_at_time,
    sample_frames,
    timeline_from_dict,
    timeline_to_dict,
)
from services.versioning import project_revision, project_version

logger = logging.getLogger("motioncore.player")

REQUEST_COUNTER = Counter(
    "motioncore_player_http_requests_total",
    "Total player HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "motioncore_player_http_latency_seconds",
    "Player request latency",
    ["method", "path"],
    buckets=(0.005, 0.01, 0.03, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)
RENDER_LATENCY = Histogram(
    "motioncore_player_render_latency_seconds",
    "Time spent evaluating a single frame",
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25),
)
FRAMES_RENDERED = Counter(
    "motioncore_player_frames_rendered_total",
    "Frames produced by render and frame-sampling requests",
)
COMPILE_ERRORS = Counter(
    "motioncore_player_compile_errors_total",
    "Rejected timelines and recipe compilations",
    ["code"],
)


class RenderRequest(BaseModel):
    timeline: dict[str, Any]
    t: float = 0.0


class FramesRequest(BaseModel):
    timeline: dict[str, Any]
    fps: float = Field(default=30.0, gt=0)


class RecipeCompileRequest(BaseModel):
    params: dict[str, Any] = Field(default_factory=dict)


app = FastAPI(title="MotionCore Player", version=project_version())
engine_policy = default_policy()


@app.middleware("http")
async def metrics_middleware(request, call_next):  # type: ignore[override]
    started = perf_counter()
    response = await call_next(request)
    duration_s = perf_counter() - started
    REQUEST_COUNTER.labels(method=request.method, path=request.url.path, status=str(response.status_code)).inc()
    REQUEST_LATENCY.labels(method=request.method, path=request.url.path).observe(duration_s)
    return response


def _compile_error(exc: TimelineCompileError) -> HTTPException:
    COMPILE_ERRORS.labels(code=exc.code).inc()
    return HTTPException(
        status_code=422,
        detail={"error": exc.code, "message": exc.message, "detail": exc.detail},
    )


def _decode_timeline(payload: dict[str, Any]) -> TimelineData:
    try:
        return timeline_from_dict(payload)
    except ProtocolValidationError as exc:
        COMPILE_ERRORS.labels(code="schema_validation_failed").inc()
        raise HTTPException(
            status_code=422,
            detail={"error": "schema_validation_failed", "schema": exc.schema_path, "issues": exc.issues},
        ) from exc
    except TimelineCompileError as exc:
        raise _compile_error(exc) from exc


@app.get("/health")
def health() -> dict:
    return {
        "status": "ok",
        "service": "player",
        "version": project_version(),
        "revision": project_revision(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/metrics")
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/v1/capabilities")
def capabilities() -> dict[str, Any]:
    return {
        "easings": list_easings(),
        "shape_kinds": [kind.value for kind in ShapeKind],
        "action_kinds": [kind.value for kind in ActionKind],
        "canvas": {"width": engine_policy.canvas_width, "height": engine_policy.canvas_height},
        "rotation_mode": engine_policy.rotation_mode,
        "limits": {
            "max_objects": engine_policy.max_objects,
            "max_actions": engine_policy.max_actions,
            "max_frame_rate": engine_policy.max_frame_rate,
            "max_frames": engine_policy.max_frames,
        },
        "recipes": list_recipes(),
    }


@app.post("/v1/render")
def render(req: RenderRequest) -> dict[str, Any]:
    timeline = _decode_timeline(req.timeline)
    started = perf_counter()
    objects = render_at_time(timeline, req.t, rotation_mode=engine_policy.rotation_mode)
    RENDER_LATENCY.observe(perf_counter() - started)
    FRAMES_RENDERED.inc()
    return {"t": req.t, "duration": timeline.duration, "objects": objects_to_dicts(objects)}


@app.post("/v1/frames")
def frames(req: FramesRequest) -> dict[str, Any]:
    if req.fps > engine_policy.max_frame_rate:
        raise HTTPException(
            status_code=422,
            detail={"error": "frame_rate_exceeded", "fps": req.fps, "max_frame_rate": engine_policy.max_frame_rate},
        )
    timeline = _decode_timeline(req.timeline)
    try:
        sampled = sample_frames(
            timeline,
            req.fps,
            rotation_mode=engine_policy.rotation_mode,
            max_frames=engine_policy.max_frames,
        )
    except ValueError as exc:
        logger.warning("frame sampling rejected: %s", exc)
        raise HTTPException(
            status_code=422,
            detail={"error": "frame_budget_exceeded", "message": str(exc), "max_frames": engine_policy.max_frames},
        ) from exc
    FRAMES_RENDERED.inc(len(sampled))
    return {
        "fps": req.fps,
        "duration": timeline.duration,
        "frame_count": len(sampled),
        "frames": [{"t": t, "objects": objects_to_dicts(objects)} for t, objects in sampled],
    }


@app.post("/v1/recipes/{recipe_id}/compile")
def compile_recipe_endpoint(recipe_id: str, req: RecipeCompileRequest) -> dict[str, Any]:
    try:
        timeline = compile_recipe(recipe_id, req.params, engine_policy)
    except TimelineCompileError as exc:
        raise _compile_error(exc) from exc
    logger.info("compiled recipe %s: %d objects, %d actions", recipe_id, len(timeline.objects), len(timeline.actions))
    return {"recipe_id": recipe_id, "timeline": timeline_to_dict(timeline)}
