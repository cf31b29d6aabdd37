"""Flask blueprint implementing TT APIs."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
import uuid
from typing import Any, Dict, List, Optional, Tuple

from flask import Blueprint, Response, jsonify, request

from .config import SUPPORTED_LANGUAGES
from .export import to_csv, to_xlsx
from .models import MODE_NAMES, Chunk, JobProgress, Mode, OutcomeEntry, TextItem, parse_mode
from .pipeline import PipelineOrchestrator
from .prompt import detect_text_tone, detect_text_type, normalize_target, normalize_tone
from .storage import (
    cleanup_job,
    create_job,
    get_chunk_results,
    get_job,
    set_chunk_result,
    thread_pool,
    update_job,
)

logger = logging.getLogger(__name__)

tt_bp = Blueprint("tt", __name__, url_prefix="/api/tt")

FINISHED_STATUSES = {"DONE", "CANCELLED", "ERROR"}


def build_orchestrator() -> PipelineOrchestrator:
    return PipelineOrchestrator.from_env()


def _parse_items(raw_items: Any) -> Tuple[Optional[List[TextItem]], Optional[str]]:
    if not isinstance(raw_items, list):
        return None, "items must be a list"
    items: List[TextItem] = []
    seen = set()
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict) or "id" not in raw or not isinstance(raw.get("content"), str):
            return None, f"items[{index}] must have an id and a string content"
        item_id = str(raw["id"])
        if item_id in seen:
            return None, f"Duplicate item id: {item_id}"
        seen.add(item_id)
        items.append(TextItem(id=item_id, content=raw["content"]))
    return items, None


def _string_field_error(payload: Dict[str, Any], fields: Tuple[str, ...]) -> Optional[str]:
    for field in fields:
        value = payload.get(field)
        if value is not None and not isinstance(value, str):
            return f"{field} must be a string"
    return None


def _parse_job_mode(payload: Dict[str, Any]) -> Mode:
    error = _string_field_error(payload, ("target_language", "tone", "target"))
    if error:
        raise ValueError(error)
    return parse_mode(
        payload.get("mode", ""),
        target_language=payload.get("target_language"),
        tone=normalize_tone(payload.get("tone")),
        target=normalize_target(payload.get("target")),
    )


def run_job(job_id: str, items: List[TextItem], mode: Mode, cancel_event: threading.Event) -> None:
    def on_progress(progress: JobProgress) -> None:
        update_job(job_id, {"status": "PROCESSING", "progress": progress.to_dict()})

    def on_chunk(chunk: Chunk, entries: Dict[str, OutcomeEntry]) -> None:
        set_chunk_result(
            job_id,
            chunk.chunk_id,
            {
                "chunk_id": chunk.chunk_id,
                "index": chunk.index,
                "degraded": any(entry.degraded for entry in entries.values()),
                "entries": [{"id": item_id, **entry.to_dict()} for item_id, entry in entries.items()],
            },
        )

    try:
        orchestrator = build_orchestrator()
        outcome = asyncio.run(
            orchestrator.run(
                items,
                mode,
                on_progress=on_progress,
                on_chunk=on_chunk,
                should_cancel=cancel_event.is_set,
            )
        )
        update_job(
            job_id,
            {
                "status": "CANCELLED" if outcome.cancelled else "DONE",
                "outcome": outcome.to_dict(),
                "completion_time": time.time(),
            },
        )
    except Exception as exc:
        logger.exception("Job %s failed", job_id)
        update_job(job_id, {"status": "ERROR", "error": str(exc)})


@tt_bp.route("/health")
def health():
    return jsonify({"status": "ok"})


@tt_bp.route("/languages")
def languages():
    return jsonify({"languages": SUPPORTED_LANGUAGES})


@tt_bp.route("/jobs", methods=["POST"])
def create_tt_job():
    payload = request.get_json(silent=True) or {}

    items, error = _parse_items(payload.get("items"))
    if error:
        return jsonify({"error": error}), 400
    if payload.get("mode") not in MODE_NAMES:
        return jsonify({"error": f"mode must be one of {', '.join(MODE_NAMES)}"}), 400
    try:
        mode = _parse_job_mode(payload)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    job_id = str(uuid.uuid4())
    create_job(
        job_id,
        {
            "job_id": job_id,
            "status": "QUEUED",
            "mode": mode.name,
            "target_language": payload.get("target_language"),
            "items_total": len(items),
            "progress": None,
            "outcome": None,
            "error": None,
        },
    )
    thread_pool.submit_job(job_id, run_job, job_id, items, mode)

    return jsonify({"success": True, "job_id": job_id})


@tt_bp.route("/jobs/<job_id>")
def get_job_status(job_id: str):
    job = get_job(job_id)
    if not job:
        return jsonify({"error": "Job not found"}), 404
    return jsonify({"job": job, "chunks": get_chunk_results(job_id)})


@tt_bp.route("/jobs/<job_id>/cancel", methods=["POST"])
def cancel_job(job_id: str):
    job = get_job(job_id)
    if not job:
        return jsonify({"error": "Job not found"}), 404
    if job.get("status") in FINISHED_STATUSES:
        return jsonify({"error": "Job already finished"}), 400
    thread_pool.cancel_job(job_id)
    return jsonify({"success": True})


@tt_bp.route("/jobs/<job_id>/result")
def get_job_result(job_id: str):
    job = get_job(job_id)
    if not job:
        return jsonify({"error": "Job not found"}), 404
    outcome = job.get("outcome")
    if not outcome:
        return jsonify({"error": "Job has not finished", "status": job.get("status")}), 409

    entries = outcome.get("entries", [])
    fmt = request.args.get("format", "json").lower()
    if fmt == "csv":
        return Response(
            to_csv(entries),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename=tt_{job_id[:8]}.csv"},
        )
    if fmt == "xlsx":
        return Response(
            to_xlsx(entries),
            mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={"Content-Disposition": f"attachment; filename=tt_{job_id[:8]}.xlsx"},
        )
    return jsonify(outcome)


@tt_bp.route("/improve", methods=["POST"])
def improve_text():
    payload = request.get_json(silent=True) or {}
    text = payload.get("text")
    if not isinstance(text, str) or not text.strip():
        return jsonify({"error": "text is required"}), 400
    error = _string_field_error(payload, ("tone", "target"))
    if error:
        return jsonify({"error": error}), 400

    tone = normalize_tone(payload.get("tone")) or detect_text_tone(text)
    target = normalize_target(payload.get("target")) or detect_text_type(text)

    orchestrator = build_orchestrator()
    improved = asyncio.run(orchestrator.improve_one(text, tone=tone, target=target))
    return jsonify({"original": text, "improved": improved, "tone": tone, "target": target})


@tt_bp.route("/jobs/<job_id>", methods=["DELETE"])
def delete_job(job_id: str):
    job = get_job(job_id)
    if not job:
        return jsonify({"error": "Job not found"}), 404
    if job.get("status") not in FINISHED_STATUSES:
        thread_pool.cancel_job(job_id)
        return jsonify({"error": "Job is still running; cancellation requested"}), 409
    cleanup_job(job_id)
    return jsonify({"success": True})
