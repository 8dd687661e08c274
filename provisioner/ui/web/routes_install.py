"""
Solution install routes — catalog, live install progress, health.

Blueprint: install_bp
Prefix: /api

Endpoints:
    GET /solutions                                  — catalog listing
    GET /solutions/install/progress?solutionType=   — install with SSE progress
    GET /solutions/install/health?solutionType=     — installing / running / not_running

Wire format of the progress stream (one event per message)::

    id: 3
    data: {"type":"state-change","message":"Cloning ...","state":"cloning","seq":3,...}

The server closes the stream after the ``succeeded`` or ``error`` event.
"""

from __future__ import annotations

import json

from flask import Blueprint, Response, current_app, jsonify, request, stream_with_context

from provisioner.core.services.progress import stream_install

install_bp = Blueprint("install", __name__)


def _solution_id() -> str:
    return request.args.get("solutionType", "").strip()


@install_bp.route("/solutions")
def list_solutions():  # type: ignore[no-untyped-def]
    """Installable solutions."""
    registry = current_app.config["REGISTRY"]
    return jsonify({"solutions": [s.to_dict() for s in registry]})


@install_bp.route("/solutions/install/progress")
def install_progress():  # type: ignore[no-untyped-def]
    """Install a solution, streaming lifecycle events (SSE)."""
    installer = current_app.config["INSTALLER"]
    solution_id = _solution_id()

    def generate():  # type: ignore[no-untyped-def]
        for event in stream_install(solution_id, installer):
            yield (
                f"id: {event.seq}\n"
                f"data: {json.dumps(event.to_wire(), default=str)}\n\n"
            )

    return Response(
        stream_with_context(generate()),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",      # disable nginx/proxy buffering
            "Connection": "keep-alive",
        },
    )


@install_bp.route("/solutions/install/health")
def install_health():  # type: ignore[no-untyped-def]
    """Point-in-time health of a solution."""
    probe = current_app.config["HEALTH_PROBE"]
    report = probe.probe(_solution_id())
    if report.status == "error":
        return jsonify(report.to_dict()), 400
    return jsonify(report.to_dict())
