"""Health, section catalog, and client configuration routes."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from models import BATCHES_PER_TOPIC, GROUP_CAPACITY, PROJECT_SECTIONS, TOPIC_COUNT

bp = Blueprint("core", __name__)


@bp.route("/api/health")
def health():
    return jsonify({"status": "ok", "store": current_app.config.get("STORE_BACKEND", "sqlite")})


@bp.route("/api/sections")
def sections():
    return jsonify({"sections": [{"id": s.id, "label": s.label} for s in PROJECT_SECTIONS]})


@bp.route("/api/client-config")
def client_config():
    """Grid dimensions and refresh cadence for clients.

    Data shown by a polling client may lag by up to its poll interval.
    """
    return jsonify({
        "poll_intervals": current_app.config.get("POLL_INTERVALS", {}),
        "topics": TOPIC_COUNT,
        "batches_per_topic": BATCHES_PER_TOPIC,
        "group_capacity": GROUP_CAPACITY,
    })
