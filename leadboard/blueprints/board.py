"""Board blueprint — /board/api/*

JSON API for the lead pipeline board. Each request builds a SyncEngine over
the configured gateway, loads the board, runs one intent and returns the
resolved view. API routes require a Bearer token matching BOARD_API_KEY.
Without a key the API is open in debug and testing and returns 503
everywhere else.

Route Map:
  GET    /board/api/board                        — Resolved board (?sort=<mode>)
  GET    /board/api/leads                        — List leads (?q= to search)
  POST   /board/api/leads                        — Create lead
  GET    /board/api/leads/<id>                   — Get lead
  PUT    /board/api/leads/<id>                   — Update lead properties
  DELETE /board/api/leads/<id>                   — Delete lead
  POST   /board/api/leads/<id>/move              — Move lead to a stage
  GET    /board/api/leads/<id>/history           — Move history
  GET    /board/api/leads/<id>/property-history  — Property change history
  POST   /board/api/stages                       — Create stage
  PUT    /board/api/stages/<id>                  — Update stage
  DELETE /board/api/stages/<id>                  — Remove stage (leads move to first stage)
  PUT    /board/api/stages/reorder               — Reorder stages
"""

import hmac
import logging
from functools import wraps

from flask import Blueprint, current_app, g, jsonify, request

from leadboard.engine.resolver import order_leads
from leadboard.engine.sync import SyncEngine
from leadboard.errors import NotFoundError, PreconditionError, RemoteStoreError
from leadboard.extensions import limiter
from leadboard.gateway import build_gateway
from leadboard.services.lead_service import clean_lead_data, sanitize

board_bp = Blueprint("board", __name__, url_prefix="/board")

logger = logging.getLogger(__name__)


def _board_api_auth(f):
    """Require a Bearer token matching BOARD_API_KEY.

    Without a configured key the API is open under debug or testing and
    closed everywhere else.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        expected = current_app.config.get("BOARD_API_KEY") or ""
        if not expected:
            if current_app.debug or current_app.testing:
                return f(*args, **kwargs)
            logger.error("BOARD_API_KEY is not set; refusing board API request")
            return jsonify({"error": "Board API is not configured"}), 503

        auth_header = request.headers.get("Authorization", "")
        token = auth_header[7:] if auth_header.startswith("Bearer ") else ""
        if token and hmac.compare_digest(token, expected):
            return f(*args, **kwargs)
        return jsonify({"error": "Invalid API key"}), 401
    return decorated


def _gateway():
    if "gateway" not in g:
        g.gateway = build_gateway(current_app.config)
    return g.gateway


def _engine():
    """A SyncEngine with the board loaded, one per request."""
    if "engine" not in g:
        engine = SyncEngine(_gateway())
        engine.load()
        g.engine = engine
    return g.engine


def _json_body():
    """The request body as a dict; a missing body counts as empty."""
    data = request.get_json(force=True) or {}
    if not isinstance(data, dict):
        raise PreconditionError("Request body must be a JSON object.")
    return data


def _view_json(view):
    return [stage.to_dict() for stage in view]


# ─── Error mapping ───────────────────────────────────────────────

@board_bp.errorhandler(NotFoundError)
def _not_found(e):
    return jsonify({"error": str(e)}), 404


@board_bp.errorhandler(PreconditionError)
def _bad_request(e):
    return jsonify({"error": str(e)}), 400


@board_bp.errorhandler(RemoteStoreError)
def _store_failed(e):
    logger.warning(f"Remote store error on {request.path}: {e}")
    return jsonify({"error": str(e)}), 502


# ─── Board API ───────────────────────────────────────────────────

@board_bp.route("/api/board")
@_board_api_auth
def api_board():
    engine = _engine()
    try:
        view = order_leads(engine.view, request.args.get("sort", "none"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(_view_json(view))


# ─── Lead API ────────────────────────────────────────────────────

@board_bp.route("/api/leads")
@_board_api_auth
def api_list_leads():
    query = (request.args.get("q") or "").strip()
    gateway = _gateway()
    leads = gateway.search_leads(query) if query else gateway.list_leads()
    return jsonify([lead.to_dict() for lead in leads])


@board_bp.route("/api/leads", methods=["POST"])
@limiter.limit("30 per minute", methods=["POST"])
@_board_api_auth
def api_create_lead():
    data = clean_lead_data(_json_body())
    lead = _engine().create_lead(data)
    return jsonify(lead.to_dict()), 201


@board_bp.route("/api/leads/<int:lead_id>")
@_board_api_auth
def api_get_lead(lead_id):
    lead = _gateway().get_lead(lead_id)
    if lead is None:
        return jsonify({"error": "Lead not found"}), 404
    return jsonify(lead.to_dict())


@board_bp.route("/api/leads/<int:lead_id>", methods=["PUT"])
@_board_api_auth
def api_update_lead(lead_id):
    data = _json_body()
    patch = clean_lead_data(data, partial=True)
    engine = _engine()
    engine.update_lead(lead_id, patch, notes=sanitize(data.get("change_notes")) or "")
    return jsonify(engine.find_lead(lead_id).to_dict())


@board_bp.route("/api/leads/<int:lead_id>", methods=["DELETE"])
@_board_api_auth
def api_delete_lead(lead_id):
    _engine().delete_lead(lead_id)
    return jsonify({"success": True})


@board_bp.route("/api/leads/<int:lead_id>/move", methods=["POST"])
@_board_api_auth
def api_move_lead(lead_id):
    data = _json_body()
    stage_id = data.get("stage_id")
    if not stage_id:
        return jsonify({"error": "stage_id is required"}), 400
    view = _engine().move_lead(lead_id, stage_id, sanitize(data.get("notes")) or "")
    return jsonify(_view_json(view))


@board_bp.route("/api/leads/<int:lead_id>/history")
@_board_api_auth
def api_lead_history(lead_id):
    gateway = _gateway()
    if gateway.get_lead(lead_id) is None:
        return jsonify({"error": "Lead not found"}), 404
    return jsonify([entry.to_dict() for entry in gateway.list_history(lead_id)])


@board_bp.route("/api/leads/<int:lead_id>/property-history")
@_board_api_auth
def api_lead_property_history(lead_id):
    gateway = _gateway()
    if gateway.get_lead(lead_id) is None:
        return jsonify({"error": "Lead not found"}), 404
    return jsonify([c.to_dict() for c in gateway.list_property_changes(lead_id)])


# ─── Stage API ───────────────────────────────────────────────────

@board_bp.route("/api/stages", methods=["POST"])
@_board_api_auth
def api_create_stage():
    data = _json_body()
    stage = _engine().add_stage(sanitize(data.get("title")), data.get("color", "blue"))
    return jsonify(stage.to_dict()), 201


@board_bp.route("/api/stages/reorder", methods=["PUT"])
@_board_api_auth
def api_reorder_stages():
    data = _json_body()
    stage_ids = data.get("stage_ids")
    if not isinstance(stage_ids, list):
        return jsonify({"error": "stage_ids must be a list"}), 400
    view = _engine().reorder_stages(stage_ids)
    return jsonify(_view_json(view))


@board_bp.route("/api/stages/<stage_id>", methods=["PUT"])
@_board_api_auth
def api_update_stage(stage_id):
    data = _json_body()
    title = sanitize(data["title"]) if "title" in data else None
    stage = _engine().update_stage(stage_id, title=title, color=data.get("color"))
    return jsonify(stage.to_dict())


@board_bp.route("/api/stages/<stage_id>", methods=["DELETE"])
@_board_api_auth
def api_delete_stage(stage_id):
    view = _engine().remove_stage(stage_id)
    return jsonify(_view_json(view))
