"""Flask application exposing draw, import and export over JSON."""

from __future__ import annotations

import logging
from typing import Optional

from flask import Blueprint, Flask, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .config import Settings
from .db.engine import get_sessionmaker, make_engine
from .draw.errors import (
    CONFLICT,
    PERSISTENCE,
    VALIDATION,
    InvalidRequest,
    LotteryError,
    PersistFailed,
)
from .draw.locks import CategoryLockRegistry
from .schemas import (
    ExportRequest,
    ImportRequest,
    category_to_dict,
    draw_result_to_dict,
    export_to_dict,
    import_result_to_dict,
    parse_draw_request,
    record_to_dict,
)
from .workflows import (
    active_participant_counts,
    export_csv,
    import_participants,
    list_categories,
    list_draw_history,
    run_lottery_draw,
)

logger = logging.getLogger(__name__)

api_bp = Blueprint("lottery", __name__)

STATUS_BY_KIND = {
    VALIDATION: 400,
    CONFLICT: 409,
    PERSISTENCE: 503,
}


def _json_body():
    payload = request.get_json(silent=True)
    if payload is None:
        raise InvalidRequest("Request body must be valid JSON")
    return payload


def _sessions() -> sessionmaker:
    return current_app.extensions["luckydraw.sessions"]


@api_bp.route("/lottery-draw", methods=["POST"])
def lottery_draw():
    draw_request = parse_draw_request(_json_body())
    result = run_lottery_draw(
        _sessions(),
        draw_request,
        locks=current_app.extensions["luckydraw.locks"],
    )
    return jsonify(draw_result_to_dict(result))


@api_bp.route("/import-participants", methods=["POST"])
def import_participants_view():
    import_request = ImportRequest.from_payload(_json_body())
    try:
        with _sessions().begin() as session:
            outcome = import_participants(session, import_request)
            body = import_result_to_dict(outcome.participants, outcome.total, outcome.errors)
    except SQLAlchemyError as exc:
        logger.error(f"Committing imported participants failed: {exc}")
        raise PersistFailed(f"Could not save imported participants: {exc}") from exc
    return jsonify(body)


@api_bp.route("/export", methods=["POST"])
def export_view():
    export_request = ExportRequest.from_payload(_json_body())
    with _sessions()() as session:
        filename, content = export_csv(session, export_request)
    return jsonify(export_to_dict(filename, content))


@api_bp.route("/categories")
def categories_view():
    active_only = request.args.get("active") in ("1", "true")
    with _sessions()() as session:
        counts = active_participant_counts(session)
        body = [
            category_to_dict(category, counts.get(category.id, 0))
            for category in list_categories(session, active_only=active_only)
        ]
    return jsonify({"categories": body})


@api_bp.route("/lottery-records")
def lottery_records_view():
    category_id = request.args.get("categoryId") or None
    with _sessions()() as session:
        records = list_draw_history(session, category_id)
        body = [record_to_dict(record) for record in records]
    return jsonify({"lotteryRecords": body})


@api_bp.route("/health")
def health_check():
    return jsonify({"status": "ok"})


@api_bp.errorhandler(LotteryError)
def handle_lottery_error(error: LotteryError):
    status = STATUS_BY_KIND.get(error.kind, 422)
    if status >= 500:
        logger.error(f"{error.code}: {error.message}")
    else:
        logger.info(f"Request refused with {error.code}: {error.message}")
    return jsonify({"error": error.to_dict()}), status


def create_app(
    settings: Optional[Settings] = None,
    session_factory: Optional[sessionmaker] = None,
) -> Flask:
    """Create the Flask application.

    Parameters
    ----------
    settings : Optional[Settings], default: None
        Runtime settings; read from the environment when omitted.
    session_factory : Optional[sessionmaker], default: None
        Pre-built session factory (tests pass one bound to an in-memory
        database). Built from ``settings.database_url`` when omitted.
    """
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level)

    if session_factory is None:
        engine = make_engine(settings.database_url, timeout=settings.db_timeout)
        session_factory = get_sessionmaker(engine)

    app = Flask(__name__)
    app.extensions["luckydraw.sessions"] = session_factory
    app.extensions["luckydraw.locks"] = CategoryLockRegistry(
        timeout=settings.draw_lock_timeout
    )
    app.register_blueprint(api_bp, url_prefix="/api")
    return app
