# uvbunny/api/stats/routes.py
import logging
from flask import Blueprint, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import Schema, fields

from uvbunny.models.global_stats import GlobalStats
from uvbunny.utils.paths import get_global_stats_path

stats_bp = Blueprint('stats_bp', __name__)


class GlobalStatsResponseSchema(Schema):
    avgHappiness = fields.Int(attribute='avg_happiness')
    updatedAt = fields.DateTime(attribute='updated_at')


@stats_bp.route('', methods=['GET'])
@jwt_required()
def get_global_stats():
    """Last analytics snapshot for the user. 404 until the scheduled job has run once."""
    user_id = get_jwt_identity()
    db = current_app.services['db']
    try:
        doc = db.document(get_global_stats_path(user_id)).get()
        if not doc.exists:
            return jsonify({"error_code": "STATS_NOT_FOUND", "message": "No analytics snapshot yet."}), 404
        stats = GlobalStats.from_dict(doc.to_dict())
        return jsonify(GlobalStatsResponseSchema().dump(stats)), 200
    except Exception as e:
        logging.error(f"Stats fetch API error (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "Failed to load stats."}), 500
