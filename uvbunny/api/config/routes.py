# uvbunny/api/config/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from uvbunny.api.config.schemas import ConfigUpdateSchema, ConfigResponseSchema

config_bp = Blueprint('config_bp', __name__)


@config_bp.route('', methods=['GET'])
@jwt_required()
def get_config():
    """The user's happiness settings, with defaults for anything never saved."""
    user_id = get_jwt_identity()
    service = current_app.services['config']
    try:
        config = service.get_config(user_id)
        return jsonify(ConfigResponseSchema().dump(config.to_response())), 200
    except Exception as e:
        logging.error(f"Config fetch API error (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "Failed to load settings."}), 500


@config_bp.route('', methods=['PATCH'])
@jwt_required()
def update_config():
    """Partial update. Invalid input is rejected as a whole; nothing is clamped."""
    user_id = get_jwt_identity()
    service = current_app.services['config']
    try:
        update_data = ConfigUpdateSchema().load(request.get_json() or {})
        config = service.update_config(user_id, update_data)
        return jsonify(ConfigResponseSchema().dump(config.to_response())), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except ValueError as e:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": str(e)}), 400
    except Exception as e:
        logging.error(f"Config update API error (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "Failed to update settings."}), 500
