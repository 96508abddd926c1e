# uvbunny/api/auth/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt_identity,
)
from marshmallow import ValidationError

from uvbunny.api.auth.schemas import SessionCreateSchema

auth_bp = Blueprint('auth_bp', __name__)


@auth_bp.route('/session', methods=['POST'])
def create_session():
    """Exchange a Firebase ID token for API access/refresh tokens."""
    auth_service = current_app.services['auth']
    try:
        data = SessionCreateSchema().load(request.get_json() or {})
        claims = auth_service.verify_id_token(data['id_token'])
        user, is_new_user = auth_service.get_or_create_user(claims)

        return jsonify({
            "access_token": create_access_token(identity=user.uid),
            "refresh_token": create_refresh_token(identity=user.uid),
            "uid": user.uid,
            "is_new_user": is_new_user
        }), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except PermissionError as e:
        return jsonify({"error_code": "INVALID_ID_TOKEN", "message": str(e)}), 401
    except Exception as e:
        logging.error(f"Session creation failed: {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "Failed to create session."}), 500


@auth_bp.route('/token/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh_token():
    """New access token for a valid refresh token."""
    current_user_id = get_jwt_identity()
    return jsonify(access_token=create_access_token(identity=current_user_id)), 200
