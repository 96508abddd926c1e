# uvbunny/api/health/routes.py
from flask import Blueprint, jsonify

from uvbunny.utils.datetime_utils import DateTimeUtils

health_bp = Blueprint('health_bp', __name__)


def health_payload(service: str) -> dict:
    """Static liveness payload shared by the API and the HTTPS function."""
    return {"service": service, "ok": True, "time": DateTimeUtils.to_iso_string(DateTimeUtils.now())}


@health_bp.route('', methods=['GET'])
def health_check():
    return jsonify(health_payload("UVbunny API")), 200
