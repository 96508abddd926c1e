# uvbunny/api/bunnies/routes.py
import json
import logging
import queue
from flask import Blueprint, request, jsonify, Response, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from .schemas import (
    BunnyCreateSchema,
    BunnyListResponseSchema,
    BunnyResponseSchema,
    EventsPageResponseSchema,
    EventsQuerySchema,
    GiveCarrotsSchema,
    CarrotEventResponseSchema,
)
from uvbunny.services.happiness import average_happiness

bunnies_bp = Blueprint('bunnies_bp', __name__)


@bunnies_bp.route('/', methods=['GET'])
@jwt_required()
def list_bunnies():
    """All of the user's bunnies with happiness recomputed from the current config."""
    user_id = get_jwt_identity()
    bunny_service = current_app.services['bunnies']
    try:
        bunnies = bunny_service.list_bunnies_with_happiness(user_id)
        payload = {
            "bunnies": bunnies,
            "averageHappiness": average_happiness(b['happiness'] for b in bunnies)
        }
        return jsonify(BunnyListResponseSchema().dump(payload)), 200
    except Exception as e:
        logging.error(f"List bunnies API error (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "Failed to load bunnies."}), 500


@bunnies_bp.route('/', methods=['POST'])
@jwt_required()
def create_bunny():
    user_id = get_jwt_identity()
    bunny_service = current_app.services['bunnies']
    try:
        data = BunnyCreateSchema().load(request.get_json() or {})
        bunny_id = bunny_service.create_bunny(user_id, data['name'], data.get('colorClass'))
        return jsonify({"id": bunny_id}), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except ValueError as e:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": str(e)}), 400
    except Exception as e:
        logging.error(f"Create bunny API error (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "BUNNY_CREATION_FAILED", "message": "Failed to create bunny."}), 500


@bunnies_bp.route('/stream', methods=['GET'])
@jwt_required()
def stream_bunnies():
    """
    Server-Sent Events feed of the bunny list with happiness.
    A new `data:` message is sent whenever a bunny or the config changes.
    """
    user_id = get_jwt_identity()
    feed = current_app.services['bunny_feed']
    keepalive = current_app.config.get('STREAM_KEEPALIVE_SECONDS', 15)
    updates: "queue.Queue" = queue.Queue()

    subscription = feed.subscribe(user_id, updates.put)
    response_schema = BunnyResponseSchema(many=True)

    def _event_stream():
        while True:
            try:
                bunnies = updates.get(timeout=keepalive)
            except queue.Empty:
                yield ": keep-alive\n\n"
                continue
            payload = {
                "bunnies": response_schema.dump(bunnies),
                "averageHappiness": average_happiness(b['happiness'] for b in bunnies)
            }
            yield f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"

    response = Response(_event_stream(), mimetype='text/event-stream',
                        headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'})
    # Also runs when the generator never started (HEAD, client gone before the first byte).
    response.call_on_close(subscription.unsubscribe)
    return response


@bunnies_bp.route('/<string:bunny_id>', methods=['GET'])
@jwt_required()
def get_bunny(bunny_id: str):
    user_id = get_jwt_identity()
    bunny_service = current_app.services['bunnies']
    try:
        bunny = bunny_service.get_bunny_with_happiness(user_id, bunny_id)
        return jsonify(BunnyResponseSchema().dump(bunny)), 200
    except FileNotFoundError as e:
        return jsonify({"error_code": "BUNNY_NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"Get bunny API error (bunny_id: {bunny_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "Failed to load bunny."}), 500


@bunnies_bp.route('/<string:bunny_id>', methods=['DELETE'])
@jwt_required()
def delete_bunny(bunny_id: str):
    """Delete a bunny. Its events are cleaned up asynchronously by the cascade function."""
    user_id = get_jwt_identity()
    bunny_service = current_app.services['bunnies']
    try:
        bunny_service.delete_bunny(user_id, bunny_id)
        return Response(status=204)
    except FileNotFoundError as e:
        return jsonify({"error_code": "BUNNY_NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"Delete bunny API error (bunny_id: {bunny_id}): {e}", exc_info=True)
        return jsonify({"error_code": "BUNNY_DELETION_FAILED", "message": "Failed to delete bunny."}), 500


@bunnies_bp.route('/<string:bunny_id>/carrots', methods=['POST'])
@jwt_required()
def give_carrots(bunny_id: str):
    """Append a carrot event. eventCount (and so happiness) catches up once the counter function runs."""
    user_id = get_jwt_identity()
    bunny_service = current_app.services['bunnies']
    try:
        data = GiveCarrotsSchema().load(request.get_json() or {})
        event = bunny_service.give_carrots(user_id, bunny_id, data['carrots'], notes=data.get('notes'))
        return jsonify(CarrotEventResponseSchema().dump(event)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except ValueError as e:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": str(e)}), 400
    except FileNotFoundError as e:
        return jsonify({"error_code": "BUNNY_NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"Give carrots API error (bunny_id: {bunny_id}): {e}", exc_info=True)
        return jsonify({"error_code": "CARROT_EVENT_FAILED", "message": "Failed to give carrots."}), 500


@bunnies_bp.route('/<string:bunny_id>/events', methods=['GET'])
@jwt_required()
def list_events(bunny_id: str):
    """Carrot events, newest first, with cursor pagination (`cursor` = previous `next_cursor`)."""
    user_id = get_jwt_identity()
    bunny_service = current_app.services['bunnies']
    try:
        params = EventsQuerySchema().load(request.args)
        events, next_cursor = bunny_service.list_events(
            user_id, bunny_id, cursor=params.get('cursor'), limit=params['limit'])
        return jsonify(EventsPageResponseSchema().dump({"events": events, "next_cursor": next_cursor})), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except ValueError as e:
        return jsonify({"error_code": "INVALID_CURSOR", "message": str(e)}), 400
    except Exception as e:
        logging.error(f"List events API error (bunny_id: {bunny_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "Failed to load events."}), 500


@bunnies_bp.route('/<string:bunny_id>/events/<string:event_id>', methods=['DELETE'])
@jwt_required()
def delete_event(bunny_id: str, event_id: str):
    user_id = get_jwt_identity()
    bunny_service = current_app.services['bunnies']
    try:
        bunny_service.delete_event(user_id, bunny_id, event_id)
        return Response(status=204)
    except FileNotFoundError as e:
        return jsonify({"error_code": "EVENT_NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"Delete event API error (event_id: {event_id}): {e}", exc_info=True)
        return jsonify({"error_code": "EVENT_DELETION_FAILED", "message": "Failed to delete event."}), 500
