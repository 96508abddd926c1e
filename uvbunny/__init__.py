# uvbunny/__init__.py

# =====================================================================================
# 1. Environment (loaded before anything reads os.environ)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. Imports
# =====================================================================================
import os
import logging
from flask import Flask, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials, firestore

# - configuration
from uvbunny.core.config import config_by_name

# - blueprints
from uvbunny.api.auth.routes import auth_bp
from uvbunny.api.bunnies.routes import bunnies_bp
from uvbunny.api.config.routes import config_bp
from uvbunny.api.stats.routes import stats_bp
from uvbunny.api.health.routes import health_bp

# - services
from uvbunny.api.auth.services import AuthService
from uvbunny.api.bunnies.services import BunnyService
from uvbunny.api.config.services import ConfigService
from uvbunny.services.live_bunnies import BunnyFeed


def init_firebase(cred_path=None, project_id=None):
    """Initialize the Admin SDK once per process."""
    if firebase_admin._apps:
        return
    options = {'projectId': project_id} if project_id else None
    if cred_path:
        if not os.path.exists(cred_path):
            raise FileNotFoundError(f"Firebase credentials file not found: {cred_path}")
        firebase_admin.initialize_app(credentials.Certificate(cred_path), options)
    else:
        # Application default credentials (Cloud Run, emulator, gcloud auth).
        firebase_admin.initialize_app(options=options)


def create_app(config_name=None, db=None):
    """
    Flask application factory.

    `db` is a Firestore client; when omitted the Admin SDK is initialized and its
    default client is used.
    """
    # =====================================================================================
    # 3. Flask app and configuration
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    if not app.debug and not app.testing:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    # =====================================================================================
    # 4. Extensions and external services
    # =====================================================================================
    jwt = JWTManager(app)

    @jwt.unauthorized_loader
    def handle_missing_token(reason):
        return jsonify({"error_code": "AUTH_REQUIRED", "message": reason}), 401

    @jwt.invalid_token_loader
    def handle_invalid_token(reason):
        return jsonify({"error_code": "INVALID_TOKEN", "message": reason}), 401

    @jwt.expired_token_loader
    def handle_expired_token(jwt_header, jwt_payload):
        return jsonify({"error_code": "TOKEN_EXPIRED", "message": "Token has expired"}), 401

    if db is None:
        init_firebase(app.config.get('FIREBASE_CREDENTIALS_PATH'), app.config.get('FIREBASE_PROJECT_ID'))
        db = firestore.client()

    # =====================================================================================
    # 5. Services, stored on app.services (dependency injection)
    # =====================================================================================
    app.services = {'db': db}

    # 5-1. services without dependencies
    app.services['config'] = ConfigService(db=db)
    app.services['auth'] = AuthService(db=db)
    app.services['bunny_feed'] = BunnyFeed(db=db)

    # 5-2. services that depend on other services
    app.services['bunnies'] = BunnyService(config_service=app.services['config'], db=db)
    logging.info("Bunny services initialized successfully")

    # =====================================================================================
    # 6. Blueprints
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(bunnies_bp, url_prefix='/api/bunnies')
    app.register_blueprint(config_bp, url_prefix='/api/config')
    app.register_blueprint(stats_bp, url_prefix='/api/stats')
    app.register_blueprint(health_bp, url_prefix='/api/health')

    # =====================================================================================
    # 7. Global error handlers
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    @app.errorhandler(PermissionError)
    def handle_permission_error(err):
        return jsonify({"error_code": "AUTH_REQUIRED", "message": str(err)}), 401

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        if isinstance(err, HTTPException):
            return err
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "An unexpected server error occurred."}
        return jsonify(response), 500

    logging.info(f"Flask app created for '{config_name}' environment.")
    return app
