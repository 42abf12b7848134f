"""
API gateway: builds the record store and combines all service blueprints.
This is the local entrypoint for development.
"""

import logging
import os
import sys
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv
from flask import Flask, Response, jsonify
from flask_cors import CORS

from campus_events.database.record_store import RecordStore, create_store, get_store

load_dotenv()

# Basic console logging during API requests
logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


def load_config() -> Dict[str, Any]:
    """
    Collect app settings from the environment.
    """
    return {
        "STORE_BACKEND": os.getenv("STORE_BACKEND", "kv"),
        "KV_BACKEND": os.getenv("KV_BACKEND", "memory"),
        "LOCAL_STORE_PATH": os.getenv("LOCAL_STORE_PATH"),
        "AUTH_TOKEN_MODE": os.getenv("AUTH_TOKEN_MODE", "jwt"),
        "SEED_ON_STARTUP": _env_flag("SEED_ON_STARTUP", "true"),
        "CORS_ORIGINS": os.getenv("CORS_ORIGINS", "*").split(","),
    }


def create_app(store: Optional[RecordStore] = None, config: Optional[Dict[str, Any]] = None) -> Flask:
    """
    Application factory for creating the Flask app.

    Args:
        store (RecordStore, optional): Store to use; built from config if None.
        config (dict, optional): Overrides for the environment settings.

    Returns:
        Flask: The configured Flask application.
    """
    app = Flask(__name__)
    app.config.update(load_config())
    if config:
        app.config.update(config)

    CORS(app, resources={
        r"/*": {
            "origins": app.config["CORS_ORIGINS"],
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
            "expose_headers": ["Content-Length"],
            "max_age": 600,
        }
    })

    # --- RECORD STORE (owned by the app for its whole lifetime) ---
    if store is None:
        store = create_store(
            backend=app.config["STORE_BACKEND"],
            kv_backend=app.config["KV_BACKEND"],
            local_path=app.config["LOCAL_STORE_PATH"],
        )
    app.extensions["record_store"] = store

    # --- REGISTER BLUEPRINTS ---
    try:
        from campus_events.auth_service.gate import Capability
        from campus_events.auth_service.routes import auth_bp
        from campus_events.auth_service.utils import verify_token_from_request
        from campus_events.claims_service.routes import claims_bp
        from campus_events.database.init_db import clear_data, initialize_default_data, seed_sample_events
        from campus_events.events_service.routes import events_bp
        from campus_events.registrations_service.routes import registrations_bp
        from campus_events.students_service.routes import students_bp

        app.register_blueprint(auth_bp, url_prefix="/auth")
        app.register_blueprint(events_bp, url_prefix="/events")
        app.register_blueprint(registrations_bp, url_prefix="/registrations")
        app.register_blueprint(claims_bp, url_prefix="/claims")
        app.register_blueprint(students_bp, url_prefix="/students")

        logging.info("All blueprints registered successfully.")

    except ImportError as e:
        logging.error(f"Failed to import blueprints. Module not found: {e}")
        sys.exit(1)

    if app.config["SEED_ON_STARTUP"]:
        try:
            initialize_default_data(store)
        except Exception as e:
            logging.error(f"Error seeding initial data: {e}")

    # --- BASIC HEALTH CHECKPOINTS ---
    @app.route("/")
    def ping():
        """
        Root URL for simple 'online' check.
        """
        return jsonify({"status": "gateway_ok"}), 200

    @app.route("/health")
    def health():
        """
        Health check endpoint.
        """
        return jsonify({"status": "ok"}), 200

    # --- MAINTENANCE (demo data) ---
    @app.route("/clear-data", methods=["DELETE"])
    def clear_all_data() -> Tuple[Response, int]:
        _, err, code = verify_token_from_request(Capability.MAINTAIN_DATA)
        if err:
            return err, code
        try:
            clear_data(get_store())
        except Exception as e:
            logging.error(f"Error clearing data: {e}")
            return jsonify({"error": "Failed to clear data"}), 500
        return jsonify({"message": "All data cleared successfully"}), 200

    @app.route("/seed", methods=["POST"])
    def seed() -> Tuple[Response, int]:
        _, err, code = verify_token_from_request(Capability.MAINTAIN_DATA)
        if err:
            return err, code
        try:
            seeded = seed_sample_events(get_store())
        except Exception as e:
            logging.error(f"Error seeding data: {e}")
            return jsonify({"error": "Failed to seed data"}), 500
        return jsonify({"message": "Sample data seeded successfully", "events": seeded}), 200

    # --- JSON ERRORS ---
    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({"error": "Internal Server Error", "kind": "InternalError"}), 500

    return app


if __name__ == "__main__":
    app = create_app()
    port = int(os.getenv("GATEWAY_PORT", 5050))
    app.run(host="0.0.0.0", port=port, debug=True)
