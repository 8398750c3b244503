import argparse
import logging
from pathlib import Path

# Import configuration management
import sys
sys.path.append(str(Path(__file__).parent.parent))
from config_manager import ConfigManager

from flask import Flask, jsonify
from werkzeug.exceptions import MethodNotAllowed, NotFound
from werkzeug.middleware.proxy_fix import ProxyFix

from app.analogy.factory import create_analogy_module
from app.quota.factory import create_quota_module
from generation_service.llm_utils import LLMProvider, SamplingParams

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent


def build_llm_provider(config_manager: ConfigManager) -> LLMProvider:
    """Create the generation backend from the llm config section."""
    llm_config = config_manager.get_llm_config()
    return LLMProvider(
        api_key=llm_config.api_key or None,
        base_url=llm_config.base_url,
        provider=llm_config.provider,
        model=llm_config.model,
        timeout=llm_config.timeout_seconds,
        max_retries=llm_config.max_retries,
        sampling=SamplingParams(
            temperature=llm_config.temperature,
            top_k=llm_config.top_k,
            top_p=llm_config.top_p,
            max_output_tokens=llm_config.max_output_tokens,
        ),
    )


def create_app(config_manager=None, usage_store=None, llm_provider=None, clock=None) -> Flask:
    """
    Build the Flask application.

    Args:
        config_manager: Configuration source, defaults to web_app_config.json plus env
        usage_store: Counter store shared by the gate and the reporter,
            defaults to a JSON file under the data directory
        llm_provider: Generation backend, defaults to one built from config
        clock: Returns the current time; injected by tests

    Raises:
        ConfigurationError: If the quota settings are invalid
    """
    config_manager = config_manager or ConfigManager()
    quota_config = config_manager.get_quota_config()
    llm_config = config_manager.get_llm_config()
    data_dir = PROJECT_ROOT / config_manager.get_paths_config().data_dir

    app = Flask(__name__)
    app.wsgi_app = ProxyFix(
        app.wsgi_app,
        x_proto=1,     # trust 1 hop for X-Forwarded-Proto
        x_host=1,      # trust 1 hop for X-Forwarded-Host
        x_prefix=1)    # trust 1 hop for X-Forwarded-Prefix

    # -------------------------------------------------------------------------
    # Modules
    # -------------------------------------------------------------------------

    quota_module = create_quota_module(
        data_dir=data_dir,
        config=quota_config,
        store=usage_store,
        clock=clock,
    )

    analogy_module = create_analogy_module(
        quota_gate=quota_module["gate"],
        llm_provider=llm_provider or build_llm_provider(config_manager),
        timeout_seconds=llm_config.timeout_seconds,
    )

    app.register_blueprint(quota_module["blueprint"])
    app.register_blueprint(analogy_module["blueprint"])

    app.extensions["quota"] = quota_module
    app.extensions["analogy"] = analogy_module

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(MethodNotAllowed)
    def method_not_allowed(error):
        response = jsonify({"error": "Method not allowed"})
        response.status_code = 405
        response.headers["Allow"] = ", ".join(error.valid_methods or [])
        return response

    @app.errorhandler(NotFound)
    def not_found(error):
        return jsonify({"error": "Not found"}), 404

    # -------------------------------------------------------------------------
    # Routes
    # -------------------------------------------------------------------------

    @app.get("/actuator/health")
    def actuator_health():
        """Health check endpoint for monitoring tools and cloud platforms."""
        return jsonify({
            "status": "UP",
            "service": "analogy-generator"
        }), 200

    return app


app = create_app()


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Analogy generator API server")
    parser.add_argument("--port", type=int, help="Port to run the server on")
    parser.add_argument("--host", type=str, help="Host to bind the server to")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    args = parser.parse_args()

    manager = ConfigManager()
    app_config = manager.get_app_config()
    if args.port:
        app_config.port = args.port
    if args.host:
        app_config.host = args.host
    if args.debug:
        app_config.debug = args.debug

    app.run(
        host=app_config.host,
        port=app_config.port,
        debug=app_config.debug
    )
