import logging

from flask import Blueprint, request, jsonify

from app.errors import AnalogyServiceError, InvalidInput
from .services import AnalogyService

logger = logging.getLogger(__name__)


def create_analogy_routes(analogy_service: AnalogyService) -> Blueprint:
    """Create Flask routes for analogy generation."""

    analogy_bp = Blueprint('analogy', __name__)

    @analogy_bp.route("/api/generate-analogy", methods=["POST"])
    @analogy_bp.route("/.netlify/functions/generate-analogy", methods=["POST"])
    def generate_analogy():
        """Generate an analogy for two concepts, metered by the daily quota."""
        try:
            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                raise InvalidInput("Request body must be a JSON object")

            result = analogy_service.generate(data.get("concept1"), data.get("concept2"))
            return jsonify(result.to_dict())

        except AnalogyServiceError as e:
            return jsonify(e.to_dict()), e.status_code
        except Exception:
            logger.exception("Unexpected error while generating analogy")
            return jsonify({"error": "Internal server error"}), 500

    return analogy_bp
