"""
Usage Routes

Read-only endpoint reporting the shared daily quota.
"""

import logging

from flask import Blueprint, jsonify

from app.errors import StoreError
from .manager import UsageReporter

logger = logging.getLogger(__name__)


def create_usage_blueprint(usage_reporter: UsageReporter) -> Blueprint:
    """Create usage blueprint.

    Args:
        usage_reporter: Reporter reading the shared counter

    Returns:
        Flask blueprint with the usage routes
    """
    blueprint = Blueprint('usage', __name__)

    @blueprint.route('/api/get-usage', methods=['GET'])
    @blueprint.route('/.netlify/functions/get-usage', methods=['GET'])
    def get_usage():
        """Current usage without consuming quota."""
        try:
            snapshot = usage_reporter.peek()
        except StoreError as e:
            logger.error(f"Error fetching usage: {e}")
            return jsonify({"error": "Failed to fetch usage data"}), 500

        return jsonify({"usage": snapshot.to_dict()})

    return blueprint
