"""
Tracking API Routes
Called by the bridge page.
"""
from flask import Blueprint, request, jsonify

from qrtrack.helpers.campaigns import lookup_campaign
from qrtrack.helpers.scan_pipeline import track_scan

tracking_api_bp = Blueprint('tracking_api', __name__)
health_bp = Blueprint('health', __name__)


@tracking_api_bp.route('/<code>', methods=['GET'])
def campaign_data(code):
    """Display data for the bridge page (pixel id, destination, max wait)."""
    campaign = lookup_campaign(code)
    if campaign is None:
        return jsonify({'error': 'Campaign not found'}), 404
    return jsonify(campaign.public_dict()), 200


@tracking_api_bp.route('/<code>/track', methods=['POST'])
def track(code):
    """
    Precision tracking for bridge-page scans

    Body (all optional): event_id, referrer, screen_width, screen_height
    """
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}

    payload, status = track_scan(code, request, body)
    return jsonify(payload), status


@health_bp.route('/healthz', methods=['GET'])
def healthz():
    return jsonify({'status': 'ok'}), 200
