"""
QR Redirect Routes
GET /go/<code>          - scan entry point (redirect decided after the campaign lookup only)
GET /go/<code>/bridge   - interstitial that fires the browser pixel and the track call
"""
from flask import Blueprint, request, redirect, render_template, abort, url_for

from qrtrack.helpers.campaigns import lookup_campaign
from qrtrack.helpers.cookies import apply_tracking_cookies
from qrtrack.helpers.scan_pipeline import handle_scan

redirect_bp = Blueprint('redirect', __name__)


@redirect_bp.route('/<code>', methods=['GET'])
def scan(code):
    decision = handle_scan(code, request)

    response = redirect(decision.location, code=decision.status_code)
    apply_tracking_cookies(response, decision.cookies)
    # Every scan must reach this handler again
    response.headers['Cache-Control'] = 'no-store'
    return response


@redirect_bp.route('/<code>/bridge', methods=['GET'])
def bridge(code):
    campaign = lookup_campaign(code)
    if campaign is None:
        abort(404)

    return render_template(
        'bridge.html',
        data_url=url_for('tracking_api.campaign_data', code=code),
        track_url=url_for('tracking_api.track', code=code),
        event_id=request.args.get('eid', ''),
        destination_url=campaign.destination_url,
        bridge_duration_ms=campaign.bridge_duration_ms,
    )
