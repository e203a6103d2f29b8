"""
JSON routes for facility listings, symptom recommendations and favorites.
"""
from flask import Blueprint, abort, current_app, jsonify, request

from cityhub.data_access import DirectoryClient, ToggleFailure, get_facility_store
from cityhub.services.catalog_service import category_options, filter_facilities, map_markers
from cityhub.services.geocoding_service import GeocodeOrchestrator
from cityhub.services.recommendation_service import RecommendationService
from cityhub.utils.validators import Validator

facility_bp = Blueprint('facility', __name__, url_prefix='/api')


def _auth_token():
    """Token forwarded to the directory service (header first, then the front end's cookie)."""
    header = request.headers.get('Authorization', '')
    if header.lower().startswith('bearer '):
        return header[7:].strip() or None
    return request.cookies.get('token')


def _service_for(domain):
    valid, _ = Validator.validate_domain(domain)
    if not valid:
        abort(404)
    token = _auth_token()
    factory = current_app.extensions.get('cityhub.directory_factory')
    if factory is None:
        factory = DirectoryClient.from_app_config
    orchestrator = GeocodeOrchestrator(current_app.extensions.get('cityhub.geocoder_factory'))
    return RecommendationService(
        get_facility_store(domain),
        domain=domain,
        directory_factory=lambda: factory(auth_token=token),
        orchestrator=orchestrator,
    )


@facility_bp.route('/<domain>', methods=['GET'])
def list_facilities(domain):
    """List facilities with business status, category options and map markers."""
    service = _service_for(domain)
    refresh = Validator.validate_flag(request.args.get('refresh'))
    facilities = service.load_facilities(refresh=refresh)

    filtered = filter_facilities(
        facilities,
        category=(request.args.get('category') or '').strip() or None,
        keyword=request.args.get('keyword'),
        open_only=Validator.validate_flag(request.args.get('open')),
    )
    listing = []
    for facility, status in service.list_with_status(filtered):
        item = facility.to_dict()
        item.update(status.to_dict())
        listing.append(item)

    return jsonify({
        'facilities': listing,
        'categories': category_options(facilities),
        'markers': [f.to_dict() for f in map_markers(filtered)],
    })


@facility_bp.route('/hospital/recommend', methods=['POST'])
def recommend():
    """Recommend hospitals for a free-text symptom description."""
    payload = request.get_json(silent=True) or {}
    symptom = payload.get('symptom')
    if symptom is not None and not isinstance(symptom, str):
        return jsonify({'error': 'invalid_symptom', 'message': 'Symptom must be text'}), 400

    max_len = current_app.config['MAX_QUERY_LENGTH']
    if symptom is not None and len(symptom) > max_len:
        return jsonify({'error': 'invalid_symptom',
                        'message': f'Symptom must not exceed {max_len} characters'}), 400

    result = _service_for('hospital').recommend(symptom)
    if result is None:
        # Blank input: nothing to recommend
        return '', 204
    return jsonify(result.to_dict())


@facility_bp.route('/<domain>/<int:facility_id>/favorite', methods=['POST'])
def toggle_favorite(domain, facility_id):
    """Toggle a favorite; a rejected toggle is reported as a login requirement."""
    service = _service_for(domain)
    service.load_facilities()
    try:
        facility = service.toggle_favorite(facility_id)
    except KeyError:
        abort(404)
    except ToggleFailure as exc:
        return jsonify({'error': 'login_required', 'message': exc.user_message}), 401
    return jsonify({'facility': facility.to_dict()})
