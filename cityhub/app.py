"""
Main Flask Application
City Services Hub recommendation API
"""
import os
import sys

from flask import Flask, jsonify
from flask_wtf import CSRFProtect

from cityhub.config import Config
from cityhub.controllers import facility_bp
from cityhub.data_access import DirectoryClient, init_facility_stores
from cityhub.services.geocoding_service import KakaoGeocoder


def create_app(config_object=Config):
    """
    Application factory pattern for Flask app initialization.

    Creates the Flask application with its facility stores, the external
    collaborator factories and the JSON blueprint. Tests pass a Config
    subclass and may replace the collaborator factories in ``app.extensions``.

    Returns:
        Flask: Configured Flask application instance ready to run
    """
    app = Flask(__name__)
    app.config.from_object(config_object)

    app.logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())

    # Form posts stay CSRF-protected; the JSON API authenticates with the
    # front end's bearer token instead
    csrf = CSRFProtect(app)
    csrf.exempt(facility_bp)

    init_facility_stores(app)
    app.extensions['cityhub.directory_factory'] = DirectoryClient.from_app_config
    app.extensions['cityhub.geocoder_factory'] = KakaoGeocoder.from_app_config

    if not app.config.get('KAKAO_REST_API_KEY'):
        app.logger.warning('KAKAO_REST_API_KEY is not set; facilities will not be geocoded')

    app.register_blueprint(facility_bp)

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'error': 'not_found'}), 404

    @app.errorhandler(500)
    def server_error(e):
        return jsonify({'error': 'server_error'}), 500

    return app


if __name__ == '__main__':
    app = create_app()
    debug_mode = os.environ.get('FLASK_DEBUG') == '1'
    if debug_mode:
        print('Running City Services Hub API in debug mode', file=sys.stderr)
    app.run(debug=debug_mode, host='0.0.0.0', port=5000)
