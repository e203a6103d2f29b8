import os

from dotenv import load_dotenv

# Pull local settings (API keys, service URLs) from a .env file kept out of git.
BASE_DIR = os.path.abspath(os.path.dirname(__file__))
ENV_PATH = os.path.join(BASE_DIR, '..', '.env')
load_dotenv(ENV_PATH)


class Config:
    """Application configuration"""

    # Secret key for session management and CSRF
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    BASE_DIR = BASE_DIR

    # Facility directory service (remote REST API)
    DIRECTORY_API_BASE_URL = os.environ.get('DIRECTORY_API_BASE_URL', 'http://localhost:8080/api')
    DIRECTORY_API_TIMEOUT = float(os.environ.get('DIRECTORY_API_TIMEOUT', '5'))
    FACILITY_DOMAINS = ('hospital', 'restaurant')

    # Kakao Local address search
    KAKAO_REST_API_KEY = os.environ.get('KAKAO_REST_API_KEY')
    KAKAO_LOCAL_BASE_URL = os.environ.get('KAKAO_LOCAL_BASE_URL', 'https://dapi.kakao.com')
    GEOCODE_TIMEOUT = float(os.environ.get('GEOCODE_TIMEOUT', '3'))
    GEOCODE_MAX_WORKERS = int(os.environ.get('GEOCODE_MAX_WORKERS', '8'))

    # Recommendation settings
    RECOMMENDATION_LIMIT = 5
    MAX_QUERY_LENGTH = 500

    # Wall clock used for business-hours checks
    TIMEZONE = os.environ.get('TIMEZONE', 'Asia/Seoul')

    # The JSON API is consumed by the front end with its own token handling
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = None
