from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from cityhub.app import create_app
from cityhub.config import Config
from cityhub.data_access import DirectoryServiceError, ToggleFailure
from cityhub.models.models import Facility

SEOUL = ZoneInfo('Asia/Seoul')


class TestingConfig(Config):
    TESTING = True
    WTF_CSRF_ENABLED = False
    KAKAO_REST_API_KEY = 'test-key'
    GEOCODE_MAX_WORKERS = 4


HOSPITAL_RECORDS = [
    {'id': 1, 'name': '충남대학교병원', 'address': '대전 중구 문화로 282', 'treatCategory': '종합병원'},
    {'id': 2, 'name': '튼튼정형외과의원', 'address': '대전 서구 둔산로 10', 'treatCategory': '정형외과'},
    {'id': 3, 'name': '미소치과의원', 'address': '대전 유성구 대학로 99', 'treatCategory': '치과'},
    {'id': 4, 'name': '행복내과의원', 'address': '대전 동구 중앙로 1', 'treatCategory': '내과'},
    {'id': 5, 'name': '주소없는의원', 'address': '', 'treatCategory': '의원'},
]

COORDINATES = {
    '대전 중구 문화로 282': (36.3167, 127.4155),
    '대전 서구 둔산로 10': (36.3510, 127.3850),
    '대전 유성구 대학로 99': (36.3620, 127.3560),
    '대전 동구 중앙로 1': (36.3310, 127.4340),
}


class FakeDirectory:
    """
    In-memory stand-in for the remote directory service.

    ``favorite_ids`` answer every caller. When ``favorites_by_token`` is set,
    favorites are looked up by the caller's token instead and unknown callers
    are rejected like an anonymous request.
    """

    def __init__(self, records=None, favorite_ids=(), *, favorites_by_token=None,
                 fail_toggle=False, fail_listing=False, fail_favorites=False):
        self.records = list(HOSPITAL_RECORDS if records is None else records)
        self.favorite_ids = set(favorite_ids)
        self.favorites_by_token = favorites_by_token
        self.fail_toggle = fail_toggle
        self.fail_listing = fail_listing
        self.fail_favorites = fail_favorites
        self.listing_calls = 0
        self.toggle_calls = []
        self.tokens = []

    def factory(self, auth_token=None):
        self.tokens.append(auth_token)
        return FakeDirectoryClient(self, auth_token)

    def list_facilities(self, domain):
        self.listing_calls += 1
        if self.fail_listing:
            raise DirectoryServiceError('listing down')
        return [Facility.from_api(record, domain) for record in self.records]

    def list_favorite_ids(self, auth_token=None):
        if self.fail_favorites:
            raise DirectoryServiceError('GET /mypage/favorites returned HTTP 401')
        if self.favorites_by_token is None:
            return set(self.favorite_ids)
        if auth_token not in self.favorites_by_token:
            raise DirectoryServiceError('GET /mypage/favorites returned HTTP 401')
        return set(self.favorites_by_token[auth_token])

    def toggle_favorite(self, domain, facility_id):
        self.toggle_calls.append((domain, facility_id))
        if self.fail_toggle:
            raise ToggleFailure('POST returned HTTP 401')


class FakeDirectoryClient:
    """What the directory factory hands out: the shared fake bound to one caller's token."""

    def __init__(self, directory, auth_token):
        self.directory = directory
        self.auth_token = auth_token

    def list_facilities(self, domain):
        return self.directory.list_facilities(domain)

    def list_favorite_ids(self):
        return self.directory.list_favorite_ids(self.auth_token)

    def toggle_favorite(self, domain, facility_id):
        return self.directory.toggle_favorite(domain, facility_id)


class FakeGeocoder:
    """Resolves addresses from a fixed table; unknown addresses have no match."""

    def __init__(self, table=None, failing=()):
        self.table = dict(COORDINATES if table is None else table)
        self.failing = set(failing)
        self.calls = []

    def factory(self):
        return self

    def resolve_address(self, address):
        from cityhub.services.geocoding_service import ResolutionFailure

        self.calls.append(address)
        if address in self.failing:
            raise ResolutionFailure(f'lookup failed for {address}')
        return self.table.get(address)


@pytest.fixture
def fake_directory():
    return FakeDirectory()


@pytest.fixture
def fake_geocoder():
    return FakeGeocoder()


@pytest.fixture
def app(fake_directory, fake_geocoder):
    app = create_app(TestingConfig)
    app.extensions['cityhub.directory_factory'] = fake_directory.factory
    app.extensions['cityhub.geocoder_factory'] = fake_geocoder.factory
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


def at(hour, minute=0, *, weekday=2):
    """Local datetime on a fixed week (2025-01-06 is a Monday); weekday 0 = Monday."""
    return datetime(2025, 1, 6 + weekday, hour, minute, tzinfo=SEOUL)
