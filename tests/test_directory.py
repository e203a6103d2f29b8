import pytest
import requests

from cityhub.data_access import DirectoryClient, DirectoryServiceError, FacilityStore, ToggleFailure
from cityhub.models.models import Facility
from cityhub.services.catalog_service import (
    ALL_CATEGORIES,
    category_options,
    filter_facilities,
    map_markers,
    matches_keyword,
)
from tests.conftest import at


class FakeResponse:
    def __init__(self, status_code=200, payload=None, content=b'x'):
        self.status_code = status_code
        self._payload = payload
        self.content = content

    def json(self):
        if self._payload is None:
            raise ValueError('no json')
        return self._payload


@pytest.fixture
def facilities():
    return [
        Facility(id=1, name='Sunny Bistro', address='대전 중구 대흥동', category='양식',
                 hours_text='11:00~21:00', lat=36.3, lng=127.4),
        Facility(id=2, name='한밭식당', address='대전 서구 둔산동', category='한식',
                 hours_text='17:00~02:00'),
        Facility(id=3, name='중구분식', address='대전 동구', category='한식', hours_text=None,
                 lat=36.33, lng=127.43),
    ]


# FacilityStore ------------------------------------------------------------------

def test_coordinate_merge_only_touches_lat_and_lng(facilities):
    store = FacilityStore(facilities[:2])
    store.update(2, lambda f: f.with_favorite(True))

    # lookup result captured before the favorite changed
    store.merge_coordinates([facilities[1].with_coordinates(36.35, 127.38), facilities[2]])

    entry = store.get(2)
    assert (entry.lat, entry.lng) == (36.35, 127.38)
    assert entry.is_favorite is True
    assert [f.id for f in store.snapshot()] == [1, 2]


def test_coordinate_merge_skips_moved_or_located_entries(facilities):
    store = FacilityStore(facilities)
    store.merge_coordinates([
        facilities[0].with_coordinates(1.0, 1.0),
        Facility(id=2, name='한밭식당', address='옛 주소', lat=2.0, lng=2.0),
    ])

    assert store.get(1).lat == 36.3
    assert store.get(2).has_coordinates is False


def test_unresolved_addresses_wait_for_a_new_listing(facilities):
    store = FacilityStore(facilities)
    assert [f.id for f in store.pending_geocode()] == [2]

    store.mark_unresolved([facilities[1]])
    assert store.pending_geocode() == []

    store.replace(facilities)
    assert [f.id for f in store.pending_geocode()] == [2]


def test_update_returns_both_snapshots(facilities):
    store = FacilityStore(facilities)
    before, after = store.update(2, lambda f: f.with_favorite(True))

    assert before[1].is_favorite is False
    assert after[1].is_favorite is True
    assert store.snapshot() is after


def test_snapshots_are_not_affected_by_later_writes(facilities):
    store = FacilityStore(facilities)
    captured = store.snapshot()
    store.replace([])
    assert len(captured) == 3
    assert len(store) == 0


def test_clear_marks_store_unloaded(facilities):
    store = FacilityStore()
    assert store.loaded is False
    store.replace(facilities)
    assert store.loaded is True
    store.clear()
    assert store.loaded is False
    assert store.get(1) is None


# DirectoryClient ----------------------------------------------------------------

def test_listing_skips_malformed_records(monkeypatch):
    payload = [
        {'id': 7, 'name': '한빛병원', 'address': '대전', 'treatCategory': '병원', 'openTime': '09:00~18:00'},
        {'name': 'no id'},
        {'id': 'abc', 'name': 'bad id'},
    ]
    client = DirectoryClient('http://directory.test/api/')
    monkeypatch.setattr(client.session, 'request', lambda *a, **kw: FakeResponse(payload=payload))

    [facility] = client.list_facilities('hospital')

    assert facility.id == 7
    assert facility.category == '병원'
    assert facility.hours_text == '09:00~18:00'


def test_bearer_token_is_sent(monkeypatch):
    seen = {}

    def fake_request(method, url, headers=None, timeout=None):
        seen.update(method=method, url=url, headers=headers, timeout=timeout)
        return FakeResponse(payload=[{'id': 1}, {'id': '2'}, {'nope': 3}])

    client = DirectoryClient('http://directory.test/api', auth_token='tok', timeout=1.5)
    monkeypatch.setattr(client.session, 'request', fake_request)

    assert client.list_favorite_ids() == {1, 2}
    assert seen['method'] == 'GET'
    assert seen['url'] == 'http://directory.test/api/mypage/favorites'
    assert seen['headers']['Authorization'] == 'Bearer tok'
    assert seen['timeout'] == 1.5


def test_http_errors_raise_directory_service_error(monkeypatch):
    client = DirectoryClient('http://directory.test/api')
    monkeypatch.setattr(client.session, 'request', lambda *a, **kw: FakeResponse(status_code=503))

    with pytest.raises(DirectoryServiceError):
        client.list_facilities('restaurant')


def test_toggle_rejection_becomes_toggle_failure(monkeypatch):
    def refuse(*args, **kwargs):
        raise requests.ConnectionError('refused')

    client = DirectoryClient('http://directory.test/api')
    monkeypatch.setattr(client.session, 'request', refuse)

    with pytest.raises(ToggleFailure) as excinfo:
        client.toggle_favorite('hospital', 3)
    assert excinfo.value.user_message == '로그인이 필요합니다.'


def test_toggle_accepts_an_empty_body(monkeypatch):
    client = DirectoryClient('http://directory.test/api', auth_token='tok')
    monkeypatch.setattr(client.session, 'request', lambda *a, **kw: FakeResponse(content=b''))
    assert client.toggle_favorite('restaurant', 3) is None


# Catalog helpers ----------------------------------------------------------------

def test_category_options_start_with_all_and_keep_first_seen_order(facilities):
    assert category_options(facilities) == [ALL_CATEGORIES, '양식', '한식']
    assert category_options([]) == [ALL_CATEGORIES]


def test_keyword_terms_must_all_match(facilities):
    assert matches_keyword(facilities[0], 'Sunny 대흥동')
    assert not matches_keyword(facilities[0], 'Sunny 둔산동')
    # plain substring match, as typed
    assert not matches_keyword(facilities[0], 'sunny')
    assert matches_keyword(facilities[2], '')


def test_filters_combine(facilities):
    assert [f.id for f in filter_facilities(facilities, category='한식')] == [2, 3]
    assert [f.id for f in filter_facilities(facilities, category=ALL_CATEGORIES, keyword='중구')] == [1, 3]
    assert [f.id for f in filter_facilities(facilities, open_only=True, now=at(23))] == [2]


def test_markers_only_include_located_facilities(facilities):
    assert [f.id for f in map_markers(facilities)] == [1, 3]


def test_restaurant_menu_is_searchable():
    record = {
        'id': 9, 'name': '한밭식당', 'address': '대전 서구', 'restCategory': '한식',
        'menu': ['김치찌개', '된장찌개'],
    }
    facility = Facility.from_api(record, 'restaurant')

    assert facility.menu == ('김치찌개', '된장찌개')
    assert facility.to_dict()['menu'] == ['김치찌개', '된장찌개']
    assert matches_keyword(facility, '된장 서구')
    assert not matches_keyword(facility, '냉면')
    assert [f.id for f in filter_facilities([facility], keyword='김치찌개')] == [9]
    assert Facility.from_api({'id': 1, 'name': '병원'}, 'hospital').menu == ()
