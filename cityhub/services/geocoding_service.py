"""
Address geocoding through the Kakao Local API, plus the batch orchestrator that
resolves a facility list concurrently.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging
from typing import Callable, List, Optional, Sequence, Tuple

import requests
from flask import current_app, has_app_context

from cityhub.config import Config
from cityhub.models.models import Facility

logger = logging.getLogger(__name__)

Coordinates = Tuple[float, float]


class ResolutionFailure(Exception):
    """Raised when an address lookup cannot be completed."""


class KakaoGeocoder:
    """Client for the Kakao Local address search endpoint."""

    ADDRESS_SEARCH_PATH = '/v2/local/search/address.json'

    def __init__(self, api_key: Optional[str] = None, *, base_url: Optional[str] = None,
                 timeout: Optional[float] = None) -> None:
        self.api_key = api_key if api_key is not None else Config.KAKAO_REST_API_KEY
        self.base_url = (base_url or Config.KAKAO_LOCAL_BASE_URL).rstrip('/')
        self.timeout = timeout if timeout is not None else Config.GEOCODE_TIMEOUT
        # requests.Session is not thread-safe: one geocoder per worker thread
        self.session = requests.Session()

    @classmethod
    def from_app_config(cls) -> 'KakaoGeocoder':
        if not has_app_context():
            return cls()
        config = current_app.config
        return cls(
            config.get('KAKAO_REST_API_KEY'),
            base_url=config.get('KAKAO_LOCAL_BASE_URL'),
            timeout=config.get('GEOCODE_TIMEOUT'),
        )

    def resolve_address(self, address: str) -> Optional[Coordinates]:
        """Return ``(lat, lng)`` for ``address`` or ``None`` when nothing matches."""
        if not self.api_key:
            raise ResolutionFailure('KAKAO_REST_API_KEY is not configured.')

        try:
            response = self.session.get(
                f'{self.base_url}{self.ADDRESS_SEARCH_PATH}',
                params={'query': address},
                headers={'Authorization': f'KakaoAK {self.api_key}'},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ResolutionFailure(f'Geocoding request failed: {exc}') from exc

        if response.status_code != 200:
            raise ResolutionFailure(f'Geocoding returned HTTP {response.status_code}')

        try:
            documents = response.json().get('documents') or []
        except ValueError as exc:
            raise ResolutionFailure('Geocoding returned invalid JSON') from exc

        if not documents:
            return None
        first = documents[0]
        try:
            # Kakao reports x as longitude and y as latitude
            return float(first['y']), float(first['x'])
        except (KeyError, TypeError, ValueError) as exc:
            raise ResolutionFailure(f'Unexpected geocoding document: {first!r}') from exc


class GeocodeOrchestrator:
    """
    Resolves facility addresses to coordinates in parallel.

    Every lookup runs on a bounded thread pool and the batch returns only after
    all of them have settled. A failed or empty lookup drops that facility and
    nothing else; the output keeps the input order.
    """

    def __init__(self, geocoder_factory: Optional[Callable[[], KakaoGeocoder]] = None, *,
                 max_workers: Optional[int] = None) -> None:
        self.geocoder_factory = geocoder_factory or KakaoGeocoder.from_app_config
        self.max_workers = max_workers or Config.GEOCODE_MAX_WORKERS
        self.logger = current_app.logger if has_app_context() else logger

    def resolve_all(self, facilities: Sequence[Facility]) -> List[Facility]:
        pending = [f for f in facilities if not f.has_coordinates and (f.address or '').strip()]
        results = {}
        if pending:
            results = self._resolve_concurrently(pending)

        resolved: List[Facility] = []
        for facility in facilities:
            if facility.has_coordinates:
                resolved.append(facility)
                continue
            coords = results.get(facility.id)
            if coords is not None:
                resolved.append(facility.with_coordinates(*coords))

        self.logger.info('Geocoded %d of %d pending facilities',
                         sum(1 for coords in results.values() if coords), len(pending))
        return resolved

    # Internal helpers --------------------------------------------------------

    def _resolve_concurrently(self, pending: Sequence[Facility]):
        workers = max(1, min(self.max_workers, len(pending)))
        app = current_app._get_current_object() if has_app_context() else None

        def _lookup(facility: Facility) -> Optional[Coordinates]:
            if app is not None:
                with app.app_context():
                    return self._resolve_one(facility)
            return self._resolve_one(facility)

        # Leaving the with-block waits for every submitted lookup
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {facility.id: pool.submit(_lookup, facility) for facility in pending}
        return {facility_id: future.result() for facility_id, future in futures.items()}

    def _resolve_one(self, facility: Facility) -> Optional[Coordinates]:
        geocoder = self.geocoder_factory()
        try:
            coords = geocoder.resolve_address(facility.address)
        except ResolutionFailure as exc:
            self.logger.warning('Could not geocode facility %s (%s): %s',
                                facility.id, facility.address, exc)
            return None
        except Exception:
            self.logger.exception('Unexpected geocoding error for facility %s', facility.id)
            return None
        if coords is None:
            self.logger.debug('No geocoding match for facility %s (%s)', facility.id, facility.address)
        return coords
