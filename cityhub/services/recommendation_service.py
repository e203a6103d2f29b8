"""
Recommendation coordinator.

Ties the pieces together for one facility domain: loading and geocoding the
directory listing, answering symptom queries, and the optimistic favorite
toggle with whole-collection rollback.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
import logging
from typing import Callable, List, Optional, Set, Tuple

from flask import current_app, has_app_context

from cityhub.data_access.directory_client import DirectoryClient, DirectoryServiceError, ToggleFailure
from cityhub.data_access.facility_store import FacilityStore, Snapshot
from cityhub.models.models import BusinessStatus, Facility, Recommendation, RankedFacility
from cityhub.services.geocoding_service import GeocodeOrchestrator
from cityhub.services.ranking_service import RankingService
from cityhub.services.triage_service import TriageService
from cityhub.utils.availability import current_local_time, get_business_status
from cityhub.utils.validators import Validator


class RecommendationService:
    """High-level entry point used by the facility API."""

    def __init__(self, store: FacilityStore, *, domain: str = 'hospital',
                 directory_factory: Optional[Callable[[], DirectoryClient]] = None,
                 orchestrator: Optional[GeocodeOrchestrator] = None,
                 triage: Optional[TriageService] = None,
                 ranker: Optional[RankingService] = None) -> None:
        self.store = store
        # This caller's copy of the listing, with their favorites applied
        self.view = FacilityStore()
        self.domain = domain
        self.directory_factory = directory_factory or DirectoryClient.from_app_config
        self.orchestrator = orchestrator or GeocodeOrchestrator()
        self.triage = triage or TriageService()
        self.ranker = ranker or RankingService()
        self.logger = current_app.logger if has_app_context() else logging.getLogger(__name__)

    # Loading -----------------------------------------------------------------

    def load_facilities(self, refresh: bool = False) -> Snapshot:
        """
        Build this caller's view of the domain: the shared listing with the
        caller's favorites applied. The listing is fetched when ``refresh`` is
        set or nothing has been loaded yet; favorites are fetched every time.
        Facilities still lacking coordinates are then geocoded, skipping
        addresses that already failed to resolve.
        """
        fetch_listing = refresh or not self.store.loaded
        facilities, favorite_ids = self._fetch_listing_and_favorites(fetch_listing)

        if facilities is not None:
            previous = {f.id: f for f in self.store.snapshot()}
            merged = []
            for facility in facilities:
                known = previous.get(facility.id)
                # Reuse coordinates while the address is unchanged
                if known is not None and known.has_coordinates and known.address == facility.address:
                    facility = facility.with_coordinates(known.lat, known.lng)
                merged.append(facility.with_favorite(False))
            self.store.replace(merged)
            self.logger.info('Loaded %d %s facilities', len(merged), self.domain)

        self.view.replace(f.with_favorite(f.id in favorite_ids) for f in self.store.snapshot())

        pending = self.store.pending_geocode()
        if pending:
            resolved = self.orchestrator.resolve_all(pending)
            resolved_ids = {f.id for f in resolved}
            self.store.merge_coordinates(resolved)
            self.store.mark_unresolved(f for f in pending if f.id not in resolved_ids)
            self.view.merge_coordinates(resolved)
        return self.view.snapshot()

    def _fetch_listing_and_favorites(self, fetch_listing: bool) -> Tuple[Optional[List[Facility]], Set[int]]:
        """Listing is None when it was not requested or could not be fetched."""
        favorites_client = self.directory_factory()
        listing_client = self.directory_factory() if fetch_listing else None

        with ThreadPoolExecutor(max_workers=2) as pool:
            listing_future = pool.submit(listing_client.list_facilities, self.domain) if fetch_listing else None
            favorites_future = pool.submit(favorites_client.list_favorite_ids)

        facilities = None
        if listing_future is not None:
            try:
                facilities = listing_future.result()
            except DirectoryServiceError as exc:
                # Keep whatever is cached; the next load tries again
                self.logger.error('Could not load %s listing: %s', self.domain, exc)

        try:
            favorite_ids = favorites_future.result()
        except DirectoryServiceError as exc:
            # Anonymous visitors have no favorites
            self.logger.info('Favorites unavailable: %s', exc)
            favorite_ids = set()
        return facilities, favorite_ids

    # Queries -----------------------------------------------------------------

    def recommend(self, text: str, now: Optional[datetime] = None) -> Optional[Recommendation]:
        """Classify ``text`` and rank this caller's facilities. Blank input returns None."""
        valid, message = Validator.validate_query(text)
        if not valid:
            self.logger.debug('Ignoring symptom query: %s', message)
            return None

        if not self.view.loaded:
            self.load_facilities()

        classification = self.triage.classify(text)
        ranked = self.ranker.rank(self.view.snapshot(), classification)

        now = now or current_local_time()
        annotated = tuple(
            RankedFacility(item.facility, item.score, get_business_status(item.facility.hours_text, now))
            for item in ranked
        )
        return Recommendation(classification, annotated)

    def list_with_status(self, facilities=None,
                         now: Optional[datetime] = None) -> List[Tuple[Facility, BusinessStatus]]:
        now = now or current_local_time()
        facilities = self.view.snapshot() if facilities is None else facilities
        return [(f, get_business_status(f.hours_text, now)) for f in facilities]

    # Favorites ---------------------------------------------------------------

    def toggle_favorite(self, facility_id: int) -> Facility:
        """
        Flip the favorite flag right away, then confirm with the directory
        service. On failure this caller's entire pre-toggle collection is put
        back and ToggleFailure is raised for the caller to show a login prompt.
        """
        before, _ = self.view.update(facility_id, lambda f: f.with_favorite(not f.is_favorite))
        try:
            self.directory_factory().toggle_favorite(self.domain, facility_id)
        except ToggleFailure as exc:
            self.view.replace(before)
            self.logger.warning('Favorite toggle for %s %s rejected: %s', self.domain, facility_id, exc)
            raise
        except Exception:
            self.view.replace(before)
            raise
        return self.view.get(facility_id)
