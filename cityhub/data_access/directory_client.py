"""
HTTP client for the facility directory service.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set

import requests
from flask import current_app, has_app_context

from cityhub.config import Config
from cityhub.models.models import Facility

logger = logging.getLogger(__name__)


class DirectoryServiceError(Exception):
    """Raised when the directory service cannot be reached or answers with an error."""


class ToggleFailure(Exception):
    """Raised when a favorite toggle is rejected (usually a missing login)."""

    USER_MESSAGE = '로그인이 필요합니다.'

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.USER_MESSAGE)
        self.user_message = self.USER_MESSAGE


class DirectoryClient:
    """Thin wrapper over the directory REST endpoints used by the recommendation core."""

    def __init__(self, base_url: Optional[str] = None, *, auth_token: Optional[str] = None,
                 timeout: Optional[float] = None) -> None:
        self.base_url = (base_url or Config.DIRECTORY_API_BASE_URL).rstrip('/')
        self.auth_token = auth_token
        self.timeout = timeout if timeout is not None else Config.DIRECTORY_API_TIMEOUT
        self.session = requests.Session()
        self.logger = current_app.logger if has_app_context() else logger

    @classmethod
    def from_app_config(cls, auth_token: Optional[str] = None) -> 'DirectoryClient':
        if not has_app_context():
            return cls(auth_token=auth_token)
        config = current_app.config
        return cls(
            config.get('DIRECTORY_API_BASE_URL'),
            auth_token=auth_token,
            timeout=config.get('DIRECTORY_API_TIMEOUT'),
        )

    # Public API --------------------------------------------------------------

    def list_facilities(self, domain: str) -> List[Facility]:
        payload = self._request('GET', f'/{domain}')
        if not isinstance(payload, list):
            raise DirectoryServiceError(f'Unexpected {domain} listing payload')

        facilities = []
        for record in payload:
            try:
                facilities.append(Facility.from_api(record, domain))
            except (ValueError, AttributeError) as exc:
                self.logger.warning('Skipping malformed %s record: %s', domain, exc)
        return facilities

    def list_favorite_ids(self) -> Set[int]:
        payload = self._request('GET', '/mypage/favorites')
        ids = set()
        if isinstance(payload, list):
            for item in payload:
                try:
                    ids.add(int(item['id']))
                except (KeyError, TypeError, ValueError):
                    continue
        return ids

    def toggle_favorite(self, domain: str, facility_id: int) -> None:
        try:
            self._request('POST', f'/{domain}/{facility_id}/favorite')
        except DirectoryServiceError as exc:
            raise ToggleFailure(str(exc)) from exc

    # Internal helpers --------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        headers = {'Accept': 'application/json'}
        if self.auth_token:
            headers['Authorization'] = f'Bearer {self.auth_token}'
        return headers

    def _request(self, method: str, path: str) -> Any:
        url = f'{self.base_url}{path}'
        try:
            response = self.session.request(method, url, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as exc:
            raise DirectoryServiceError(f'{method} {path} failed: {exc}') from exc

        if response.status_code >= 400:
            raise DirectoryServiceError(f'{method} {path} returned HTTP {response.status_code}')
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise DirectoryServiceError(f'{method} {path} returned invalid JSON') from exc
