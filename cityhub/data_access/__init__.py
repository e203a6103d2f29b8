"""
Data Access Layer initialization
"""
from flask import current_app

from cityhub.data_access.directory_client import DirectoryClient, DirectoryServiceError, ToggleFailure
from cityhub.data_access.facility_store import FacilityStore

EXTENSION_KEY = 'cityhub.facility_stores'


def init_facility_stores(app):
    """Create one empty facility store per directory domain for this app instance."""
    app.extensions[EXTENSION_KEY] = {
        domain: FacilityStore() for domain in app.config['FACILITY_DOMAINS']
    }


def get_facility_store(domain):
    """Return the facility store of ``domain`` for the current app."""
    return current_app.extensions[EXTENSION_KEY][domain]


__all__ = [
    'DirectoryClient',
    'DirectoryServiceError',
    'FacilityStore',
    'ToggleFailure',
    'get_facility_store',
    'init_facility_stores',
]
