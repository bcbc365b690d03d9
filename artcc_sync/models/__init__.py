"""
Database models for ARTCC Sync.

Snapshot tables (pilots, controllers, ATIS) are point-in-time views that
the reconciler replaces wholesale every poll. ControllerHours and Pirep
persist across polls.
"""

from artcc_sync.models.base import (
    Base,
    engine,
    SessionLocal,
    init_db,
    build_engine,
    build_session_factory,
    utcnow,
)
from artcc_sync.models.pilot_online import PilotOnline
from artcc_sync.models.atc_online import AtcOnline, AtisOnline
from artcc_sync.models.controller_hours import ControllerHours
from artcc_sync.models.pirep import Pirep, get_retention_cutoff

__all__ = [
    'Base',
    'engine',
    'SessionLocal',
    'init_db',
    'build_engine',
    'build_session_factory',
    'utcnow',
    'PilotOnline',
    'AtcOnline',
    'AtisOnline',
    'ControllerHours',
    'Pirep',
    'get_retention_cutoff',
]
