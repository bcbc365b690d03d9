"""
Data ingestion module for ARTCC Sync.

Polls the VATSIM network and the pilot report feed, restricts both to
the facility, and reconciles the result against the previous poll.
"""

from artcc_sync.ingestion.vatsim_client import VatsimClient
from artcc_sync.ingestion.weather_client import PirepClient
from artcc_sync.ingestion.accounting import AccountingClient
from artcc_sync.ingestion.sessions import SessionLedger
from artcc_sync.ingestion.reconciler import Reconciler, PollResult
from artcc_sync.ingestion.pireps import ReportIngester
from artcc_sync.ingestion.scheduler import PollScheduler

__all__ = [
    'VatsimClient',
    'PirepClient',
    'AccountingClient',
    'SessionLedger',
    'Reconciler',
    'PollResult',
    'ReportIngester',
    'PollScheduler',
]
