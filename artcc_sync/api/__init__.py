"""
API module for ARTCC Sync.

Read-only REST endpoints over the current snapshot and poller health.
"""

from artcc_sync.api.status import status_bp

__all__ = ['status_bp']
