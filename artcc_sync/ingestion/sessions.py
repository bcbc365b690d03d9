"""
Session ledger - continuous online intervals for facility controllers.

Sessions are keyed by (cid, logon time), not by cid alone. A controller
who reconnects gets a new logon time and therefore a new session; the
old row is never closed explicitly, it just stops being extended.
"""

import logging
from datetime import datetime
from typing import Optional

import requests
from sqlalchemy import select
from sqlalchemy.orm import Session

from artcc_sync.ingestion.accounting import AccountingClient
from artcc_sync.models import ControllerHours, utcnow

logger = logging.getLogger(__name__)


class SessionLedger:
    """
    Opens and extends ControllerHours rows.

    update() works inside the caller's transaction so session writes
    commit together with the snapshot they were observed in. announce()
    is called after that commit.
    """

    def __init__(self, accounting: Optional[AccountingClient] = None):
        self.accounting = accounting
        self._opened = 0
        self._extended = 0
        self._notify_failures = 0

    def update(
        self,
        db: Session,
        cid: int,
        time_start: datetime,
        position: str,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Open or extend the session (cid, time_start).

        Returns True when a new session was opened.
        """
        now = now or utcnow()

        existing = db.execute(
            select(ControllerHours).where(
                ControllerHours.cid == cid,
                ControllerHours.time_start == time_start,
            )
        ).scalar_one_or_none()

        if existing is None:
            db.add(ControllerHours(
                cid=cid,
                time_start=time_start,
                time_end=now,
                position=position,
            ))
            # Make the row visible to later lookups in the same transaction
            db.flush()
            self._opened += 1
            logger.info(f'Opened session for {cid} on {position}')
            return True

        existing.time_end = now
        self._extended += 1
        return False

    def announce(self, cid: int) -> None:
        """Notify accounting of a new session. Failures are logged only."""
        if self.accounting is None:
            return
        try:
            self.accounting.session_opened(cid)
        except requests.exceptions.RequestException as e:
            self._notify_failures += 1
            logger.warning(f'Accounting notification failed for {cid}: {e}')

    @property
    def stats(self) -> dict:
        return {
            'opened': self._opened,
            'extended': self._extended,
            'notify_failures': self._notify_failures,
        }
