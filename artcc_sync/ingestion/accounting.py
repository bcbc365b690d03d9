"""
Facility API client for controller hour accounting.

Notified once per newly opened controller session. Best-effort: the
session is recorded whether or not this call succeeds.
"""

import logging
from typing import Optional

import requests

from artcc_sync.config import config

logger = logging.getLogger(__name__)


class AccountingClient:

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url.rstrip('/') if api_url else None
        self.timeout = timeout
        self.session = session or requests.Session()
        if api_key:
            self.session.headers['Authorization'] = f'Bearer {api_key}'

        if not self.api_url:
            logger.warning('Facility API URL not configured - session notifications disabled')

    @classmethod
    def from_config(cls) -> 'AccountingClient':
        return cls(
            api_url=config.accounting.api_url,
            api_key=config.accounting.api_key,
            timeout=config.polling.fetch_timeout_seconds,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_url)

    def session_opened(self, cid: int) -> None:
        """
        Report a new session for a controller.

        Raises requests.RequestException on failure; the ledger decides
        what a failure means.
        """
        if not self.api_url:
            return
        response = self.session.post(
            f'{self.api_url}/stats/fifty/{cid}',
            timeout=self.timeout,
        )
        response.raise_for_status()
