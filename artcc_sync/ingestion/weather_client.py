"""
Aviation Weather Center client for pilot reports (PIREP/AIREP).

The feed is GeoJSON-like: a "features" list, each with "properties"
(sparse report fields) and "geometry.coordinates". Parsing into
display fields happens in the report ingester.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from artcc_sync.config import config

logger = logging.getLogger(__name__)


class PirepClient:
    """Fetches the current report feed. No query parameters."""

    def __init__(
        self,
        url: str = 'https://www.aviationweather.gov/cgi-bin/json/AirepJSON.php',
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls) -> 'PirepClient':
        return cls(
            url=config.weather.pirep_url,
            timeout=config.polling.fetch_timeout_seconds,
        )

    def get_features(self) -> List[Dict[str, Any]]:
        """
        Fetch report features.

        Raises:
            requests.RequestException on network/API errors
            ValueError if the body is not a feature collection
        """
        logger.info('Fetching PIREPs')
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f'PIREP feed request failed: {e}')
            raise

        data = response.json()
        if not isinstance(data, dict):
            raise ValueError('PIREP feed did not return an object')

        features = data.get('features') or []
        logger.debug(f'Received {len(features)} report features')
        return features
