"""
VATSIM network data client.

Handles communication with the public VATSIM feeds:
- v3 data JSON (pilots, controllers, ATIS stations)
- METAR text service (one line per requested station)

Each raw feed entry is parsed into a typed dataclass. Entries missing
a required sub-field parse to None; they are expected and frequent
(e.g. pilots connected without a flight plan), so callers skip them
without logging.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import requests

from artcc_sync.config import config

logger = logging.getLogger(__name__)

_FRACTION = re.compile(r'\.(\d{1,6})\d*')


def _six_digits(match: re.Match) -> str:
    return '.' + match.group(1).ljust(6, '0')


def parse_utc(value: Any) -> Optional[datetime]:
    """
    Parse an ISO 8601 string or Unix timestamp into naive UTC.

    The network reports logon times with seven fractional digits and a
    trailing Z. Older fromisoformat() accepts neither, nor fractions of
    other than three or six digits, so the fraction is padded or cut to
    six digits first. Returns None for anything unparseable, including
    timestamps outside the range datetime can represent.
    """
    if value is None or value == '':
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)
        except (ValueError, OverflowError, OSError):
            return None
    if not isinstance(value, str):
        return None

    text = _FRACTION.sub(_six_digits, value.strip())
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    except (ValueError, OverflowError):
        return None
    return parsed


def _join_text(lines: Optional[Sequence[str]]) -> str:
    """Multi-line broadcast text as a single string."""
    if not lines:
        return ''
    return ' - '.join(lines)


@dataclass
class FlightPlan:
    aircraft: Optional[str]
    departure: Optional[str]
    arrival: Optional[str]
    altitude: Optional[str]
    route: Optional[str]
    remarks: Optional[str]


@dataclass
class PilotEntry:
    """A connected pilot with a filed flight plan."""
    cid: int
    name: Optional[str]
    callsign: str
    latitude: float
    longitude: float
    altitude: Optional[int]
    groundspeed: Optional[int]
    heading: Optional[int]
    flight_plan: FlightPlan

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional['PilotEntry']:
        """Returns None for pilots without a flight plan, cid or position."""
        plan = data.get('flight_plan')
        callsign = data.get('callsign')
        if not plan or not callsign or data.get('cid') is None:
            return None
        if data.get('latitude') is None or data.get('longitude') is None:
            return None

        return cls(
            cid=data['cid'],
            name=data.get('name'),
            callsign=callsign,
            latitude=data['latitude'],
            longitude=data['longitude'],
            altitude=data.get('altitude'),
            groundspeed=data.get('groundspeed'),
            heading=data.get('heading'),
            flight_plan=FlightPlan(
                aircraft=plan.get('aircraft_faa'),
                departure=plan.get('departure'),
                arrival=plan.get('arrival'),
                altitude=plan.get('altitude'),
                route=plan.get('route'),
                remarks=plan.get('remarks'),
            ),
        )


@dataclass
class ControllerEntry:
    """A connected controller (any facility, filtered later)."""
    cid: int
    name: Optional[str]
    callsign: str
    frequency: Optional[str]
    facility: int
    rating: Optional[int]
    logon_time: Optional[datetime]
    text_atis: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional['ControllerEntry']:
        callsign = data.get('callsign')
        if not callsign or data.get('cid') is None:
            return None

        return cls(
            cid=data['cid'],
            name=data.get('name'),
            callsign=callsign,
            frequency=data.get('frequency'),
            facility=data.get('facility') or 0,
            rating=data.get('rating'),
            logon_time=parse_utc(data.get('logon_time')),
            text_atis=_join_text(data.get('text_atis')),
        )

    @property
    def callsign_parts(self) -> List[str]:
        return self.callsign.split('_')


@dataclass
class AtisEntry:
    """A digital ATIS station."""
    cid: Optional[int]
    callsign: str
    frequency: Optional[str]
    atis_code: Optional[str]
    text_atis: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional['AtisEntry']:
        callsign = data.get('callsign')
        if not callsign:
            return None

        return cls(
            cid=data.get('cid'),
            callsign=callsign,
            frequency=data.get('frequency'),
            atis_code=data.get('atis_code'),
            text_atis=_join_text(data.get('text_atis')),
        )

    @property
    def airport(self) -> str:
        return self.callsign[:4]


@dataclass
class NetworkSnapshot:
    """One parsed fetch of the v3 data feed."""
    pilots: List[PilotEntry] = field(default_factory=list)
    controllers: List[ControllerEntry] = field(default_factory=list)
    atis: List[AtisEntry] = field(default_factory=list)
    skipped: int = 0


class VatsimClient:
    """
    Client for the VATSIM data and METAR feeds.

    Every request uses a bounded timeout; network errors, timeouts and
    non-2xx responses propagate as requests.RequestException so the
    caller can abort the poll without touching state.
    """

    def __init__(
        self,
        data_url: str = 'https://data.vatsim.net/v3/vatsim-data.json',
        metar_url: str = 'https://metar.vatsim.net',
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.data_url = data_url
        self.metar_url = metar_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls) -> 'VatsimClient':
        """Create client from application configuration."""
        return cls(
            data_url=config.vatsim.data_url,
            metar_url=config.vatsim.metar_url,
            timeout=config.polling.fetch_timeout_seconds,
        )

    def _get(self, url: str) -> requests.Response:
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.Timeout:
            logger.error(f'VATSIM feed timeout: {url}')
            raise
        except requests.exceptions.HTTPError as e:
            if e.response is not None and e.response.status_code == 429:
                logger.warning('VATSIM rate limit exceeded')
            else:
                logger.error(f'VATSIM feed error: {e}')
            raise
        except requests.exceptions.RequestException as e:
            logger.error(f'VATSIM request failed: {e}')
            raise
        return response

    def get_snapshot(self) -> NetworkSnapshot:
        """
        Fetch and parse the network data feed.

        Raises:
            requests.RequestException on network/API errors
            ValueError if the body is not JSON
        """
        logger.info('Fetching data from VATSIM')
        data = self._get(self.data_url).json()
        if not isinstance(data, dict):
            raise ValueError('VATSIM data feed did not return an object')

        snapshot = NetworkSnapshot()
        for raw, parser, bucket in (
            (data.get('pilots') or [], PilotEntry.from_dict, snapshot.pilots),
            (data.get('controllers') or [], ControllerEntry.from_dict, snapshot.controllers),
            (data.get('atis') or [], AtisEntry.from_dict, snapshot.atis),
        ):
            for item in raw:
                entry = parser(item)
                if entry is None:
                    snapshot.skipped += 1
                else:
                    bucket.append(entry)

        logger.debug(
            f'Parsed {len(snapshot.pilots)} pilots, {len(snapshot.controllers)} controllers, '
            f'{len(snapshot.atis)} ATIS ({snapshot.skipped} skipped)'
        )
        return snapshot

    def get_metars(self, airports: Sequence[str]) -> Dict[str, str]:
        """
        Fetch METARs for the given stations.

        The service answers with one report per line; the station is the
        first four characters of each line.
        """
        response = self._get(f'{self.metar_url}/{",".join(airports)}')
        metars = {}
        for line in response.text.split('\n'):
            line = line.strip()
            if len(line) >= 4:
                metars[line[:4]] = line
        return metars
