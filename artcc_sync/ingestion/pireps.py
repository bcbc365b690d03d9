"""
Report ingester - pilot reports inside the facility boundary.

Runs on its own slower cycle. No diffing or sessions: each poll purges
automatic reports that aged out, then inserts the qualifying new ones.
Manually entered reports are never touched.

The report feed delivers coordinates as (lat, lon), the reverse of the
geofence's (lon, lat), so every point goes through from_lat_lon().
"""

import logging
import re
import threading
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

import requests
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from artcc_sync import facility
from artcc_sync.config import config
from artcc_sync.geofence import Boundary, contains, from_lat_lon
from artcc_sync.ingestion.vatsim_client import parse_utc
from artcc_sync.ingestion.weather_client import PirepClient
from artcc_sync.models import Pirep, SessionLocal, get_retention_cutoff, utcnow

logger = logging.getLogger(__name__)

REPORT_TYPES = ('PIREP', 'Urgent PIREP')

_WHITESPACE = re.compile(r'\s+')


def _squash(text: str) -> str:
    return _WHITESPACE.sub(' ', text).strip()


def _pad3(value: Any) -> str:
    """Cloud heights are hundreds of feet, shown as three digits."""
    return f'000{value}'[-3:]


def _text(value: Any) -> str:
    return '' if value is None else str(value)


def derive_fields(props: Dict[str, Any]) -> Dict[str, str]:
    """
    Display fields built from the sparse report properties.

    Empty or missing sub-fields drop out of the concatenation entirely,
    so a report with no icing data gets '' rather than a stray space.
    """
    wind = _text(props.get('wdir') or '')
    if props.get('wspd'):
        wind += f'@{props["wspd"]}'

    icing = _squash(f'{props.get("icgInt1") or ""} {props.get("icgType1") or ""}')

    sky_cond = f'{props["cloudCvg1"]} ' if props.get('cloudCvg1') else ''
    if props.get('Bas1'):
        sky_cond += _pad3(props['Bas1'])
    if props.get('Top1'):
        sky_cond += f'-{_pad3(props["Top1"])}'

    turbulence = _squash(' '.join(
        _text(props.get(key) or '') for key in ('tbInt1', 'tbFreq1', 'tbType1')
    ))

    vis = props.get('visibility_statute_mi')
    if isinstance(vis, dict):
        vis = vis.get('_text')

    return {
        'wind': wind,
        'icing': icing,
        'sky_cond': sky_cond.strip(),
        'turbulence': turbulence,
        'vis': _text(vis),
        'temp': _text(props.get('temp')),
    }


class ReportIngester:
    """
    Fetches, geofences and stores pilot reports.

    Per-report failures are logged and skipped; a failed fetch aborts
    the cycle before anything is deleted.
    """

    def __init__(
        self,
        client: PirepClient,
        session_factory: Optional[sessionmaker] = None,
        boundary: Optional[Boundary] = None,
        retention_hours: Optional[int] = None,
        report_types: Sequence[str] = REPORT_TYPES,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.client = client
        self.session_factory = session_factory or SessionLocal
        self.boundary = boundary or Boundary(facility.AIRSPACE)
        self.retention_hours = retention_hours or config.polling.report_retention_hours
        self.report_types = tuple(report_types)
        self.clock = clock

        self._lock = threading.Lock()
        self._poll_count = 0
        self._error_count = 0
        self._insert_failures = 0
        self._last_poll_time: float = 0

    def _cutoff(self) -> datetime:
        return get_retention_cutoff(self.retention_hours, now=self.clock())

    def _in_scope(self, feature: Dict[str, Any]) -> bool:
        props = feature.get('properties') or {}
        if props.get('airepType') not in self.report_types:
            return False
        coords = (feature.get('geometry') or {}).get('coordinates')
        if not coords or len(coords) < 2:
            return False
        return contains(from_lat_lon(coords[0], coords[1]), self.boundary)

    def _build_report(self, props: Dict[str, Any]) -> Optional[Pirep]:
        raw = props.get('rawOb')
        report_time = parse_utc(props.get('obsTime'))
        if not raw or report_time is None:
            return None

        return Pirep(
            report_time=report_time,
            location=raw[:3],
            aircraft=_text(props.get('acType')),
            flight_level=_text(props.get('fltlvl')),
            urgent=props.get('airepType') == 'Urgent PIREP',
            raw=raw,
            manual=False,
            **derive_fields(props),
        )

    def purge_expired(self) -> int:
        """Delete automatic reports at or past the retention cutoff."""
        with self.session_factory() as session:
            result = session.execute(
                delete(Pirep).where(
                    Pirep.manual.is_(False),
                    Pirep.report_time <= self._cutoff(),
                )
            )
            session.commit()
        if result.rowcount:
            logger.info(f'Purged {result.rowcount} expired PIREPs')
        return result.rowcount

    def _store(self, report: Pirep) -> bool:
        """Insert one report unless its raw text is already stored."""
        with self.session_factory() as session:
            exists = session.execute(
                select(Pirep.id).where(Pirep.raw == report.raw)
            ).first()
            if exists:
                return False
            session.add(report)
            session.commit()
        return True

    def poll(self) -> Optional[int]:
        """
        Execute one report cycle.

        Returns the count of reports inserted, or None if the cycle was
        aborted or skipped.
        """
        if not self._lock.acquire(blocking=False):
            logger.warning('Previous PIREP poll still running, skipping this cycle')
            return None
        try:
            return self._poll()
        finally:
            self._lock.release()

    def _poll(self) -> Optional[int]:
        try:
            features = self.client.get_features()
        except (requests.exceptions.RequestException, ValueError) as e:
            self._error_count += 1
            logger.error(f'PIREP fetch failed: {e}')
            return None

        try:
            self.purge_expired()
        except SQLAlchemyError as e:
            self._error_count += 1
            logger.error(f'PIREP purge failed: {e}')
            return None

        cutoff = self._cutoff()
        inserted = 0
        for feature in features:
            if not isinstance(feature, dict):
                continue
            try:
                if not self._in_scope(feature):
                    continue
            except (TypeError, ValueError):
                # Unusable coordinates
                continue

            try:
                report = self._build_report(feature['properties'])
            except (TypeError, ValueError) as e:
                logger.debug(f'Skipping malformed PIREP: {e}')
                continue
            if report is None or report.report_time <= cutoff:
                continue

            try:
                if self._store(report):
                    inserted += 1
            except SQLAlchemyError as e:
                self._insert_failures += 1
                logger.error(f'Failed to store PIREP {report.raw[:40]!r}: {e}')

        self._poll_count += 1
        self._last_poll_time = time.time()
        logger.info(f'Stored {inserted} new PIREPs')
        return inserted

    @property
    def stats(self) -> dict:
        return {
            'poll_count': self._poll_count,
            'error_count': self._error_count,
            'insert_failures': self._insert_failures,
            'last_poll_time': self._last_poll_time,
        }


def recent_reports(session_factory: sessionmaker = SessionLocal) -> List[Pirep]:
    """All stored reports, newest first."""
    with session_factory() as session:
        return list(session.execute(
            select(Pirep).order_by(Pirep.report_time.desc())
        ).scalars())
