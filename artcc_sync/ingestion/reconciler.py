"""
Snapshot reconciler - orchestrates one fast poll of the network feed.

Every poll is authoritative: the current snapshot replaces the previous
one wholesale, and the only incremental output is the set of entities
that left since the last poll.

Pipeline stages:
1. Fetch: pull the network snapshot (abort the cycle on failure)
2. Filter: apply each entity class's membership predicate
3. Persist: clear and repopulate the snapshot tables plus controller
   sessions, all in one transaction
4. Announce: notify accounting of newly opened sessions
5. Diff: read the previous active set, publish leaves, then replace it
6. Telemetry: per-flight cache records and update notifications

Nothing is written before the fetch succeeds and the cache is only
touched after the store commit, so a failed poll leaves the previous
state intact.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

import redis
import requests
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from artcc_sync import facility
from artcc_sync.cache import ActiveSetCache, EntityClass
from artcc_sync.config import config
from artcc_sync.geofence import Boundary, contains, from_lat_lon
from artcc_sync.ingestion.sessions import SessionLedger
from artcc_sync.ingestion.vatsim_client import (
    AtisEntry,
    ControllerEntry,
    PilotEntry,
    VatsimClient,
)
from artcc_sync.models import AtcOnline, AtisOnline, PilotOnline, SessionLocal, utcnow

logger = logging.getLogger(__name__)


def normalize_altitude(value) -> Optional[int]:
    """
    Convert a filed cruise altitude to feet.

    Flight plans carry either a flight level ('FL350') or an absolute
    altitude ('9000'). Anything else (blank, 'VFR') yields None.
    """
    if value is None:
        return None
    if isinstance(value, int):
        return value

    text = str(value).strip().upper()
    try:
        if text.startswith('FL'):
            return int(text[2:]) * 100
        return int(text)
    except ValueError:
        return None


def leaving_ids(previous: Sequence[str], current: Sequence[str]) -> List[str]:
    """Ids in the previous active set but not the current one, in order, once each."""
    present = set(current)
    seen = set()
    leaves = []
    for identifier in previous:
        if identifier in present or identifier in seen:
            continue
        seen.add(identifier)
        leaves.append(identifier)
    return leaves


def _unique(ids: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(ids))


def is_flight_member(
    pilot: PilotEntry,
    airports: Sequence[str],
    boundary: Boundary,
) -> bool:
    """Departing or arriving at a facility airport, or inside the boundary."""
    plan = pilot.flight_plan
    if plan.departure in airports or plan.arrival in airports:
        return True
    return contains(from_lat_lon(pilot.latitude, pilot.longitude), boundary)


def is_controller_member(controller: ControllerEntry, positions: Sequence[str]) -> bool:
    """Facility position prefix, not an observer (facility 0), not flight service."""
    return (
        controller.callsign[:3] in positions
        and controller.callsign not in facility.EXCLUDED_CALLSIGNS
        and controller.facility != 0
    )


def neighbor_center(controller: ControllerEntry, neighbors: Sequence[str]) -> Optional[str]:
    """Prefix of a neighboring center's enroute (_CTR) station, else None."""
    parts = controller.callsign_parts
    if parts[0] in neighbors and parts[-1] == 'CTR':
        return parts[0]
    return None


@dataclass
class PollResult:
    """Outcome of one successful reconciliation."""
    active: Dict[EntityClass, List[str]] = field(default_factory=dict)
    leaves: Dict[EntityClass, List[str]] = field(default_factory=dict)
    sessions_opened: List[int] = field(default_factory=list)
    neighbors: List[str] = field(default_factory=list)
    cache_ok: bool = True

    @property
    def counts(self) -> Dict[str, int]:
        return {cls.value: len(ids) for cls, ids in self.active.items()}


class Reconciler:
    """
    Reconciles pilots, controllers and ATIS stations against the
    previous poll.

    All collaborators are injected; the app factory wires the production
    ones. Invocations of poll() are serialized: an overlapping call
    returns immediately without touching any state.
    """

    def __init__(
        self,
        client: VatsimClient,
        cache: ActiveSetCache,
        session_factory: Optional[sessionmaker] = None,
        ledger: Optional[SessionLedger] = None,
        boundary: Optional[Boundary] = None,
        airports: Optional[Sequence[str]] = None,
        positions: Optional[Sequence[str]] = None,
        neighbors: Optional[Sequence[str]] = None,
        active_set_ttl: Optional[int] = None,
        flight_record_ttl: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.client = client
        self.cache = cache
        self.session_factory = session_factory or SessionLocal
        self.ledger = ledger or SessionLedger()
        self.boundary = boundary or Boundary(facility.AIRSPACE)
        self.airports = list(airports or facility.AIRPORTS)
        self.positions = list(positions or facility.ATC_POSITIONS)
        self.neighbors = list(neighbors or facility.NEIGHBORS)
        self.active_set_ttl = active_set_ttl or config.polling.active_set_ttl_seconds
        self.flight_record_ttl = flight_record_ttl or config.polling.flight_record_ttl_seconds
        self.clock = clock

        self._lock = threading.Lock()
        self._last_poll_time: float = 0
        self._poll_count: int = 0
        self._error_count: int = 0
        self._cache_error_count: int = 0
        self._skipped_count: int = 0

    # -------------------------------------------------------------------------
    # Record building (no I/O)
    # -------------------------------------------------------------------------

    def _pilot_record(self, pilot: PilotEntry, now: datetime) -> PilotOnline:
        plan = pilot.flight_plan
        return PilotOnline(
            cid=pilot.cid,
            name=pilot.name,
            callsign=pilot.callsign,
            aircraft=plan.aircraft,
            dep=plan.departure,
            dest=plan.arrival,
            lat=pilot.latitude,
            lng=pilot.longitude,
            altitude=pilot.altitude,
            heading=pilot.heading,
            speed=pilot.groundspeed,
            planned_cruise=normalize_altitude(plan.altitude),
            route=plan.route,
            remarks=plan.remarks,
            updated_at=now,
        )

    @staticmethod
    def _controller_record(controller: ControllerEntry) -> AtcOnline:
        return AtcOnline(
            cid=controller.cid,
            name=controller.name,
            rating=controller.rating,
            pos=controller.callsign,
            time_start=controller.logon_time,
            atis=controller.text_atis,
            frequency=controller.frequency,
        )

    @staticmethod
    def _atis_record(station: AtisEntry) -> AtisOnline:
        return AtisOnline(
            airport=station.airport,
            callsign=station.callsign,
            cid=station.cid,
            frequency=station.frequency,
            atis_code=station.atis_code,
            text=station.text_atis,
        )

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def _persist(
        self,
        pilots: List[PilotEntry],
        controllers: List[ControllerEntry],
        stations: List[AtisEntry],
        now: datetime,
    ) -> List[int]:
        """
        Swap the snapshot tables and update sessions in one transaction.

        Returns cids whose session was opened by this poll. Raises
        SQLAlchemyError; the transaction is rolled back and readers keep
        the previous snapshot.
        """
        opened = []
        with self.session_factory() as session:
            try:
                session.execute(delete(PilotOnline))
                session.execute(delete(AtcOnline))
                session.execute(delete(AtisOnline))

                session.add_all([self._pilot_record(p, now) for p in pilots])
                session.add_all([self._controller_record(c) for c in controllers])
                session.add_all([self._atis_record(s) for s in stations])

                for controller in controllers:
                    if controller.logon_time is None:
                        continue
                    if self.ledger.update(
                        session,
                        controller.cid,
                        controller.logon_time,
                        controller.callsign,
                        now=now,
                    ):
                        opened.append(controller.cid)

                session.commit()
            except SQLAlchemyError:
                session.rollback()
                raise

        return opened

    def _reconcile_active_set(self, entity_class: EntityClass, current: List[str]) -> List[str]:
        """Diff then replace: the previous set is read before it is overwritten."""
        previous = self.cache.get(entity_class)
        leaves = leaving_ids(previous, current)

        for identifier in leaves:
            self.cache.publish_leave(entity_class, identifier)

        self.cache.set(entity_class, current, self.active_set_ttl)

        if leaves:
            logger.info(f'{entity_class.value}: {len(leaves)} left ({", ".join(leaves)})')
        return leaves

    def _publish_flights(self, pilots: List[PilotEntry]) -> None:
        for pilot in pilots:
            cruise = normalize_altitude(pilot.flight_plan.altitude)
            self.cache.write_flight_record(
                pilot.callsign,
                {
                    'callsign': pilot.callsign,
                    'lat': f'{pilot.latitude}',
                    'lng': f'{pilot.longitude}',
                    'speed': f'{pilot.groundspeed}',
                    'heading': f'{pilot.heading}',
                    'altitude': f'{pilot.altitude}',
                    'cruise': '' if cruise is None else f'{cruise}',
                    'destination': f'{pilot.flight_plan.arrival or ""}',
                },
                self.flight_record_ttl,
            )
            self.cache.publish_flight_update(pilot.callsign)

    def _update_cache(
        self,
        result: PollResult,
        pilots: List[PilotEntry],
    ) -> None:
        for entity_class, ids in result.active.items():
            result.leaves[entity_class] = self._reconcile_active_set(entity_class, ids)

        self._publish_flights(pilots)

        for airport in result.active[EntityClass.BROADCAST_STATION]:
            self.cache.refresh_atis(airport, self.active_set_ttl)
        for airport in result.leaves[EntityClass.BROADCAST_STATION]:
            self.cache.drop_atis(airport)

        self.cache.set_neighbors(result.neighbors, self.active_set_ttl)

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def poll(self) -> Optional[PollResult]:
        """
        Execute one reconciliation cycle.

        Returns the PollResult, or None if the cycle was aborted (fetch
        or store failure) or skipped because a previous cycle is still
        running.
        """
        if not self._lock.acquire(blocking=False):
            self._skipped_count += 1
            logger.warning('Previous poll still running, skipping this cycle')
            return None

        try:
            return self._poll()
        finally:
            self._lock.release()

    def _poll(self) -> Optional[PollResult]:
        # Stage 1: Fetch
        try:
            snapshot = self.client.get_snapshot()
        except (requests.exceptions.RequestException, ValueError) as e:
            self._error_count += 1
            logger.error(f'Fetch failed, keeping previous state: {e}')
            return None

        now = self.clock()

        # Stage 2: Filter
        pilots = [
            p for p in snapshot.pilots
            if is_flight_member(p, self.airports, self.boundary)
        ]
        controllers = [
            c for c in snapshot.controllers
            if is_controller_member(c, self.positions)
        ]
        stations = [
            s for s in snapshot.atis
            if s.airport in self.airports
        ]
        neighbors = _unique(filter(None, (
            neighbor_center(c, self.neighbors) for c in snapshot.controllers
        )))

        # Stage 3: Persist
        try:
            opened = self._persist(pilots, controllers, stations, now)
        except SQLAlchemyError as e:
            self._error_count += 1
            logger.error(f'Persistence failed, snapshot not replaced: {e}')
            return None

        # Stage 4: Announce
        for cid in opened:
            self.ledger.announce(cid)

        result = PollResult(
            active={
                EntityClass.FLIGHT: _unique([p.callsign for p in pilots]),
                EntityClass.OPERATOR_POSITION: _unique([c.callsign for c in controllers]),
                EntityClass.BROADCAST_STATION: _unique([s.airport for s in stations]),
            },
            sessions_opened=opened,
            neighbors=neighbors,
        )

        # Stages 5-6: Diff and telemetry
        try:
            self._update_cache(result, pilots)
        except redis.RedisError:
            self._cache_error_count += 1
            result.cache_ok = False
            logger.error(
                'Cache unavailable, leave detection skipped this cycle',
                exc_info=True,
            )

        self._last_poll_time = time.time()
        self._poll_count += 1
        logger.info(
            f'Reconciled {len(pilots)} pilots, {len(controllers)} controllers, '
            f'{len(stations)} ATIS'
        )
        return result

    def refresh_metars(self) -> int:
        """
        Refresh METAR keys for every facility airport.

        Independent of poll(): a failure here is logged and leaves the
        previous METARs in place. Returns the count written, or -1.
        """
        try:
            metars = self.client.get_metars(self.airports)
            for airport, metar in metars.items():
                self.cache.set_metar(airport, metar)
        except (requests.exceptions.RequestException, redis.RedisError) as e:
            logger.error(f'METAR refresh failed: {e}')
            return -1
        return len(metars)

    def run_cycle(self) -> Optional[PollResult]:
        """Fast cycle body: reconcile, then refresh METARs."""
        result = self.poll()
        self.refresh_metars()
        return result

    @property
    def stats(self) -> dict:
        """Get reconciliation statistics."""
        return {
            'poll_count': self._poll_count,
            'error_count': self._error_count,
            'cache_error_count': self._cache_error_count,
            'skipped_count': self._skipped_count,
            'last_poll_time': self._last_poll_time,
            'sessions': self.ledger.stats,
        }
