"""
PilotOnline model - current snapshot of in-scope flights.

Point-in-time view, not an append log: the reconciler clears and fully
repopulates this table on every poll, inside the same transaction, so
readers only ever see a complete snapshot.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Float, Integer, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from artcc_sync.models.base import Base, utcnow


class PilotOnline(Base):
    """One row per flight that passed the membership test this poll."""

    __tablename__ = 'pilots_online'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    cid: Mapped[int] = mapped_column(
        Integer,
        index=True,
        comment='Network member id'
    )

    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    callsign: Mapped[str] = mapped_column(
        String(16),
        index=True,
        comment='Flight callsign, stable identifier for the active set'
    )

    # Flight plan
    aircraft: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    dep: Mapped[Optional[str]] = mapped_column(String(4), nullable=True)
    dest: Mapped[Optional[str]] = mapped_column(String(4), nullable=True)
    planned_cruise: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment='Filed cruise altitude in feet (FL350 -> 35000)'
    )
    route: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Position and telemetry
    lat: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    lng: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    altitude: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    heading: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    speed: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment='Groundspeed in knots'
    )

    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    def __repr__(self) -> str:
        return f'<PilotOnline {self.callsign} {self.dep or "?"}-{self.dest or "?"}>'

    def to_dict(self) -> dict:
        return {
            'cid': self.cid,
            'name': self.name,
            'callsign': self.callsign,
            'aircraft': self.aircraft,
            'dep': self.dep,
            'dest': self.dest,
            'lat': self.lat,
            'lng': self.lng,
            'altitude': self.altitude,
            'heading': self.heading,
            'speed': self.speed,
            'planned_cruise': self.planned_cruise,
            'route': self.route,
            'remarks': self.remarks,
        }
