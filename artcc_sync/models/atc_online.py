"""
Controller and ATIS snapshot tables.

Both are fully replaced on every poll, like pilots_online.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from artcc_sync.models.base import Base


class AtcOnline(Base):
    """A facility controller position currently staffed."""

    __tablename__ = 'atc_online'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    cid: Mapped[int] = mapped_column(Integer, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    pos: Mapped[str] = mapped_column(
        String(16),
        index=True,
        comment='Position callsign, e.g. MEM_CTR'
    )
    time_start: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
        comment='Logon time reported by the network'
    )
    atis: Mapped[str] = mapped_column(
        Text,
        default='',
        comment='Controller info lines joined with " - "'
    )
    frequency: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    def __repr__(self) -> str:
        return f'<AtcOnline {self.pos} {self.cid}>'

    def to_dict(self) -> dict:
        return {
            'cid': self.cid,
            'name': self.name,
            'rating': self.rating,
            'pos': self.pos,
            'timeStart': self.time_start.isoformat() if self.time_start else None,
            'atis': self.atis,
            'frequency': self.frequency,
        }


class AtisOnline(Base):
    """A digital ATIS broadcast for one of the facility's airports."""

    __tablename__ = 'atis_online'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    airport: Mapped[str] = mapped_column(String(4), index=True)
    callsign: Mapped[str] = mapped_column(String(16))
    cid: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    frequency: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    atis_code: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    text: Mapped[str] = mapped_column(Text, default='')

    def __repr__(self) -> str:
        return f'<AtisOnline {self.airport} {self.atis_code or "-"}>'

    def to_dict(self) -> dict:
        return {
            'airport': self.airport,
            'callsign': self.callsign,
            'frequency': self.frequency,
            'code': self.atis_code,
            'text': self.text,
        }
