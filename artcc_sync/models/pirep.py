"""
Pirep model - pilot reports inside the facility boundary.

Automatically ingested reports (manual=False) are purged once they age
past the retention window. Manually entered reports are created by other
tools and are never removed by the ingester.
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import String, Integer, DateTime, Boolean, Text, Index
from sqlalchemy.orm import Mapped, mapped_column

from artcc_sync.models.base import Base, utcnow


class Pirep(Base):

    __tablename__ = 'pireps'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    report_time: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        comment='Observation time (UTC)'
    )

    location: Mapped[str] = mapped_column(String(8), default='')
    aircraft: Mapped[str] = mapped_column(String(16), default='')
    flight_level: Mapped[str] = mapped_column(String(8), default='')

    # Display fields derived from sparse feed properties
    sky_cond: Mapped[str] = mapped_column(String(32), default='')
    turbulence: Mapped[str] = mapped_column(String(64), default='')
    icing: Mapped[str] = mapped_column(String(64), default='')
    vis: Mapped[str] = mapped_column(String(16), default='')
    temp: Mapped[str] = mapped_column(String(8), default='')
    wind: Mapped[str] = mapped_column(String(16), default='')

    urgent: Mapped[bool] = mapped_column(Boolean, default=False)
    raw: Mapped[str] = mapped_column(Text, nullable=False)
    manual: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        comment='Entered by hand; never purged by automatic ingestion'
    )

    __table_args__ = (
        Index('ix_pireps_retention', 'manual', 'report_time'),
    )

    def __repr__(self) -> str:
        return f'<Pirep {self.location} {self.report_time} {"UUA" if self.urgent else "UA"}>'

    def to_dict(self) -> dict:
        return {
            'reportTime': self.report_time.isoformat() if self.report_time else None,
            'location': self.location,
            'aircraft': self.aircraft,
            'flightLevel': self.flight_level,
            'skyCond': self.sky_cond,
            'turbulence': self.turbulence,
            'icing': self.icing,
            'vis': self.vis,
            'temp': self.temp,
            'wind': self.wind,
            'urgent': self.urgent,
            'raw': self.raw,
            'manual': self.manual,
        }


def get_retention_cutoff(hours: int, now: Optional[datetime] = None) -> datetime:
    """
    Calculate the naive UTC cutoff for report retention.

    Automatic reports observed at or before this time are deleted.
    """
    return (now or utcnow()) - timedelta(hours=hours)
