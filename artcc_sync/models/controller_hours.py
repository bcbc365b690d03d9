"""
ControllerHours model - continuous online sessions of facility controllers.

A session is keyed by (cid, time_start). Its end time is pushed forward
on every poll while the controller is still observed; once they log off
(or reconnect with a new logon time) the row simply stops being extended.
"""

from datetime import datetime

from sqlalchemy import String, Integer, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from artcc_sync.models.base import Base


class ControllerHours(Base):

    __tablename__ = 'controller_hours'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    cid: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
        comment='Network member id of the controller'
    )

    time_start: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        comment='Logon time, part of the session key'
    )

    time_end: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        comment='Last poll that observed this session'
    )

    position: Mapped[str] = mapped_column(String(16), nullable=False)

    __table_args__ = (
        UniqueConstraint('cid', 'time_start', name='uq_controller_hours_session'),
    )

    def __repr__(self) -> str:
        return f'<ControllerHours {self.cid} {self.position} {self.time_start}..{self.time_end}>'

    @property
    def duration_seconds(self) -> int:
        return int((self.time_end - self.time_start).total_seconds())
