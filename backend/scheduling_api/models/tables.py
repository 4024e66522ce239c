import json

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, UniqueConstraint, func
from sqlalchemy.orm import declarative_base, relationship

from ..services.slots.config import utc_now

Base = declarative_base()
metadata = Base.metadata


class Advisors(Base):
    __tablename__ = 'advisors'

    id = Column(Integer, primary_key=True)
    email = Column(Text, nullable=False, unique=True)
    name = Column(Text)
    created_at = Column(DateTime, nullable=False, default=utc_now, server_default=func.current_timestamp())

    availability_windows = relationship(
        'AvailabilityWindows',
        back_populates='advisor',
        cascade='all, delete-orphan',
        order_by='AvailabilityWindows.id',
    )
    scheduling_links = relationship(
        'SchedulingLinks', back_populates='advisor', cascade='all, delete-orphan'
    )
    bookings = relationship('Bookings', back_populates='advisor')


class AvailabilityWindows(Base):
    __tablename__ = 'availability_windows'

    id = Column(Integer, primary_key=True)
    advisor_id = Column(ForeignKey('advisors.id', ondelete='CASCADE'), nullable=False, index=True)
    start_time = Column(Text, nullable=False)  # "HH:MM"
    end_time = Column(Text, nullable=False)    # "HH:MM"
    weekdays = Column(Text, nullable=False, server_default="[]")  # JSON list of weekday names
    created_at = Column(DateTime, nullable=False, default=utc_now, server_default=func.current_timestamp())

    advisor = relationship('Advisors', back_populates='availability_windows')

    @property
    def weekday_names(self) -> list[str]:
        try:
            names = json.loads(self.weekdays) if self.weekdays else []
        except json.JSONDecodeError:
            names = []
        return names if isinstance(names, list) else []


class SchedulingLinks(Base):
    __tablename__ = 'scheduling_links'

    id = Column(Integer, primary_key=True)
    advisor_id = Column(ForeignKey('advisors.id', ondelete='CASCADE'), nullable=False, index=True)
    slug = Column(Text, nullable=False, unique=True)
    meeting_length = Column(Integer, nullable=False)  # minutes
    max_advance_days = Column(Integer, nullable=False)
    usage_limit = Column(Integer)
    expires_at = Column(DateTime)
    custom_questions = Column(Text, nullable=False, server_default="[]")  # JSON [{question, required}]
    created_at = Column(DateTime, nullable=False, default=utc_now, server_default=func.current_timestamp())

    advisor = relationship('Advisors', back_populates='scheduling_links')
    bookings = relationship(
        'Bookings',
        back_populates='scheduling_link',
        cascade='all, delete-orphan',
        passive_deletes=True,
    )

    @property
    def questions(self) -> list[dict]:
        try:
            items = json.loads(self.custom_questions) if self.custom_questions else []
        except json.JSONDecodeError:
            items = []
        return items if isinstance(items, list) else []


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        # one advisor, one meeting per start instant, whatever the link
        UniqueConstraint('advisor_id', 'scheduled_time', name='uq_bookings_advisor_time'),
    )

    id = Column(Integer, primary_key=True)
    advisor_id = Column(ForeignKey('advisors.id', ondelete='CASCADE'), nullable=False)
    scheduling_link_id = Column(
        ForeignKey('scheduling_links.id', ondelete='CASCADE'), nullable=False, index=True
    )
    scheduled_time = Column(DateTime, nullable=False)
    email = Column(Text, nullable=False)
    linkedin_url = Column(Text)
    answers = Column(Text, nullable=False, server_default="[]")  # JSON [{question, answer}]
    created_at = Column(DateTime, nullable=False, default=utc_now, server_default=func.current_timestamp())

    advisor = relationship('Advisors', back_populates='bookings')
    scheduling_link = relationship('SchedulingLinks', back_populates='bookings')

    @property
    def answer_list(self) -> list[dict]:
        try:
            items = json.loads(self.answers) if self.answers else []
        except json.JSONDecodeError:
            items = []
        return items if isinstance(items, list) else []
