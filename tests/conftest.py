import os
from datetime import date, datetime, timedelta

import pytest

os.environ.setdefault("DB_BACKEND", "sqlite")

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.db import DB
from core.models import (
    Base,
    Campaign,
    CollabTemplate,
    Communication,
    Content,
    ContentEntry,
    ContentTag,
    Period,
    PeriodTemplate,
    Profile,
    Subscription,
)


@pytest.fixture
def server_db(tmp_path):
    db_path = tmp_path / "collabgate.sqlite"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    previous_engine = DB.engine
    previous_session = DB.SessionLocal
    DB.engine = engine
    DB.SessionLocal = SessionLocal
    try:
        yield engine
    finally:
        DB.engine = previous_engine
        DB.SessionLocal = previous_session
        engine.dispose()


@pytest.fixture
def db_session(server_db):
    session = DB.SessionLocal()
    try:
        yield session
    finally:
        session.close()


class Seeder:
    """Writes fixture rows through one session and commits each call."""

    def __init__(self, session):
        self.session = session
        self._tick = datetime(2026, 1, 1, 12, 0, 0)

    def _add(self, row):
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row

    def _next_time(self) -> datetime:
        self._tick += timedelta(seconds=1)
        return self._tick

    def period(self, name="Spring 2026", is_active=True, end_date=date(2026, 6, 30), **kwargs):
        return self._add(
            Period(
                name=name,
                season=kwargs.pop("season", "spring"),
                year=kwargs.pop("year", 2026),
                start_date=kwargs.pop("start_date", date(2026, 3, 1)),
                end_date=end_date,
                is_active=is_active,
                **kwargs,
            )
        )

    def template(self, name="Urban Chains", template_type="chain", period=None, **kwargs):
        template = self._add(
            CollabTemplate(
                name=name,
                display_text=kwargs.pop("display_text", f"{name} prompt"),
                type=template_type,
                phases=kwargs.pop("phases", 3),
                duration=kwargs.pop("duration", "4 weeks"),
                requirements=kwargs.pop("requirements", {"min_photos": 3}),
                connection_rules=kwargs.pop("connection_rules", {"link": "previous"}),
                internal_reference=kwargs.pop("internal_reference", {"code": name[:3].upper()}),
                **kwargs,
            )
        )
        if period is not None:
            self.bind(period, template)
        return template

    def bind(self, period, template):
        return self._add(PeriodTemplate(period_id=period.id, template_id=template.id))

    def profile(self, first_name="Ada", last_name="Lovelace", city=None, is_public=True, **kwargs):
        return self._add(
            Profile(
                first_name=first_name,
                last_name=last_name,
                city=city,
                is_public=is_public,
                **kwargs,
            )
        )

    def subscription(self, subscriber, creator, status="active"):
        return self._add(Subscription(subscriber_id=subscriber.id, creator_id=creator.id, status=status))

    def content(self, creator, period, content_type="photo", status="published", title="Golden Hour", tags=()):
        content = self._add(
            Content(
                creator_id=creator.id,
                period_id=period.id,
                type=content_type,
                status=status,
                created_at=self._next_time(),
            )
        )
        entry = self._add(ContentEntry(content_id=content.id, position=0, title=title))
        for tag in tags:
            self._add(ContentTag(entry_id=entry.id, tag=tag))
        return content

    def campaign(self, period, name="Lens Co", discount=2, is_active=True):
        return self._add(
            Campaign(
                period_id=period.id,
                name=name,
                bio=f"{name} sponsor",
                last_post="New season",
                discount=discount,
                is_active=is_active,
            )
        )

    def communication(self, sender, recipient, period, status="submitted", subject="Hello"):
        return self._add(
            Communication(
                sender_id=sender.id,
                recipient_id=recipient.id,
                period_id=period.id,
                subject=subject,
                content="A short note for the curator",
                word_count=6,
                status=status,
                created_at=self._next_time(),
            )
        )


@pytest.fixture
def seed(db_session):
    return Seeder(db_session)
