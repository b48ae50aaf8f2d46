"""
Pytest configuration and shared fixtures.

This module provides:
- A fresh in-memory SQLite engine per test, with all tables created
- Session and session factory fixtures bound to it
- Repository fixtures for the sample models
- Seed data helpers
"""

import logging

import pytest
from sqlalchemy.orm import sessionmaker

from genrepo.database import (
    create_all_tables,
    create_db_engine,
    drop_all_tables,
    reset_global_session,
)
from genrepo.repositories import MainRepository
from tests.models import Category, Widget


@pytest.fixture
def engine():
    """In-memory SQLite engine with every test table created."""
    engine = create_db_engine("sqlite:///:memory:", echo=False)
    create_all_tables(engine)
    yield engine
    drop_all_tables(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def session(session_factory):
    """Session for one test; anything left uncommitted is discarded."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def widget_repo(session):
    return MainRepository(Widget, session)


@pytest.fixture
def category_repo(session):
    return MainRepository(Category, session)


@pytest.fixture
def seeded_widgets(session):
    """
    Seven widgets across two categories, committed.

    tools:    hammer(5), wrench(0), pliers(12)
    fasteners: bolt(100), nut(250), washer(0), rivet(40)
    """
    tools = Category(name="tools")
    fasteners = Category(name="fasteners")
    widgets = [
        Widget(name="hammer", quantity=5, category=tools),
        Widget(name="wrench", quantity=0, category=tools),
        Widget(name="pliers", quantity=12, category=tools),
        Widget(name="bolt", quantity=100, category=fasteners),
        Widget(name="nut", quantity=250, category=fasteners),
        Widget(name="washer", quantity=0, category=fasteners),
        Widget(name="rivet", quantity=40, category=fasteners),
    ]
    session.add_all(widgets)
    session.commit()
    return widgets


@pytest.fixture(autouse=True)
def clean_global_session():
    """Make sure no test leaks a registered global handle."""
    reset_global_session()
    yield
    reset_global_session()


@pytest.fixture
def restore_root_logging():
    """Put root handlers and levels back after a test reconfigures logging."""

    def ours(handler):
        # pytest attaches and detaches its own capture handlers per phase
        return not type(handler).__module__.startswith("_pytest")

    root = logging.getLogger()
    engine_logger = logging.getLogger("sqlalchemy.engine")
    saved = [h for h in root.handlers if ours(h)]
    level, engine_level = root.level, engine_logger.level
    yield
    for handler in [h for h in root.handlers if ours(h)]:
        root.removeHandler(handler)
    for handler in saved:
        root.addHandler(handler)
    root.setLevel(level)
    engine_logger.setLevel(engine_level)
