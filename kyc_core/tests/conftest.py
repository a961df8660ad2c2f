"""
Pytest configuration and fixtures.

Provides test database setup and common fixtures.
"""

import pytest
from sqlalchemy.orm import sessionmaker

from kyc_core.database import build_engine, init_db
from kyc_core.services import EvidenceRegistry, TokenLifecycleManager, UserRegistry


# Asha Rao is the reference subject used throughout the suite
ASHA_SUBJECT = {
    "name": "Asha Rao",
    "pan": "abcde1234f",
    "dob": "1992-03-04",
    "phone": "9876543210",
}

FULL_DOCUMENT_SET = ("aadhaar_front", "aadhaar_back", "pan_card", "selfie")


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create a file-backed SQLite test database (one per test)."""
    engine = build_engine(f"sqlite:///{tmp_path / 'kyc_vault_test.db'}")

    # Create all tables
    init_db(bind=engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory for tests that need more than one session."""
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Provide a clean database session for each test."""
    session = session_factory()

    yield session

    session.rollback()
    session.close()


@pytest.fixture
def user(db_session):
    """The primary identity owner."""
    return UserRegistry(db_session).register(
        display_name="Asha Rao",
        email="asha@example.com",
        phone="9876543210",
    )


@pytest.fixture
def other_user(db_session):
    """A second owner, for isolation checks."""
    return UserRegistry(db_session).register(
        display_name="Vikram Iyer",
        email="vikram@example.com",
    )


@pytest.fixture
def upload(db_session):
    """Record uploads for a user: upload(user, "pan_card", "selfie")."""
    registry = EvidenceRegistry(db_session)

    def _upload(owner, *categories):
        return [
            registry.record_upload(owner.id, category, f"blob://{owner.id}/{category}")
            for category in categories
        ]

    return _upload


@pytest.fixture
def full_documents(user, upload):
    """The complete required document set for the primary user."""
    return upload(user, *FULL_DOCUMENT_SET)


@pytest.fixture
def active_token(db_session, user):
    """An active credential for the primary user."""
    return TokenLifecycleManager(db_session).issue(user.id, dict(ASHA_SUBJECT))


@pytest.fixture
def asha_subject():
    """Fresh copy of the reference subject claims."""
    return dict(ASHA_SUBJECT)
