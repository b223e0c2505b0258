"""
Test configuration for the clinic backend.

Every test gets its own SQLite file under tmp_path and an application built
around explicit test settings (fast bcrypt, fixed signing key, no rate limit).
"""
import asyncio
import pytest
from fastapi.testclient import TestClient

from clinic.auth.service import register_user
from clinic.config import Settings
from clinic.database import create_db_engine, create_session_factory, init_db
from clinic.main import create_app

TEST_SECRET_KEY = "test-secret-key-for-the-clinic-suite"
TEST_PASSWORD = "pw123456"


@pytest.fixture(scope="function")
def test_settings(tmp_path):
    """
    Settings pointing at a throwaway SQLite database.
    """
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        secret_key=TEST_SECRET_KEY,
        bcrypt_rounds=4,
        rate_limit_enabled=False,
        environment="development",
    )


@pytest.fixture(scope="function")
def session_factory(test_settings):
    """
    Session factory over a freshly initialised schema.
    """
    engine = create_db_engine(test_settings)
    factory = create_session_factory(engine)
    init_db(engine, factory)
    yield factory
    engine.dispose()


@pytest.fixture(scope="function")
def db(session_factory):
    """
    A database session for direct service-layer tests.
    """
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def app(test_settings):
    return create_app(test_settings)


@pytest.fixture(scope="function")
def client(app):
    """
    Test client; entering it runs startup (schema creation and admin bootstrap).
    """
    with TestClient(app) as client:
        yield client


@pytest.fixture
def register(db, test_settings):
    """
    Call the registration service synchronously.
    """
    def _register(email, password=TEST_PASSWORD, first_name="A", last_name="B", **kwargs):
        return asyncio.run(
            register_user(
                db,
                test_settings,
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
                **kwargs
            )
        )
    return _register
