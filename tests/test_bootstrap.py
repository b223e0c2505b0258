"""
Tests for the startup bootstrap of the default admin account.
"""
import pytest
from fastapi.testclient import TestClient

from clinic.auth.models import User, UserRole
from clinic.core.bootstrap import bootstrap_admin_if_needed
from clinic.core.security import verify_password
from clinic.database import create_db_engine, create_session_factory, init_db
from clinic.exceptions import StoreUnavailableException
from clinic.main import create_app
from clinic.patients.models import Patient


def test_bootstrap_creates_admin_once(db, test_settings):
    assert bootstrap_admin_if_needed(db, test_settings) is True
    assert bootstrap_admin_if_needed(db, test_settings) is False

    admins = db.query(User).filter(User.email == "admin@clinic.com").all()
    assert len(admins) == 1
    admin = admins[0]
    assert admin.role == UserRole.ADMIN
    assert admin.first_name == "System"
    assert admin.last_name == "Administrator"
    assert verify_password("admin123", admin.password_hash)
    assert db.query(Patient).count() == 0


def test_bootstrap_is_idempotent_across_restarts(test_settings, session_factory):
    for _ in range(2):
        with TestClient(create_app(test_settings)):
            pass

    with session_factory() as db:
        assert db.query(User).filter(User.email == "admin@clinic.com").count() == 1


def test_bootstrap_uses_configured_credentials(db, test_settings):
    settings = test_settings.model_copy(update={
        "bootstrap_admin_email": "root@clinic.com",
        "bootstrap_admin_password": "s3cret-pass",
    })
    bootstrap_admin_if_needed(db, settings)
    admin = db.query(User).filter(User.email == "root@clinic.com").one()
    assert verify_password("s3cret-pass", admin.password_hash)


def unreachable_settings(tmp_path, test_settings):
    return test_settings.model_copy(update={
        "database_url": f"sqlite:///{tmp_path / 'missing-dir' / 'clinic.db'}",
    })


def test_unreachable_store_is_reported(tmp_path, test_settings):
    settings = unreachable_settings(tmp_path, test_settings)
    engine = create_db_engine(settings)
    with pytest.raises(StoreUnavailableException):
        init_db(engine, create_session_factory(engine))


def test_unreachable_store_aborts_startup(tmp_path, test_settings):
    app = create_app(unreachable_settings(tmp_path, test_settings))
    with pytest.raises(StoreUnavailableException):
        with TestClient(app):
            pass
