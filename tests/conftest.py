import os
import tempfile

# Point storage at a scratch directory before the package creates its globals
_TMP_DIR = tempfile.mkdtemp(prefix="biopush-tests-")
os.environ["BIOPUSH_DATA_DIR"] = _TMP_DIR
os.environ["BIOPUSH_DB_PATH"] = os.path.join(_TMP_DIR, "biopush-test.db")
os.environ["BIOPUSH_BLOB_DIR"] = os.path.join(_TMP_DIR, "storage")
os.environ["BIOPUSH_LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["PUBLIC_BASE_URL"] = "http://push.test"
os.environ["SCHEDULER_ENABLED"] = "false"

import pytest

from biopush import create_app
from biopush.database.connection import db_manager
from biopush.models import Device, Organization, User
from biopush.repositories import device_repo, organization_repo, user_repo
from biopush.services.notification_service import notification_dispatcher

TABLES = (
    "notifications",
    "attendance_events",
    "users",
    "auth_identities",
    "biometric_devices",
    "organizations",
)


@pytest.fixture(autouse=True)
def clean_database():
    notification_dispatcher.wait_until_idle()
    with db_manager.get_cursor() as cursor:
        for table in TABLES:
            cursor.execute(f"DELETE FROM {table}")
    yield
    notification_dispatcher.wait_until_idle()


@pytest.fixture
def app():
    return create_app({"TESTING": True, "SCHEDULER_ENABLED": False})


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def organization():
    return organization_repo.create(Organization(
        id="org-1", full_name="Paradigm Facility Services", short_name="PFS Site"
    ))


@pytest.fixture
def device(organization):
    return device_repo.create(Device(
        id="dev-1", sn="ABC123", name="Main Gate", organization_id=organization.id
    ))


@pytest.fixture
def manager():
    return user_repo.create(User(id="mgr-1", name="Meera", role_id="site_manager"))


@pytest.fixture
def employee(manager, organization):
    return user_repo.create(User(
        id="emp-123",
        name="Ravi",
        role_id="field_staff",
        biometric_id="123",
        organization_id=organization.id,
        reporting_manager_id=manager.id,
    ))
