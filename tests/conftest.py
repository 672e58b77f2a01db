import os

import pytest
from fastapi.testclient import TestClient

from storage_bucket.config import Settings
from storage_bucket.database import Database, get_db
from storage_bucket.main import create_app
from storage_bucket.services.metadata_store import FileMetadataStore
from storage_bucket.storage.local import LocalStorageBackend
from tests.constants import TEST_MAX_FILE_SIZE, TEST_MAX_FILES


@pytest.fixture(scope="session")
def database_url(tmp_path_factory):
    db_path = tmp_path_factory.mktemp("db") / "test_storage.db"
    return f"sqlite:///{db_path}"


@pytest.fixture(scope="session", autouse=True)
def setup_database(database_url):
    """Run Alembic migrations at the start of the test session."""
    from alembic import command
    from alembic.config import Config

    # Configure Alembic to run migrations
    alembic_cfg = Config(os.path.join(os.path.dirname(os.path.dirname(__file__)), "alembic.ini"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url)

    # Run all migrations to head
    # This ensures migrations are tested and matches production environment
    command.upgrade(alembic_cfg, "head")

    yield

    command.downgrade(alembic_cfg, "base")


@pytest.fixture(scope="session")
def database(database_url, setup_database):
    database = Database(database_url)
    yield database
    database.dispose()


@pytest.fixture
def db(database):
    """Each test uses an independent transaction that gets rolled back after."""
    connection = database.engine.connect()
    transaction = connection.begin()
    session = database.session_factory(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def settings(database_url, upload_dir):
    return Settings(
        DATABASE_URL=database_url,
        UPLOAD_DIR=str(upload_dir),
        MAX_FILE_SIZE=TEST_MAX_FILE_SIZE,
        MAX_FILES_PER_UPLOAD=TEST_MAX_FILES,
        RATE_LIMIT_ENABLED=False,
        AUTH_ENABLED=False,
    )


@pytest.fixture
def store(db):
    return FileMetadataStore(db)


@pytest.fixture
def storage(upload_dir):
    return LocalStorageBackend(base_path=str(upload_dir), max_size_bytes=TEST_MAX_FILE_SIZE)


@pytest.fixture
def app(settings, db):
    """Application with the database session overridden by the test transaction."""
    app = create_app(settings)

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
