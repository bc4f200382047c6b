"""
Test configuration and fixtures for tinytask
"""
import pytest
import os
import tempfile
from typing import Optional
from dotenv import load_dotenv

from tinytask.core.storage.client import DatabaseClient
from tinytask.core.storage.factory import (
    create_database_client,
    is_postgresql_url,
    reset_default_client,
)
from tinytask.core.storage.sqlalchemy.models import Base
from tinytask.core.services import TaskService, CommentService, LinkService
from tinytask.core.utils.logger import get_logger

logger = get_logger(__name__)

# Load environment variables from .env file (TEST_DATABASE_URL etc.)
load_dotenv()


# Custom pytest markers
def pytest_configure(config):
    """Configure custom pytest markers"""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test that requires external services"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow"
    )


def _get_test_database_url() -> Optional[str]:
    """Get test database URL from environment variable"""
    return os.getenv("TEST_DATABASE_URL")


@pytest.fixture(scope="function")
def temp_db_path():
    """Create a temporary database file path (only used for SQLite)"""
    test_db_url = _get_test_database_url()

    if test_db_url and is_postgresql_url(test_db_url):
        logger.info("Using PostgreSQL database for testing")
        yield None
        return

    tmp_dir = tempfile.mkdtemp(prefix="tinytask-test-")
    db_path = os.path.join(tmp_dir, "tinytask.db")

    yield db_path

    # Cleanup - SQLite WAL mode leaves -wal/-shm files next to the database
    for suffix in ("", "-wal", "-shm"):
        try:
            if os.path.exists(db_path + suffix):
                os.unlink(db_path + suffix)
        except OSError:
            pass
    try:
        os.rmdir(tmp_dir)
    except OSError:
        pass


@pytest.fixture(scope="function")
def db_client(temp_db_path):
    """
    Create a database client for testing

    Supports both SQLite (default, fresh file per test) and PostgreSQL
    (via TEST_DATABASE_URL, tables dropped and recreated per test).
    """
    test_db_url = _get_test_database_url()

    if test_db_url and is_postgresql_url(test_db_url):
        logger.info(f"Using PostgreSQL database for testing: {test_db_url}")
        client = create_database_client(connection_string=test_db_url, initialize=False)
        Base.metadata.drop_all(client.engine)
        client.initialize()
    else:
        client = create_database_client(path=temp_db_path)

    try:
        yield client
    finally:
        if test_db_url and is_postgresql_url(test_db_url):
            try:
                Base.metadata.drop_all(client.engine)
            except Exception as e:
                logger.debug(f"Cleanup failed (non-critical): {e}")
        client.close()


@pytest.fixture(scope="function")
def memory_client():
    """In-memory SQLite client"""
    client = create_database_client(path=":memory:")
    yield client
    client.close()


@pytest.fixture(scope="function")
def task_service(db_client: DatabaseClient) -> TaskService:
    return TaskService(db_client)


@pytest.fixture(scope="function")
def comment_service(db_client: DatabaseClient) -> CommentService:
    return CommentService(db_client)


@pytest.fixture(scope="function")
def link_service(db_client: DatabaseClient) -> LinkService:
    return LinkService(db_client)


@pytest.fixture(autouse=True)
def _reset_default_client():
    """Make sure no test leaks a process-wide default client"""
    yield
    reset_default_client()


@pytest.fixture(scope="function")
def sample_task_data():
    """Sample task data for testing"""
    return {
        "title": "Write the release notes",
        "description": "Summarize everything merged since 0.1.0",
        "assigned_to": "writer-agent",
        "created_by": "planner-agent",
        "priority": 5,
        "tags": ["docs", "release"],
    }
