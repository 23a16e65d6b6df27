"""
Shared fixtures for django-catalog-engine tests.
"""
import pytest
from django.core.files.storage import FileSystemStorage

from catalog_engine.auth import AccessGate, StaticTokenIdentityProvider
from catalog_engine.repository import CatalogRepository
from catalog_engine.services import CatalogService
from catalog_engine.storage import ContentAddressStore

TOKEN = "admin-token"


@pytest.fixture
def media_storage(tmp_path):
    """Filesystem storage that overwrites instead of renaming."""
    return FileSystemStorage(
        location=str(tmp_path),
        base_url="/media/",
        allow_overwrite=True,
    )


@pytest.fixture
def store(db, media_storage):
    return ContentAddressStore(storage=media_storage)


@pytest.fixture
def repository(db):
    return CatalogRepository()


@pytest.fixture
def gate():
    return AccessGate(StaticTokenIdentityProvider({TOKEN: "admin-user"}))


@pytest.fixture
def service(repository, gate, store):
    return CatalogService(repository=repository, gate=gate, store=store)


@pytest.fixture
def tech(repository):
    return repository.create_category("Tech")


@pytest.fixture
def design(repository):
    return repository.create_category("Design")
