import pytest

from core.entities import Product
from infrastructure.web.preview_service import InMemoryPreviewStore

from fakes import PUBLIC_BASE, FakeObjectStore, FakeProductRepository


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture
def repository():
    return FakeProductRepository()


@pytest.fixture
def preview_store():
    return InMemoryPreviewStore("/previews/")


@pytest.fixture
def existing_product():
    return Product(
        id=7,
        name="Anillo",
        description="Plata 925",
        price=120.0,
        images=[PUBLIC_BASE + "products/a.png", PUBLIC_BASE + "products/b.png"],
        created_at="2024-01-01T00:00:00+00:00",
    )
