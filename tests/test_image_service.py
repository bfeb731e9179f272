from unittest.mock import MagicMock

import pytest

from core.exceptions import ObjectStoreError
from infrastructure.database.models import SupabaseConfig
from infrastructure.web.image_service import LocalObjectStore, SupabaseObjectStore
from infrastructure.web.preview_service import InMemoryPreviewStore

from fakes import make_file


class TestLocalObjectStore:
    @pytest.fixture
    def store(self, tmp_path):
        return LocalObjectStore(str(tmp_path / "resources"), "http://localhost/assets")

    def test_upload_and_public_url(self, store, tmp_path):
        store.upload("products/x.png", make_file(content=b"img"))

        assert (tmp_path / "resources" / "products" / "x.png").read_bytes() == b"img"
        assert store.get_public_url("products/x.png") == "http://localhost/assets/products/x.png"

    def test_upload_never_overwrites(self, store):
        store.upload("products/x.png", make_file())
        with pytest.raises(ObjectStoreError):
            store.upload("products/x.png", make_file())

    def test_delete_missing_is_not_an_error(self, store):
        store.delete("products/nada.png")

    def test_paths_outside_root_are_rejected(self, store):
        with pytest.raises(ObjectStoreError):
            store.upload("../fuera.png", make_file())


class TestSupabaseObjectStore:
    @pytest.fixture
    def client(self):
        return MagicMock()

    @pytest.fixture
    def store(self, client):
        return SupabaseObjectStore(client, SupabaseConfig(url="https://x.supabase.co", key="k"))

    def test_upload_uses_bucket(self, store, client):
        store.upload("products/x.png", make_file(content=b"img"))

        client.storage.from_.assert_called_with("product-images")
        client.storage.from_.return_value.upload.assert_called_once_with(
            "products/x.png", b"img", {"content-type": "image/png"}
        )

    def test_delete_removes_single_path(self, store, client):
        store.delete("products/x.png")
        client.storage.from_.return_value.remove.assert_called_once_with(["products/x.png"])

    def test_errors_are_wrapped(self, store, client):
        client.storage.from_.return_value.upload.side_effect = RuntimeError("409 Duplicate")
        with pytest.raises(ObjectStoreError):
            store.upload("products/x.png", make_file())


def test_preview_store_release_is_idempotent():
    previews = InMemoryPreviewStore("/previews")
    ref = previews.acquire(make_file())

    assert ref.startswith("/previews/")
    assert previews.get(ref).filename == "photo.png"
    previews.release(ref)
    previews.release(ref)
    assert ref not in previews
