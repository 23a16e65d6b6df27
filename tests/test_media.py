"""
Tests for the content-addressed media store.
"""
import hashlib
import io
from unittest import mock

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image

from catalog_engine.exceptions import NotFound, StorageUnavailable, ValidationError
from catalog_engine.models import StoredImage
from catalog_engine.storage import ContentAddressStore


def png_bytes(width=4, height=2):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color="red").save(buffer, format="PNG")
    return buffer.getvalue()


class TestPut:
    """Tests for ContentAddressStore.put."""

    def test_key_is_prefixed_sha256(self, store):
        data = b"cover image bytes"
        key = store.put(data)
        assert key == "private/" + hashlib.sha256(data).hexdigest()

    def test_put_twice_stores_once(self, store, media_storage):
        data = png_bytes()

        first = store.put(data)
        second = store.put(data)

        assert first == second
        _, files = media_storage.listdir("private")
        assert files == [first.split("/", 1)[1]]
        assert StoredImage.objects.count() == 1

    def test_cache_hit_skips_upload(self, store, media_storage):
        key = store.put(b"same bytes")

        with mock.patch.object(media_storage, "save") as save:
            assert store.put(b"same bytes") == key
        save.assert_not_called()

    def test_different_bytes_different_keys(self, store):
        assert store.put(b"one") != store.put(b"two")

    def test_records_image_dimensions(self, store):
        key = store.put(png_bytes(8, 3), content_type="image/png")

        image = StoredImage.objects.get(storage_key=key)
        assert (image.width, image.height) == (8, 3)
        assert image.mime_type == "image/png"
        assert image.orientation == "landscape"

    def test_non_image_bytes_have_no_dimensions(self, store):
        key = store.put(b"not an image")
        image = StoredImage.objects.get(storage_key=key)
        assert image.width is None
        assert image.file_size == len(b"not an image")

    def test_backend_failure(self, db):
        storage = mock.Mock()
        storage.exists.return_value = False
        storage.save.side_effect = OSError("bucket unreachable")
        store = ContentAddressStore(storage=storage)

        with pytest.raises(StorageUnavailable):
            store.put(b"data")
        assert StoredImage.objects.count() == 0

    def test_lookup_failure(self, db):
        storage = mock.Mock()
        storage.exists.side_effect = ConnectionError("timeout")
        store = ContentAddressStore(storage=storage)

        with pytest.raises(StorageUnavailable):
            store.put(b"data")
        storage.save.assert_not_called()

    def test_backend_that_renames_is_rejected(self, db):
        storage = mock.Mock()
        storage.exists.return_value = False
        storage.save.side_effect = lambda name, content: name + "_x1y2z3"
        store = ContentAddressStore(storage=storage)

        with pytest.raises(StorageUnavailable):
            store.put(b"data")


class TestKeys:
    """Tests for key shape and URL derivation."""

    def test_is_valid_key(self, store):
        key = store.put(b"bytes")
        assert store.is_valid_key(key)
        assert not store.is_valid_key("sample/nextjs.jpg")
        assert not store.is_valid_key("private/" + "A" * 64)
        assert not store.is_valid_key(key + "0")
        assert not store.is_valid_key(None)

    def test_custom_prefix(self, db, media_storage):
        store = ContentAddressStore(storage=media_storage, prefix="covers/")
        key = store.put(b"bytes")
        assert key.startswith("covers/")
        assert store.is_valid_key(key)

    def test_public_url(self, store):
        key = store.put(b"bytes")
        assert store.public_url(key) == "/media/" + key

    def test_public_url_skips_existence_by_default(self, store):
        key = store.key_for("0" * 64)
        assert store.public_url(key).endswith(key)

    def test_public_url_verify_missing(self, store):
        with pytest.raises(NotFound):
            store.public_url(store.key_for("0" * 64), verify=True)

    def test_public_url_malformed(self, store):
        with pytest.raises(ValidationError):
            store.public_url("../etc/passwd")


class TestPutFile:
    """Tests for uploads arriving as Django files."""

    def test_put_file(self, store):
        data = png_bytes()
        upload = SimpleUploadedFile("cover.png", data, content_type="image/png")
        assert store.put_file(upload) == store.key_for(hashlib.sha256(data).hexdigest())

    def test_rejects_unsupported_type(self, store):
        upload = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")
        with pytest.raises(ValidationError):
            store.put_file(upload)

    def test_rejects_oversized(self, store, settings):
        settings.CATALOG_ENGINE = {"MEDIA_MAX_SIZE_MB": 0}
        upload = SimpleUploadedFile("cover.png", png_bytes(), content_type="image/png")
        with pytest.raises(ValidationError):
            store.put_file(upload)

    def test_put_file_hashes_large_upload_by_chunks(self, store, media_storage):
        data = bytes(range(256)) * 1024
        upload = SimpleUploadedFile("cover.png", data, content_type="image/png")
        assert len(list(upload.chunks())) > 1

        key = store.put_file(upload)

        assert key == store.key_for(hashlib.sha256(data).hexdigest())
        with media_storage.open(key) as stored:
            assert stored.read() == data
        assert StoredImage.objects.get(storage_key=key).file_size == len(data)
