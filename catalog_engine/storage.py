"""
Content-addressed media store for django-catalog-engine.

Uploaded bytes are stored under a key derived from their SHA256 hash, so the
same image uploaded twice is written once and always answers with the same key.
"""
import hashlib
import logging
import re

from django.core.files.base import ContentFile
from django.core.files.storage import storages
from django.core.files.storage.handler import InvalidStorageError
from django.db import DatabaseError

from .conf import catalog_settings
from .exceptions import DatabaseUnavailable, NotFound, StorageUnavailable, ValidationError
from .models import StoredImage
from .models.media import read_image_dimensions

logger = logging.getLogger(__name__)


def get_media_storage():
    """Return the storage backend configured for cover images."""
    try:
        return storages[catalog_settings.MEDIA_STORAGE_ALIAS]
    except InvalidStorageError:
        return storages["default"]


class ContentAddressStore:
    """
    Deduplicating image store on top of a Django storage backend.

    The backend must overwrite on save rather than pick an alternative name
    (``FileSystemStorage(allow_overwrite=True)``, ``S3Storage(file_overwrite=True)``).
    """

    def __init__(self, storage=None, prefix=None, using=None):
        self.storage = storage if storage is not None else get_media_storage()
        self.prefix = catalog_settings.MEDIA_KEY_PREFIX if prefix is None else prefix
        self.using = using or catalog_settings.DATABASE_ALIAS
        self._key_re = re.compile(rf"^{re.escape(self.prefix)}[0-9a-f]{{64}}$")

    @staticmethod
    def fingerprint(data):
        return hashlib.sha256(data).hexdigest()

    def key_for(self, fingerprint):
        return f"{self.prefix}{fingerprint}"

    def is_valid_key(self, key):
        """Check that ``key`` has the shape of a key produced by ``put``."""
        return isinstance(key, str) and bool(self._key_re.match(key))

    def put(self, data, content_type=""):
        """
        Store ``data`` and return its content-derived key.

        Safe to retry: a second put of the same bytes finds the object and
        skips the upload.

        Raises:
            StorageUnavailable: the backend failed or renamed the object.
        """
        return self._store(self.fingerprint(data), ContentFile(data), content_type)

    def put_file(self, uploaded_file):
        """
        Validate and store a Django ``UploadedFile``.

        Raises:
            ValidationError: unsupported content type or file too large.
        """
        content_type = getattr(uploaded_file, "content_type", "") or ""
        if content_type not in catalog_settings.ALLOWED_IMAGE_TYPES:
            raise ValidationError(f"Unsupported image type: {content_type or 'unknown'}")

        max_bytes = catalog_settings.MEDIA_MAX_SIZE_MB * 1024 * 1024
        if uploaded_file.size > max_bytes:
            raise ValidationError(
                f"Image exceeds {catalog_settings.MEDIA_MAX_SIZE_MB} MB limit"
            )

        hasher = hashlib.sha256()
        for chunk in uploaded_file.chunks():
            hasher.update(chunk)
        return self._store(hasher.hexdigest(), uploaded_file, content_type)

    def public_url(self, key, verify=False):
        """
        Return the public URL for ``key``.

        The URL is derived without contacting the backend; existence is
        only checked when ``verify`` is set.
        """
        if not self.is_valid_key(key):
            raise ValidationError(f"Malformed image key: {key}")
        if verify and not self._exists(key):
            raise NotFound("Image", key)
        try:
            return self.storage.url(key)
        except Exception as exc:
            raise StorageUnavailable(f"Could not build URL for {key}") from exc

    def _store(self, fingerprint, content, content_type):
        key = self.key_for(fingerprint)
        width, height = read_image_dimensions(content)

        if self._exists(key):
            logger.debug("Media cache hit for %s", key)
        else:
            self._write(key, content)
            logger.info("Stored %d bytes at %s", content.size, key)

        self._register(
            fingerprint,
            storage_key=key,
            file_size=content.size,
            mime_type=content_type,
            width=width,
            height=height,
        )
        return key

    def _exists(self, key):
        try:
            return self.storage.exists(key)
        # Backends raise their own transport errors (boto, google-cloud, ...).
        except Exception as exc:
            logger.warning("Storage lookup failed for %s", key, exc_info=True)
            raise StorageUnavailable(f"Storage lookup failed: {exc}") from exc

    def _write(self, key, content):
        try:
            name = self.storage.save(key, content)
        except Exception as exc:
            logger.warning("Storage upload failed for %s", key, exc_info=True)
            raise StorageUnavailable(f"Upload failed: {exc}") from exc

        if name != key:
            raise StorageUnavailable(
                f"Storage backend saved {key} as {name}; enable overwrite on the backend"
            )

    def _register(self, fingerprint, **fields):
        try:
            StoredImage.objects.using(self.using).get_or_create(
                content_hash=fingerprint, defaults=fields
            )
        except DatabaseError as exc:
            logger.warning(
                "Could not register stored image %s", fields["storage_key"], exc_info=True
            )
            raise DatabaseUnavailable(f"Could not register image: {exc}") from exc
