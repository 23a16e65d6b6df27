"""
Stored image registry for django-catalog-engine.

Each row records one object written by the content-addressed media store.
The backing storage stays authoritative for existence; this table is the
browsable index of what was uploaded.
"""
import logging

from django.db import models

logger = logging.getLogger(__name__)


def read_image_dimensions(content):
    """
    Return (width, height) for a readable file object, or (None, None) if
    Pillow cannot identify the content. The file is rewound afterwards.
    """
    from PIL import Image, UnidentifiedImageError

    content.seek(0)
    try:
        with Image.open(content) as img:
            return img.size
    except (UnidentifiedImageError, OSError, EOFError, ValueError) as exc:
        logger.debug("Could not read image dimensions: %s", exc)
        return None, None
    finally:
        content.seek(0)


class StoredImage(models.Model):
    """
    Content-addressed image object.

    ``storage_key`` is derived from ``content_hash`` alone, so the same bytes
    always land on the same key no matter how often they are uploaded.
    """

    content_hash = models.CharField(
        max_length=64,
        unique=True,
        db_index=True,
        help_text="SHA256 hash of file content for deduplication",
    )
    storage_key = models.CharField(max_length=255, unique=True)
    file_size = models.PositiveIntegerField(default=0, help_text="File size in bytes")
    mime_type = models.CharField(max_length=100, blank=True)
    width = models.PositiveIntegerField(null=True, blank=True)
    height = models.PositiveIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Stored Image"
        verbose_name_plural = "Stored Images"

    def __str__(self):
        return self.storage_key

    @property
    def orientation(self):
        """Return orientation based on dimensions."""
        if not self.width or not self.height:
            return "unknown"
        if self.width > self.height:
            return "landscape"
        elif self.height > self.width:
            return "portrait"
        return "square"

    @property
    def human_file_size(self):
        """Return human-readable file size."""
        size = self.file_size
        for unit in ["B", "KB", "MB", "GB"]:
            if size < 1024:
                return f"{size:.1f} {unit}"
            size /= 1024
        return f"{size:.1f} TB"
