"""
Post, Category and PostCategory models for django-catalog-engine.
"""
import uuid

from django.core.validators import MinLengthValidator
from django.db import models
from django.utils import timezone

from ..conf import catalog_settings


class Category(models.Model):
    """
    Flat category for organizing posts.

    Names are unique across the catalog. Deleting a category removes its
    associations but never the posts themselves.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(
        max_length=catalog_settings.CATEGORY_NAME_MAX_LENGTH,
        unique=True,
        validators=[MinLengthValidator(catalog_settings.CATEGORY_NAME_MIN_LENGTH)],
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "Categories"

    def __str__(self):
        return self.name

    @property
    def post_count(self):
        """Return count of posts in this category."""
        return self.post_links.count()


class Post(models.Model):
    """
    Catalog article.

    ``cover_image_key`` is a weak reference into the content-addressed media
    store; deleting a post never deletes the image. ``updated_at`` stays empty
    until the first update.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    content = models.TextField()
    cover_image_key = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Storage key returned by the content-addressed media store",
    )
    categories = models.ManyToManyField(
        Category,
        through="PostCategory",
        related_name="posts",
        blank=True,
    )

    # Timestamps
    created_at = models.DateTimeField(default=timezone.now, editable=False, db_index=True)
    updated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.title

    @property
    def category_list(self):
        """Return the resolved categories, ordered by name."""
        return list(self.categories.all())

    @property
    def category_ids(self):
        return {category.pk for category in self.category_list}


class PostCategory(models.Model):
    """
    Junction table linking posts to categories.

    Rows have no lifecycle of their own: they are written and removed only
    as part of a post or category mutation.
    """

    post = models.ForeignKey(
        Post,
        on_delete=models.CASCADE,
        related_name="category_links",
    )
    category = models.ForeignKey(
        Category,
        on_delete=models.CASCADE,
        related_name="post_links",
    )

    class Meta:
        verbose_name = "Post Category"
        verbose_name_plural = "Post Categories"
        constraints = [
            models.UniqueConstraint(
                fields=["post", "category"],
                name="catalog_engine_unique_post_category",
            ),
        ]

    def __str__(self):
        return f"{self.post} - {self.category}"
