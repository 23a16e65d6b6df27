"""
Transactional data access for posts, categories and their associations.
"""
import functools
import logging
import uuid

from django.db import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    connections,
    transaction,
)
from django.db.models import Prefetch
from django.utils import timezone

from .conf import catalog_settings
from .exceptions import DatabaseUnavailable, NotFound, ValidationError
from .models import Category, Post, PostCategory

logger = logging.getLogger(__name__)


def translate_db_errors(func):
    """Surface connectivity failures as DatabaseUnavailable."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (OperationalError, InterfaceError) as exc:
            logger.warning("Database failure in %s", func.__name__, exc_info=True)
            raise DatabaseUnavailable(str(exc)) from exc

    return wrapper


def validate_category_name(name):
    """Check category name length bounds."""
    min_length = catalog_settings.CATEGORY_NAME_MIN_LENGTH
    max_length = catalog_settings.CATEGORY_NAME_MAX_LENGTH
    if not isinstance(name, str) or not min_length <= len(name) <= max_length:
        raise ValidationError(
            f"Category name must be {min_length} to {max_length} characters",
            fields={"name": ["length"]},
        )


def as_uuid(entity, value):
    """Coerce an identifier; a value that cannot be a key cannot exist."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise NotFound(entity, value) from None


def _ordered_unique(ids):
    seen = set()
    result = []
    for value in ids:
        value = as_uuid("Category", value)
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class CatalogRepository:
    """
    Owns Post, Category and PostCategory.

    Every mutation is a single transaction on the configured database alias,
    so a partially written association set is never observable.
    """

    def __init__(self, using=None):
        self.using = using or catalog_settings.DATABASE_ALIAS

    def close(self):
        """Release the connection held for this repository's alias."""
        connections[self.using].close()

    # Reads

    def _posts(self):
        return Post.objects.using(self.using).prefetch_related(
            Prefetch("categories", queryset=Category.objects.using(self.using).order_by("name"))
        )

    @translate_db_errors
    def list_posts(self):
        """Return all posts, newest first."""
        return list(self._posts().order_by("-created_at"))

    @translate_db_errors
    def get_post(self, post_id):
        try:
            return self._posts().get(pk=as_uuid("Post", post_id))
        except Post.DoesNotExist:
            raise NotFound("Post", post_id) from None

    @translate_db_errors
    def list_categories(self):
        return list(Category.objects.using(self.using).order_by("name"))

    @translate_db_errors
    def get_category(self, category_id):
        try:
            return Category.objects.using(self.using).get(pk=as_uuid("Category", category_id))
        except Category.DoesNotExist:
            raise NotFound("Category", category_id) from None

    # Posts

    @translate_db_errors
    def create_post(self, title, content, cover_image_key=None, category_ids=()):
        """
        Create a post together with one association per category.

        Raises:
            ValidationError: empty title or content.
            NotFound: a category id does not exist; nothing is written.
        """
        self._validate_post_fields(title, content)
        category_ids = _ordered_unique(category_ids)

        try:
            with transaction.atomic(using=self.using):
                self._lock_categories(category_ids)
                post = Post.objects.using(self.using).create(
                    title=title,
                    content=content,
                    cover_image_key=cover_image_key or None,
                )
                self._link(post, category_ids)
        except IntegrityError as exc:
            self._raise_missing_category(category_ids, exc)

        logger.info("Created post %s with %d categories", post.pk, len(category_ids))
        return self.get_post(post.pk)

    @translate_db_errors
    def update_post(self, post_id, title, content, cover_image_key, category_ids):
        """
        Replace a post's fields and its whole category set.

        Only the difference between the stored and supplied sets is written:
        dropped associations are deleted, new ones inserted.

        Raises:
            ValidationError: empty title or content.
            NotFound: the post or a category id does not exist.
        """
        self._validate_post_fields(title, content)
        category_ids = _ordered_unique(category_ids)

        try:
            with transaction.atomic(using=self.using):
                try:
                    post = (
                        Post.objects.using(self.using)
                        .select_for_update()
                        .get(pk=as_uuid("Post", post_id))
                    )
                except Post.DoesNotExist:
                    raise NotFound("Post", post_id) from None

                self._lock_categories(category_ids)

                links = PostCategory.objects.using(self.using).filter(post=post)
                current = set(links.values_list("category_id", flat=True))
                wanted = set(category_ids)

                removed = current - wanted
                if removed:
                    links.filter(category_id__in=removed).delete()
                self._link(post, [pk for pk in category_ids if pk not in current])

                post.title = title
                post.content = content
                post.cover_image_key = cover_image_key or None
                post.updated_at = timezone.now()
                post.save(
                    using=self.using,
                    update_fields=["title", "content", "cover_image_key", "updated_at"],
                )
        except IntegrityError as exc:
            self._raise_missing_category(category_ids, exc)

        logger.info(
            "Updated post %s (+%d/-%d categories)",
            post_id,
            len(wanted - current),
            len(removed),
        )
        return self.get_post(post_id)

    @translate_db_errors
    def delete_post(self, post_id):
        """Delete a post and its associations."""
        with transaction.atomic(using=self.using):
            deleted, _ = Post.objects.using(self.using).filter(pk=as_uuid("Post", post_id)).delete()
        if not deleted:
            raise NotFound("Post", post_id)
        logger.info("Deleted post %s", post_id)

    # Categories

    @translate_db_errors
    def create_category(self, name):
        """
        Create a category.

        Raises:
            ValidationError: name out of bounds or already taken.
        """
        validate_category_name(name)

        try:
            with transaction.atomic(using=self.using):
                if self._name_taken(name):
                    raise self._duplicate(name)
                category = Category.objects.using(self.using).create(name=name)
        except IntegrityError as exc:
            raise self._duplicate(name) from exc

        logger.info("Created category %s (%s)", category.pk, name)
        return category

    @translate_db_errors
    def delete_category(self, category_id):
        """Delete a category and its associations; posts are kept."""
        with transaction.atomic(using=self.using):
            deleted, _ = (
                Category.objects.using(self.using)
                .filter(pk=as_uuid("Category", category_id))
                .delete()
            )
        if not deleted:
            raise NotFound("Category", category_id)
        logger.info("Deleted category %s", category_id)

    # Helpers

    def _validate_post_fields(self, title, content):
        errors = {}
        if not title:
            errors["title"] = ["required"]
        if not content:
            errors["content"] = ["required"]
        if errors:
            raise ValidationError("Title and content are required", fields=errors)

    def _lock_categories(self, category_ids):
        if not category_ids:
            return
        found = set(
            Category.objects.using(self.using)
            .select_for_update()
            .filter(pk__in=category_ids)
            .values_list("pk", flat=True)
        )
        for category_id in category_ids:
            if category_id not in found:
                raise NotFound("Category", category_id)

    def _link(self, post, category_ids):
        if category_ids:
            PostCategory.objects.using(self.using).bulk_create(
                [PostCategory(post=post, category_id=pk) for pk in category_ids]
            )

    def _raise_missing_category(self, category_ids, exc):
        # A category can vanish between check and insert on backends without row locks.
        existing = set(
            Category.objects.using(self.using)
            .filter(pk__in=category_ids)
            .values_list("pk", flat=True)
        )
        for category_id in category_ids:
            if category_id not in existing:
                raise NotFound("Category", category_id) from exc
        raise DatabaseUnavailable(f"Integrity failure: {exc}") from exc

    def _name_taken(self, name):
        categories = Category.objects.using(self.using)
        if catalog_settings.CATEGORY_NAME_CASE_INSENSITIVE:
            return categories.filter(name__iexact=name).exists()
        return categories.filter(name=name).exists()

    def _duplicate(self, name):
        return ValidationError(
            f"Category '{name}' already exists",
            fields={"name": ["duplicate"]},
        )
