"""
Catalog service: the entry points the API surface calls.

Mutations are authorized through the access gate before the repository is
touched; reads go straight to the repository.
"""
import logging

from .auth import AccessGate
from .exceptions import InvalidReference, NotFound, ValidationError
from .repository import CatalogRepository
from .storage import ContentAddressStore

logger = logging.getLogger(__name__)


class CatalogService:
    """Policy layer over CatalogRepository."""

    def __init__(self, repository, gate, store):
        self.repository = repository
        self.gate = gate
        self.store = store

    # Reads

    def list_posts(self):
        return self.repository.list_posts()

    def get_post(self, post_id):
        return self.repository.get_post(post_id)

    def list_categories(self):
        return self.repository.list_categories()

    def cover_image_url(self, key, verify=False):
        return self.store.public_url(key, verify=verify)

    # Posts

    def create_post(self, credential, title, content, cover_image_key=None, category_ids=()):
        identity = self.gate.authorize(credential)
        cover_image_key = self._check_cover_key(cover_image_key)

        try:
            post = self.repository.create_post(
                title=title,
                content=content,
                cover_image_key=cover_image_key,
                category_ids=category_ids,
            )
        except NotFound as exc:
            if exc.entity == "Category":
                raise InvalidReference(exc.identifier) from exc
            raise

        logger.info("User %s created post %s", identity.user_id, post.pk)
        return post

    def update_post(self, credential, post_id, title, content, cover_image_key, category_ids):
        identity = self.gate.authorize(credential)
        cover_image_key = self._check_cover_key(cover_image_key)

        try:
            post = self.repository.update_post(
                post_id,
                title=title,
                content=content,
                cover_image_key=cover_image_key,
                category_ids=category_ids,
            )
        except NotFound as exc:
            if exc.entity == "Category":
                raise InvalidReference(exc.identifier) from exc
            raise

        logger.info("User %s updated post %s", identity.user_id, post_id)
        return post

    def delete_post(self, credential, post_id):
        identity = self.gate.authorize(credential)
        self.repository.delete_post(post_id)
        logger.info("User %s deleted post %s", identity.user_id, post_id)

    # Categories

    def create_category(self, credential, name):
        identity = self.gate.authorize(credential)
        category = self.repository.create_category(name)
        logger.info("User %s created category %s", identity.user_id, category.pk)
        return category

    def delete_category(self, credential, category_id):
        identity = self.gate.authorize(credential)
        self.repository.delete_category(category_id)
        logger.info("User %s deleted category %s", identity.user_id, category_id)

    # Media

    def upload_cover_image(self, credential, uploaded_file):
        """
        Store an uploaded cover image and return ``(key, url)``.

        Runs outside any catalog transaction; attach the key to a post with a
        separate create/update call once this returns.
        """
        identity = self.gate.authorize(credential)
        key = self.store.put_file(uploaded_file)
        logger.info("User %s uploaded cover image %s", identity.user_id, key)
        return key, self.store.public_url(key)

    # Helpers

    def _check_cover_key(self, key):
        if not key:
            return None
        if not self.store.is_valid_key(key):
            raise ValidationError(
                f"Cover image key {key!r} was not issued by the media store",
                fields={"coverImageKey": ["invalid"]},
            )
        return key


def build_catalog_service():
    """Assemble the service from settings."""
    return CatalogService(
        repository=CatalogRepository(),
        gate=AccessGate(),
        store=ContentAddressStore(),
    )
