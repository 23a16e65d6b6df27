"""
Models for django-catalog-engine.

All models are importable from catalog_engine.models:

    from catalog_engine.models import Post, Category, PostCategory, StoredImage
"""
from .posts import Category, Post, PostCategory
from .media import StoredImage

__all__ = [
    # Catalog
    "Category",
    "Post",
    "PostCategory",
    # Media
    "StoredImage",
]
