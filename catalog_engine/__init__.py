"""
django-catalog-engine - A Django catalog of posts, categories and cover images.

Features:
- Content-addressed cover image storage with SHA256 deduplication
- Many-to-many post/category associations with transactional cascades
- Bearer-token access gate delegating to an external identity provider
- JSON API for reading the catalog and for admin mutations
"""

__version__ = "0.1.0"
