"""
Configuration settings for django-catalog-engine.

Override these in your Django settings.py:

    CATALOG_ENGINE = {
        'MEDIA_KEY_PREFIX': 'private/',
        'IDENTITY_PROVIDER': 'catalog_engine.auth.HttpIdentityProvider',
        'IDENTITY_PROVIDER_OPTIONS': {
            'url': 'https://<project>.supabase.co/auth/v1/user',
            'api_key': '<anon key>',
        },
        ...
    }

Cover images are written to the storage registered under
``STORAGES['catalog_media']`` when present, otherwise ``STORAGES['default']``.
The backend must overwrite existing names instead of renaming, e.g.:

    STORAGES = {
        'catalog_media': {
            'BACKEND': 'django.core.files.storage.FileSystemStorage',
            'OPTIONS': {'allow_overwrite': True},
        },
        ...
    }
"""
from django.conf import settings

DEFAULTS = {
    # Media
    "MEDIA_KEY_PREFIX": "private/",
    "MEDIA_STORAGE_ALIAS": "catalog_media",
    "MEDIA_MAX_SIZE_MB": 10,
    "ALLOWED_IMAGE_TYPES": ["image/jpeg", "image/png", "image/gif", "image/webp"],

    # Categories
    "CATEGORY_NAME_MIN_LENGTH": 2,
    "CATEGORY_NAME_MAX_LENGTH": 16,
    "CATEGORY_NAME_CASE_INSENSITIVE": False,

    # Database alias used by the repository
    "DATABASE_ALIAS": "default",

    # Identity provider used by the access gate
    "IDENTITY_PROVIDER": "catalog_engine.auth.HttpIdentityProvider",
    "IDENTITY_PROVIDER_OPTIONS": {},
}


class CatalogEngineSettings:
    """
    Lazy settings object that reads from Django settings.

    Access via: from catalog_engine.conf import catalog_settings
    """

    def __getattr__(self, name):
        if name not in DEFAULTS:
            raise AttributeError(f"Invalid catalog_engine setting: {name}")

        user_settings = getattr(settings, "CATALOG_ENGINE", {})
        return user_settings.get(name, DEFAULTS[name])


catalog_settings = CatalogEngineSettings()
