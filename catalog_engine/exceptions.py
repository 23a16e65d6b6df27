"""
Error taxonomy for django-catalog-engine.

Every error carries the HTTP status the API surface answers with.
"""


class CatalogError(Exception):
    """Base class for all catalog errors."""

    status_code = 500
    default_message = "Catalog operation failed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_dict(self):
        return {"error": self.message}


class ValidationError(CatalogError):
    """Malformed or out-of-bounds input."""

    status_code = 400
    default_message = "Invalid input"

    def __init__(self, message=None, fields=None):
        super().__init__(message)
        self.fields = fields or {}

    def as_dict(self):
        data = super().as_dict()
        if self.fields:
            data["fields"] = self.fields
        return data


class NotFound(CatalogError):
    """Referenced entity does not exist."""

    status_code = 404
    default_message = "Not found"

    def __init__(self, entity, identifier, message=None):
        self.entity = entity
        self.identifier = identifier
        super().__init__(message or f"{entity} {identifier} not found")


class InvalidReference(CatalogError):
    """A post mutation referenced a category that does not exist."""

    status_code = 400

    def __init__(self, category_id):
        self.category_id = category_id
        super().__init__(f"Category {category_id} does not exist")

    def as_dict(self):
        data = super().as_dict()
        data["categoryId"] = str(self.category_id)
        return data


class Unauthorized(CatalogError):
    """Missing, malformed or rejected credential."""

    status_code = 401
    default_message = "Authentication required"


class StorageUnavailable(CatalogError):
    """Object storage backend failed."""

    status_code = 503
    default_message = "Object storage is unavailable"


class DatabaseUnavailable(CatalogError):
    """Relational store failed."""

    status_code = 503
    default_message = "Database is unavailable"
