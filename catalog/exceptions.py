class CatalogError(Exception):
    """Base class for errors raised by the catalog core."""


class ValidationError(CatalogError):
    """Input breaks a structural or business rule. Raised before any write."""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = list(errors) if errors else [message]

    @classmethod
    def from_errors(cls, errors):
        return cls('; '.join(errors), errors=errors)


class InvalidDateError(ValidationError):
    pass


class NotFoundError(CatalogError):
    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} with id {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class PersistenceError(CatalogError):
    """A store operation failed. The underlying error is kept as __cause__."""


class SearchIndexError(PersistenceError):
    pass
