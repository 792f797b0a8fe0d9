"""Error taxonomy shared by the core, the stores and the outer surfaces."""


class CrudboxError(Exception):
    """Base class for all domain errors."""


class NotFoundError(CrudboxError):
    """A project or endpoint addressed by a management operation does not exist."""


class ValidationError(CrudboxError):
    """Input rejected at the boundary before it reaches the store."""


class UnsupportedMediaTypeError(ValidationError):
    """An upload whose declared content type cannot hold an OpenAPI document."""


class ParseError(CrudboxError):
    """An uploaded OpenAPI document is not valid structured data."""


class ConflictError(CrudboxError):
    """A uniqueness rule was violated."""


class StoreUnavailableError(CrudboxError):
    """The backing store cannot be reached; in-flight batches must stop."""
