"""Error taxonomy shared by the pipeline, the storage adapters and the API.

Every error carries a stable ``code`` that the HTTP layer exposes to callers
instead of a stack trace.
"""


class DocRagError(Exception):
    """Base class for all service errors."""

    code = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DocRagError):
    """Missing or empty required input (name, text, question, id)."""

    code = "validation_error"

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")


class NotFoundError(DocRagError):
    """Requested document does not exist."""

    code = "not_found"

    def __init__(self, entity: str, identifier: object) -> None:
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} {identifier} not found")


class ProviderError(DocRagError):
    """Embedding or generation call failed."""

    code = "provider_error"
    retryable = False


class ProviderRateLimitError(ProviderError):
    """Provider rejected the call because of rate limiting."""

    code = "provider_rate_limited"
    retryable = True


class ProviderTransportError(ProviderError):
    """Network failure, provider timeout or provider-side 5xx."""

    code = "provider_unavailable"
    retryable = True


class ProviderAuthError(ProviderError):
    """Credentials were rejected."""

    code = "provider_auth_failed"


class ProviderResponseError(ProviderError):
    """Provider answered, but the payload was unusable."""

    code = "provider_bad_response"


class StorageError(DocRagError):
    """Persistence failure, including constraint violations."""

    code = "storage_error"


class OperationTimeoutError(DocRagError):
    """Operation exceeded its deadline."""

    code = "timeout"
