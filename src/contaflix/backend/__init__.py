"""Client for the hosted backend."""

from contaflix.backend.client import (
    AuthenticationError,
    BackendClient,
    BackendError,
    FunctionsClient,
    RateLimitError,
    build_query_params,
)

__all__ = [
    "BackendClient",
    "FunctionsClient",
    "BackendError",
    "AuthenticationError",
    "RateLimitError",
    "build_query_params",
]
