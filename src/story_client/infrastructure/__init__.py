"""Concrete infrastructure implementations."""

from .http import ApiClient, RequestDescriptor, build_api_client
from .resilience import RetryPolicy, is_retryable, with_retry

__all__ = [
    "ApiClient",
    "RequestDescriptor",
    "RetryPolicy",
    "build_api_client",
    "is_retryable",
    "with_retry",
]
