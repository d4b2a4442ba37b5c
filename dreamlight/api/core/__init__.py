"""API Core - Shared utilities for API routes.

This package provides:
- Unified response builders (success_response, error_response)
- Exception handlers mapping domain errors onto HTTP responses
- Per-client rate limiting for /api routes

Usage:
    from dreamlight.api.core import success_response, paged_response
"""

from .handlers import register_exception_handlers
from .rate_limit import RateLimiter
from .response import (
    error_response,
    paged_response,
    rate_limited,
    success_response,
)

__all__ = [
    # Response utilities
    "success_response",
    "paged_response",
    "error_response",
    "rate_limited",
    # Handlers
    "register_exception_handlers",
    # Rate limiting
    "RateLimiter",
]
