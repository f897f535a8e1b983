"""
Shared Models
=============

Pydantic models shared across Attest services.

Models:
- ErrorResponse: uniform error body
- HealthResponse: service health check body
"""

from shared.models.common import (
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "ErrorResponse",
    "HealthResponse",
]
