"""Admin use cases for system administration operations."""

from .sweep_expired_sessions_use_case import (
    SweepExpiredSessionsUseCase,
    SweepExpiredSessionsResponse,
)
from .suspend_principal_use_case import SuspendPrincipalUseCase, SuspendPrincipalResponse

__all__ = [
    "SweepExpiredSessionsUseCase",
    "SweepExpiredSessionsResponse",
    "SuspendPrincipalUseCase",
    "SuspendPrincipalResponse",
]
