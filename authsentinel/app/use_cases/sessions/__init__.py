"""
Session Management Use Cases
"""

from .sessions_use_case import SessionsUseCase
from .dtos import RevokeSessionResponse, SessionInfo, SessionListResponse

__all__ = [
    "SessionsUseCase",
    "RevokeSessionResponse",
    "SessionInfo",
    "SessionListResponse",
]
