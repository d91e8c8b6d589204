"""
Security Use Cases
"""

from .login_history_use_case import LoginHistoryUseCase
from .dtos import LoginAttemptInfo, LoginHistoryResponse

__all__ = [
    "LoginHistoryUseCase",
    "LoginAttemptInfo",
    "LoginHistoryResponse",
]
