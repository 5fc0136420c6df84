"""
Tablehop Backend - Clients Module

HTTP clients for consumers of this API.
"""

from app.clients.password_reset_client import (
    InvalidFlowStateError,
    PasswordResetClient,
    ResetFlowState,
    ResetResult,
)

__all__ = [
    "InvalidFlowStateError",
    "PasswordResetClient",
    "ResetFlowState",
    "ResetResult",
]
