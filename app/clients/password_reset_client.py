"""
Password Reset Client

Drives the reset screens' sequence against the API:

    IDLE -> CODE_REQUESTED -> CODE_VERIFIED -> PASSWORD_RESET

``resend_code`` returns to CODE_REQUESTED from any non-terminal state and
issues a brand new code. Every call is one request; nothing is retried, a
failed step leaves the state where it was so the user can re-enter or resend.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

import httpx


logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "/api/v1/auth"


class ResetFlowState(str, enum.Enum):
    IDLE = "IDLE"
    CODE_REQUESTED = "CODE_REQUESTED"
    CODE_VERIFIED = "CODE_VERIFIED"
    PASSWORD_RESET = "PASSWORD_RESET"


class InvalidFlowStateError(RuntimeError):
    """An operation was called out of order."""


@dataclass(frozen=True)
class ResetResult:
    success: bool
    message: str
    status_code: int
    otp: Optional[str] = None


class PasswordResetClient:
    """
    Client side of the email OTP reset.

    Args:
        http: Configured ``httpx.AsyncClient`` (base URL, timeouts).
        prefix: Path prefix of the reset endpoints.
    """

    def __init__(self, http: httpx.AsyncClient, prefix: str = DEFAULT_PREFIX):
        self.http = http
        self.prefix = prefix.rstrip("/")
        self.state = ResetFlowState.IDLE
        self.email: Optional[str] = None
        self.code: Optional[str] = None
        self.last_message: Optional[str] = None

    def _require(self, *states: ResetFlowState) -> None:
        if self.state not in states:
            raise InvalidFlowStateError(
                f"Cannot do that while in {self.state.value}"
            )

    async def _post(self, path: str, payload: dict) -> ResetResult:
        try:
            response = await self.http.post(f"{self.prefix}{path}", json=payload)
        except httpx.RequestError as e:
            logger.warning("Password reset request to %s failed: %s", path, e)
            result = ResetResult(False, "Network error. Please try again.", 0)
            self.last_message = result.message
            return result

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        result = ResetResult(
            success=bool(body.get("success")) and response.is_success,
            message=body.get("message") or response.reason_phrase,
            status_code=response.status_code,
            otp=body.get("otp"),
        )
        self.last_message = result.message
        return result

    async def request_code(self, email: str) -> ResetResult:
        """Ask for a code. ``result.otp`` is only set by development servers."""
        self._require(ResetFlowState.IDLE)
        result = await self._post("/request-password-reset", {"email": email})
        if result.success:
            self.email = email
            self.state = ResetFlowState.CODE_REQUESTED
        return result

    async def resend_code(self) -> ResetResult:
        """Issue another code for the same email; older codes are not revoked."""
        self._require(ResetFlowState.CODE_REQUESTED, ResetFlowState.CODE_VERIFIED)
        result = await self._post("/request-password-reset", {"email": self.email})
        if result.success:
            self.code = None
            self.state = ResetFlowState.CODE_REQUESTED
        return result

    async def verify_code(self, code: str) -> ResetResult:
        self._require(ResetFlowState.CODE_REQUESTED)
        result = await self._post(
            "/verify-reset-otp", {"email": self.email, "otp": code}
        )
        if result.success:
            self.code = code
            self.state = ResetFlowState.CODE_VERIFIED
        return result

    async def complete_reset(self, new_password: str) -> ResetResult:
        self._require(ResetFlowState.CODE_VERIFIED)
        result = await self._post(
            "/reset-password-with-otp",
            {"email": self.email, "otp": self.code, "newPassword": new_password},
        )
        if result.success:
            self.state = ResetFlowState.PASSWORD_RESET
        return result
