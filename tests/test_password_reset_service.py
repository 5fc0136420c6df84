"""
Password Reset Service Unit Tests

Tests for issuing, verifying and redeeming reset codes.
"""

from datetime import timedelta

import pytest

from app.core.exceptions import (
    NotFoundError,
    StorageError,
    TooManyRequestsError,
    ValidationError,
)
from app.core.security import hash_otp, hash_password, verify_password
from app.services import password_reset_service
from app.services.password_reset_service import (
    INVALID_CODE_MESSAGE,
    INVALID_SESSION_MESSAGE,
)


EMAIL = "a@x.com"


@pytest.fixture
def fixed_codes(monkeypatch):
    """Make generate_otp hand out the given codes in order."""
    def _install(*codes):
        it = iter(codes)
        monkeypatch.setattr(password_reset_service, "generate_otp", lambda: next(it))
    return _install


class TestRequestCode:
    """Tests for issuing codes."""

    @pytest.mark.asyncio
    async def test_issues_six_digit_code_valid_for_ten_minutes(self, service, otp_store, clock):
        issued = await service.request_code(EMAIL)

        assert len(issued.otp) == 6 and issued.otp.isdigit()
        assert 100000 <= int(issued.otp) <= 999999
        assert (issued.expires_at - clock.now).total_seconds() == 600

        [record] = otp_store.records
        assert record.email == EMAIL
        assert record.is_used is False
        assert record.created_at == clock.now

    @pytest.mark.asyncio
    async def test_code_is_stored_hashed(self, service, otp_store):
        issued = await service.request_code(EMAIL)

        [record] = otp_store.records
        assert record.otp_hash != issued.otp
        assert record.otp_hash == hash_otp(issued.otp)

    @pytest.mark.asyncio
    async def test_code_is_delivered(self, service, sender):
        issued = await service.request_code(EMAIL)

        assert sender.sent == [(EMAIL, issued.otp)]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", [None, "", "   "])
    async def test_requires_email(self, service, otp_store, email):
        with pytest.raises(ValidationError) as exc_info:
            await service.request_code(email)

        assert exc_info.value.message == "Email is required"
        assert exc_info.value.status_code == 400
        assert otp_store.records == []

    @pytest.mark.asyncio
    async def test_email_is_normalized(self, service, otp_store):
        issued = await service.request_code("  A@X.com ")

        assert issued.email == EMAIL
        assert otp_store.records[0].email == EMAIL

    @pytest.mark.asyncio
    async def test_no_format_validation(self, service, otp_store):
        await service.request_code("not-an-email")

        assert len(otp_store.records) == 1

    @pytest.mark.asyncio
    async def test_reissue_keeps_prior_codes(self, service, otp_store, fixed_codes):
        fixed_codes("111111", "222222")

        await service.request_code(EMAIL)
        await service.request_code(EMAIL)

        assert len(otp_store.for_email(EMAIL)) == 2

    @pytest.mark.asyncio
    async def test_reissue_can_invalidate_prior_codes(self, make_service, otp_store, fixed_codes):
        service = make_service(OTP_INVALIDATE_ON_REISSUE=True)
        fixed_codes("111111", "222222")

        await service.request_code(EMAIL)
        await service.request_code(EMAIL)

        with pytest.raises(NotFoundError):
            await service.verify_code(EMAIL, "111111")
        await service.verify_code(EMAIL, "222222")

    @pytest.mark.asyncio
    async def test_expired_codes_are_cleared_lazily(self, service, otp_store, clock):
        await service.request_code(EMAIL)
        await service.request_code("other@x.com")
        clock.advance(minutes=11)

        await service.request_code(EMAIL)

        assert len(otp_store.for_email(EMAIL)) == 1
        # other emails are left for the periodic sweep
        assert len(otp_store.for_email("other@x.com")) == 1

    @pytest.mark.asyncio
    async def test_cooldown_rejects_rapid_resend(self, make_service, clock):
        service = make_service(OTP_RESEND_COOLDOWN_SECONDS=60)

        await service.request_code(EMAIL)
        clock.advance(seconds=15)

        with pytest.raises(TooManyRequestsError) as exc_info:
            await service.request_code(EMAIL)

        assert exc_info.value.retry_after == 45
        assert exc_info.value.headers == {"Retry-After": "45"}

        clock.advance(seconds=45)
        await service.request_code(EMAIL)

    @pytest.mark.asyncio
    async def test_storage_failure_is_generic(self, service, otp_store):
        otp_store.fail = True

        with pytest.raises(StorageError) as exc_info:
            await service.request_code(EMAIL)

        assert exc_info.value.message == "Failed to generate OTP"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_delivery_failure(self, service, sender):
        sender.ok = False

        with pytest.raises(StorageError) as exc_info:
            await service.request_code(EMAIL)

        assert exc_info.value.status_code == 500


class TestVerifyCode:
    """Tests for redeeming codes."""

    @pytest.mark.asyncio
    async def test_verifies_exactly_once(self, service, otp_store):
        issued = await service.request_code(EMAIL)

        await service.verify_code(EMAIL, issued.otp)
        assert otp_store.records[0].is_used is True

        with pytest.raises(NotFoundError) as exc_info:
            await service.verify_code(EMAIL, issued.otp)
        assert exc_info.value.message == INVALID_CODE_MESSAGE

    @pytest.mark.asyncio
    async def test_expiry_boundary(self, service, clock, fixed_codes):
        fixed_codes("111111", "222222")
        first = await service.request_code(EMAIL)
        second = await service.request_code(EMAIL)

        clock.now = first.expires_at - timedelta(seconds=1)
        await service.verify_code(EMAIL, first.otp)

        clock.now = second.expires_at + timedelta(seconds=1)
        with pytest.raises(NotFoundError):
            await service.verify_code(EMAIL, second.otp)

    @pytest.mark.asyncio
    async def test_valid_at_exact_expiry(self, service, clock):
        issued = await service.request_code(EMAIL)
        clock.now = issued.expires_at

        await service.verify_code(EMAIL, issued.otp)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "email,code",
        [
            (EMAIL, "000000"),          # wrong code
            ("nobody@x.com", None),     # no record for email
        ],
    )
    async def test_failures_share_one_message(self, service, email, code):
        issued = await service.request_code(EMAIL)

        with pytest.raises(NotFoundError) as exc_info:
            await service.verify_code(email, code or issued.otp)

        assert exc_info.value.message == INVALID_CODE_MESSAGE
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_expired_and_used_share_one_message(self, service, clock):
        used = await service.request_code(EMAIL)
        await service.verify_code(EMAIL, used.otp)
        expired = await service.request_code("b@x.com")
        clock.advance(minutes=10, seconds=1)

        messages = []
        for email, code in [(EMAIL, used.otp), ("b@x.com", expired.otp)]:
            with pytest.raises(NotFoundError) as exc_info:
                await service.verify_code(email, code)
            messages.append(exc_info.value.message)

        assert messages == [INVALID_CODE_MESSAGE, INVALID_CODE_MESSAGE]

    @pytest.mark.asyncio
    async def test_requires_email_and_code(self, service):
        with pytest.raises(ValidationError) as exc_info:
            await service.verify_code(EMAIL, "")

        assert exc_info.value.message == "Email and OTP are required"

    @pytest.mark.asyncio
    async def test_only_the_matched_record_is_flipped(self, service, otp_store, fixed_codes):
        fixed_codes("111111", "222222")
        await service.request_code(EMAIL)
        await service.request_code(EMAIL)

        await service.verify_code(EMAIL, "111111")

        flags = {r.otp_hash: r.is_used for r in otp_store.records}
        assert flags == {hash_otp("111111"): True, hash_otp("222222"): False}

    @pytest.mark.asyncio
    async def test_newest_duplicate_is_selected(self, service, otp_store, clock, fixed_codes):
        fixed_codes("111111", "111111")
        await service.request_code(EMAIL)
        clock.advance(seconds=5)
        await service.request_code(EMAIL)

        await service.verify_code(EMAIL, "111111")

        newest = max(otp_store.records, key=lambda r: r.created_at)
        oldest = min(otp_store.records, key=lambda r: r.created_at)
        assert newest.is_used is True
        assert oldest.is_used is False

    @pytest.mark.asyncio
    async def test_lost_claim_is_rejected(self, service, otp_store, monkeypatch):
        issued = await service.request_code(EMAIL)

        async def claimed_elsewhere(otp_id):
            return False

        monkeypatch.setattr(otp_store, "claim", claimed_elsewhere)

        with pytest.raises(NotFoundError) as exc_info:
            await service.verify_code(EMAIL, issued.otp)
        assert exc_info.value.message == INVALID_CODE_MESSAGE

    @pytest.mark.asyncio
    async def test_storage_failure_is_generic(self, service, otp_store):
        issued = await service.request_code(EMAIL)
        otp_store.fail = True

        with pytest.raises(StorageError) as exc_info:
            await service.verify_code(EMAIL, issued.otp)

        assert exc_info.value.message == "Failed to verify OTP"


class TestCompleteReset:
    """Tests for setting the new password."""

    @pytest.fixture
    def user(self, accounts):
        return accounts.add_user(EMAIL, hash_password("old-password"))

    @pytest.mark.asyncio
    async def test_updates_password_and_clears_codes(self, service, otp_store, user):
        issued = await service.request_code(EMAIL)
        await service.verify_code(EMAIL, issued.otp)

        await service.complete_reset(EMAIL, issued.otp, "new-password")

        assert verify_password("new-password", user.password_hash)
        assert not verify_password("old-password", user.password_hash)
        assert otp_store.for_email(EMAIL) == []

    @pytest.mark.asyncio
    async def test_requires_prior_verification(self, service, user):
        issued = await service.request_code(EMAIL)

        with pytest.raises(NotFoundError) as exc_info:
            await service.complete_reset(EMAIL, issued.otp, "new-password")

        assert exc_info.value.message == INVALID_SESSION_MESSAGE
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_session_expires_with_code(self, service, clock, user):
        issued = await service.request_code(EMAIL)
        await service.verify_code(EMAIL, issued.otp)
        clock.advance(minutes=10, seconds=1)

        with pytest.raises(NotFoundError) as exc_info:
            await service.complete_reset(EMAIL, issued.otp, "new-password")

        assert exc_info.value.message == INVALID_SESSION_MESSAGE

    @pytest.mark.asyncio
    async def test_password_length_boundary(self, service, user):
        issued = await service.request_code(EMAIL)
        await service.verify_code(EMAIL, issued.otp)

        with pytest.raises(ValidationError) as exc_info:
            await service.complete_reset(EMAIL, issued.otp, "x" * 7)
        assert exc_info.value.message == "Password must be at least 8 characters"

        await service.complete_reset(EMAIL, issued.otp, "x" * 8)
        assert verify_password("x" * 8, user.password_hash)

    @pytest.mark.asyncio
    async def test_rejects_password_over_bcrypt_limit(self, service, otp_store, user):
        issued = await service.request_code(EMAIL)
        await service.verify_code(EMAIL, issued.otp)
        old_hash = user.password_hash

        with pytest.raises(ValidationError) as exc_info:
            await service.complete_reset(EMAIL, issued.otp, "x" * 73)
        assert exc_info.value.message == "Password must be at most 72 bytes"

        # multi-byte characters count by their encoded size
        with pytest.raises(ValidationError):
            await service.complete_reset(EMAIL, issued.otp, "é" * 37)

        assert user.password_hash == old_hash
        assert len(otp_store.for_email(EMAIL)) == 1

        await service.complete_reset(EMAIL, issued.otp, "x" * 72)
        assert verify_password("x" * 72, user.password_hash)

    @pytest.mark.asyncio
    async def test_requires_all_fields(self, service):
        with pytest.raises(ValidationError) as exc_info:
            await service.complete_reset(EMAIL, "123456", None)

        assert exc_info.value.message == "All fields are required"

    @pytest.mark.asyncio
    async def test_unknown_account(self, service):
        issued = await service.request_code("ghost@x.com")
        await service.verify_code("ghost@x.com", issued.otp)

        with pytest.raises(NotFoundError) as exc_info:
            await service.complete_reset("ghost@x.com", issued.otp, "new-password")

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "User not found"

    @pytest.mark.asyncio
    async def test_credential_update_failure(self, service, accounts, user, monkeypatch):
        issued = await service.request_code(EMAIL)
        await service.verify_code(EMAIL, issued.otp)

        async def broken(user_id, password_hash):
            raise StorageError()

        monkeypatch.setattr(accounts, "set_password_hash", broken)

        with pytest.raises(StorageError) as exc_info:
            await service.complete_reset(EMAIL, issued.otp, "new-password")

        assert exc_info.value.message == "Failed to update password"

    @pytest.mark.asyncio
    async def test_unused_sibling_codes_die_with_reset(self, service, user, fixed_codes):
        fixed_codes("111111", "222222")
        await service.request_code(EMAIL)
        await service.request_code(EMAIL)
        await service.verify_code(EMAIL, "222222")

        await service.complete_reset(EMAIL, "222222", "new-password")

        for code in ("111111", "222222"):
            with pytest.raises(NotFoundError):
                await service.verify_code(EMAIL, code)

    @pytest.mark.asyncio
    async def test_resend_scenario(self, service, otp_store, user, fixed_codes):
        fixed_codes("314159", "271828")
        otp1 = (await service.request_code(EMAIL)).otp
        otp2 = (await service.request_code(EMAIL)).otp
        assert otp1 != otp2

        # both live codes redeem independently
        await service.verify_code(EMAIL, otp1)
        await service.verify_code(EMAIL, otp2)

        await service.complete_reset(EMAIL, otp1, "new-password")

        assert otp_store.for_email(EMAIL) == []
        with pytest.raises(NotFoundError):
            await service.complete_reset(EMAIL, otp2, "another-password")
