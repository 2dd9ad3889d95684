import logging

from supabase import Client

from ophthalmotech.domains.auth.models import (
    AuthTokens,
    Session,
    SessionState,
    VerifyOTPResponse,
)
from ophthalmotech.domains.users.models import (
    Department,
    Role,
    UserCreate,
    UserProfile,
    UserStatus,
)
from ophthalmotech.domains.users.service import UserService
from ophthalmotech.shared.exceptions import InvalidDataError, OTPVerificationError
from ophthalmotech.shared.permissions.services import effective_permissions

logger = logging.getLogger(__name__)


class AuthService:
    """One-time-passcode sign in backed by Supabase Auth."""

    def __init__(self, db: Client):
        self.db = db

    async def send_otp(self, email: str) -> None:
        """
        Send a one-time passcode to the given email address.

        Raises:
            InvalidDataError: If the auth provider rejects the request
        """
        try:
            self.db.auth.sign_in_with_otp({"email": email})
        except Exception as e:
            logger.error("Failed to send OTP to %s: %s", email, e)
            raise InvalidDataError(f"Failed to send verification code: {e}")

    async def verify_otp(self, email: str, code: str) -> VerifyOTPResponse:
        """
        Verify a passcode and make sure the user has a profile.

        New users get a default active viewer profile in the administration
        department; returning users get their last login refreshed.

        Returns:
            Session tokens and the user's profile
        """
        try:
            response = self.db.auth.verify_otp(
                {"email": email, "token": code, "type": "email"}
            )
        except Exception as e:
            logger.warning("OTP verification failed for %s: %s", email, e)
            raise OTPVerificationError()

        if response.user is None or response.session is None:
            raise OTPVerificationError()

        auth_user = response.user
        profile = await self._ensure_profile(
            auth_user.id,
            auth_user.email or email,
            (auth_user.user_metadata or {}).get("name"),
        )

        session = response.session
        tokens = AuthTokens(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            expires_in=session.expires_in,
        )
        return VerifyOTPResponse(tokens=tokens, user=profile)

    async def _ensure_profile(
        self, user_id: str, email: str, name: str | None
    ) -> UserProfile:
        users = UserService(self.db, actor_id=user_id)
        profile = await users.get_user_by_id(user_id)
        if profile is None:
            logger.info("Creating default profile for user %s", user_id)
            return await users.create_user(
                UserCreate(
                    uid=user_id,
                    email=email,
                    first_name=name or email.split("@")[0],
                    role=Role.viewer,
                    department=Department.administration,
                    status=UserStatus.active,
                )
            )

        profile = await users.touch_last_login(user_id)
        await users.log_activity(
            user_id=user_id,
            action_type="login",
            resource_type="session",
            description="Signed in with one-time passcode",
        )
        return profile

    async def logout(self, session: Session) -> None:
        """Sign out with the auth provider. Errors are logged, not raised."""
        try:
            self.db.auth.sign_out()
        except Exception as e:
            logger.error("Logout error for user %s: %s", session.user_id, e)

    async def get_session_state(self, session: Session) -> SessionState:
        """Describe the session, including the caller's effective permissions."""
        profile = None
        if session.identity is not None:
            profile = await UserService(self.db).get_user_by_id(session.identity)

        permissions = (
            sorted(p.value for p in effective_permissions(profile)) if profile else []
        )
        return SessionState(
            user_id=session.user_id,
            email=session.email,
            is_authenticated=session.is_authenticated,
            profile=profile,
            permissions=permissions,
        )
