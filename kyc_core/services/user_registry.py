"""
User Registry Service.

Registration and profile updates for identity owners.
"""

from datetime import datetime
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from kyc_core.domain.registration import (
    MobileVerified,
    RegistrationEvent,
    RegistrationState,
    SubmitDetails,
    advance,
)
from kyc_core.errors import NotFound, ValidationError
from kyc_core.models import User
from kyc_core.services.unit_of_work import unit_of_work
from kyc_core.validation import is_valid_mobile


def _clean_email(email: Optional[str]) -> str:
    email = (email or "").strip().lower()
    if "@" not in email:
        raise ValidationError("email")
    return email


def _clean_phone(phone: Optional[str]) -> Optional[str]:
    if phone is None or not phone.strip():
        return None
    phone = "".join(ch for ch in phone if ch.isdigit())
    if not is_valid_mobile(phone):
        raise ValidationError("phone")
    return phone


class UserRegistry:
    """User registration and profile service. Users are never deleted."""

    def __init__(self, db: Session):
        self.db = db

    def register(self, display_name: str, email: str, phone: Optional[str] = None) -> User:
        """
        Register a user.

        Raises:
            ValidationError: Blank name, malformed email/phone, or email taken
        """
        display_name = (display_name or "").strip()
        if not display_name:
            raise ValidationError("display_name")
        email = _clean_email(email)
        phone = _clean_phone(phone)

        self._check_email_free(email)
        return self._create(User(display_name=display_name, email=email, phone=phone))

    def advance_registration(
        self,
        state: RegistrationState,
        event: RegistrationEvent
    ) -> Tuple[RegistrationState, Optional[User]]:
        """
        Move the onboarding wizard one step.

        The user is created once the mobile number is confirmed, under the
        id of the principal the external OTP check authenticated. Details
        are checked again at that point since the state may have
        round-tripped through the client.

        Returns:
            The next state, and the new User on the mobile step (else None)

        Raises:
            InvalidState: The current step does not accept the event
            ValidationError: Malformed payload, email taken, or user exists
        """
        next_state = advance(state, event)

        if isinstance(event, SubmitDetails):
            self._check_email_free(next_state.email)
            return next_state, None

        if isinstance(event, MobileVerified):
            details = advance(RegistrationState(), SubmitDetails(
                display_name=state.display_name,
                email=state.email,
                phone=state.phone,
            ))
            if self.get(event.user_id) is not None:
                raise ValidationError("user_id", "User already registered")
            self._check_email_free(details.email)
            user = self._create(User(
                id=event.user_id,
                display_name=details.display_name,
                email=details.email,
                phone=details.phone,
            ))
            return next_state, user

        return next_state, None

    def update_profile(
        self,
        user_id: UUID,
        display_name: Optional[str] = None,
        phone: Optional[str] = None
    ) -> User:
        """Update mutable profile fields; None leaves a field unchanged."""
        user = self.get(user_id)
        if user is None:
            raise NotFound("user", user_id)

        with unit_of_work(self.db, "user", user_id):
            if display_name is not None:
                display_name = display_name.strip()
                if not display_name:
                    raise ValidationError("display_name")
                user.display_name = display_name
            if phone is not None:
                user.phone = _clean_phone(phone)
            user.updated_at = datetime.utcnow()
        return user

    def get(self, user_id: UUID) -> Optional[User]:
        """Get user by ID."""
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def _check_email_free(self, email: str) -> None:
        if self.get_by_email(email) is not None:
            raise ValidationError("email", "Email already registered")

    def _create(self, user: User) -> User:
        with unit_of_work(self.db, "user", user.id):
            self.db.add(user)
        return user
