import logging

from flask import current_app
from flask_jwt_extended import create_access_token, create_refresh_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from app.enums import AccountType, UserRole, VerificationStatus
from app.errors import EmailNotVerified, IntegrityConflict, NotFound, ValidationFailed
from app.models.base import utcnow
from app.models.onboarding import BrandVerificationRequest
from app.models.user import User
from app.security import service_session

logger = logging.getLogger(__name__)

EMAIL_VERIFICATION_PURPOSE = "email_verification"


class AuthService:
    """Sign-up, sign-in and email confirmation"""

    @staticmethod
    def register_user(email: str, password: str, account_type: str = AccountType.PERSONAL.value, **kwargs):
        """Create a principal; the bootstrap hook adds profile, cart and stats.

        Returns the user and an email verification token. The account stays
        pending until the token is redeemed.
        """
        email = email.strip().lower()
        gateway = service_session()

        with gateway.atomic():
            if User.query.filter_by(email=email).first():
                raise IntegrityConflict("Email already registered")

            metadata = {
                "account_type": account_type,
                "full_name": kwargs.get("full_name"),
            }
            if account_type == AccountType.BRAND.value:
                metadata.update(
                    brand_name=kwargs.get("brand_name"),
                    brand_category=kwargs.get("brand_category"),
                    brand_website=kwargs.get("brand_website"),
                )

            user = User(email=email, role=UserRole.USER, user_metadata=metadata)
            user.set_password(password)
            gateway.insert(user)

            if account_type == AccountType.BRAND.value:
                gateway.insert(
                    BrandVerificationRequest(
                        profile_id=user.id,
                        brand_name=metadata["brand_name"],
                        brand_category=metadata["brand_category"],
                        brand_website=metadata["brand_website"],
                        verification_status=VerificationStatus.PENDING,
                    )
                )

        logger.info(f"Registered {account_type} account {user.id}")
        return user, AuthService.issue_email_token(user)

    @staticmethod
    def issue_email_token(user: User) -> str:
        return create_access_token(
            identity=user.id,
            additional_claims={"purpose": EMAIL_VERIFICATION_PURPOSE},
            expires_delta=current_app.config["EMAIL_TOKEN_EXPIRES"],
        )

    @staticmethod
    def confirm_email(token: str) -> User:
        try:
            claims = decode_token(token)
        except (PyJWTError, JWTExtendedException):
            raise ValidationFailed("token", "Invalid or expired token.")

        if claims.get("purpose") != EMAIL_VERIFICATION_PURPOSE:
            raise ValidationFailed("token", "Invalid or expired token.")

        gateway = service_session()
        with gateway.atomic():
            user = gateway.get(User, claims["sub"], for_update=True)
            if not user.is_verified:
                gateway.update(user, email_confirmed_at=utcnow())
        return user

    @staticmethod
    def login_user(email: str, password: str) -> dict:
        """Authenticate user and generate tokens"""
        user = User.query.filter_by(email=email.strip().lower()).first()

        if not user or not user.check_password(password):
            raise ValueError("Invalid credentials")

        if not user.is_active or user.is_deleted:
            raise NotFound("Account not found")

        if not user.is_verified:
            raise EmailNotVerified()

        gateway = service_session()
        with gateway.atomic():
            gateway.update(user, last_sign_in_at=utcnow())

        access_token = create_access_token(identity=user.id)
        refresh_token = create_refresh_token(identity=user.id)

        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "user": user.to_dict(),
        }
