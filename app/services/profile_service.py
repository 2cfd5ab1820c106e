import logging

from app.enums import REQUIRED_SETUP_STEPS, SetupStep, VerificationStatus
from app.errors import IntegrityConflict, NotFound
from app.models.base import utcnow
from app.models.onboarding import BrandVerificationRequest, SetupProgress
from app.models.profile import Profile, SocialMediaAccount

logger = logging.getLogger(__name__)


class ProfileService:
    @staticmethod
    def get_profile(gateway, profile_id: str) -> Profile:
        profile = gateway.get(Profile, profile_id)
        if profile.is_deleted:
            raise NotFound("Profile not found")
        return profile

    @staticmethod
    def get_by_username(gateway, username: str) -> Profile:
        rows = gateway.select(Profile, Profile.username == username, Profile.deleted_at.is_(None))
        if not rows:
            raise NotFound("Profile not found")
        return rows[0]

    @staticmethod
    def update_profile(gateway, profile_id: str, **changes) -> Profile:
        with gateway.atomic():
            profile = gateway.get(Profile, profile_id, for_update=True)
            username = changes.get("username")
            if username and username != profile.username:
                if Profile.query.filter(Profile.username == username, Profile.id != profile_id).first():
                    raise IntegrityConflict("Username already taken")
            gateway.update(profile, **changes)
        return profile

    @staticmethod
    def soft_delete_profile(gateway, profile_id: str) -> Profile:
        """Profiles referenced by orders are never removed, only hidden"""
        with gateway.atomic():
            profile = gateway.get(Profile, profile_id, for_update=True)
            if not profile.is_deleted:
                gateway.update(profile, deleted_at=utcnow())
        return profile

    @staticmethod
    def add_social_account(gateway, profile_id: str, platform: str, username: str, url: str = None):
        with gateway.atomic():
            account = gateway.insert(
                SocialMediaAccount(profile_id=profile_id, platform=platform, username=username, url=url)
            )
        return account

    @staticmethod
    def remove_social_account(gateway, account_id: str):
        with gateway.atomic():
            account = gateway.get(SocialMediaAccount, account_id)
            gateway.delete(account)

    # -- onboarding ------------------------------------------------------

    @staticmethod
    def record_setup_step(gateway, profile_id: str, step: str, completed: bool = True, data: dict = None):
        """Upsert one setup step; the completion hook decides the profile flag"""
        step = SetupStep(step)
        with gateway.atomic():
            existing = (
                SetupProgress.query.filter_by(profile_id=profile_id, step=step)
                .with_for_update()
                .first()
            )
            if existing is None:
                progress = gateway.insert(
                    SetupProgress(
                        profile_id=profile_id,
                        step=step,
                        completed=completed,
                        completed_at=utcnow() if completed else None,
                        data=data,
                    )
                )
            else:
                changes = {"completed": completed, "data": data if data is not None else existing.data}
                if completed and existing.completed_at is None:
                    changes["completed_at"] = utcnow()
                progress = gateway.update(existing, **changes)
        return progress

    @staticmethod
    def get_setup_status(gateway, profile_id: str) -> dict:
        profile = ProfileService.get_profile(gateway, profile_id)
        rows = gateway.select(SetupProgress, SetupProgress.profile_id == profile_id)
        done = {SetupStep(row.step) for row in rows if row.completed}
        return {
            "setup_completed": profile.setup_completed,
            "setup_completed_at": profile.setup_completed_at.isoformat() if profile.setup_completed_at else None,
            "steps": [row.to_dict() for row in rows],
            "remaining_required_steps": sorted(step.value for step in REQUIRED_SETUP_STEPS - done),
        }

    # -- brand verification ---------------------------------------------

    @staticmethod
    def submit_brand_verification(gateway, profile_id: str, brand_name: str, brand_category: str,
                                  brand_website: str = None, documents=None) -> BrandVerificationRequest:
        """Open a request, or update/resubmit the one still in progress"""
        fields = {
            "brand_name": brand_name,
            "brand_category": brand_category,
            "brand_website": brand_website,
            "documents": documents or [],
        }
        with gateway.atomic():
            open_request = (
                BrandVerificationRequest.query.filter(
                    BrandVerificationRequest.profile_id == profile_id,
                    BrandVerificationRequest.verification_status.in_(
                        [VerificationStatus.PENDING, VerificationStatus.MORE_INFO_NEEDED]
                    ),
                )
                .with_for_update()
                .first()
            )
            if open_request is None:
                request = gateway.insert(
                    BrandVerificationRequest(
                        profile_id=profile_id, verification_status=VerificationStatus.PENDING, **fields
                    )
                )
            else:
                request = gateway.update(
                    open_request, verification_status=VerificationStatus.PENDING, **fields
                )
        logger.info(f"Brand verification {request.id} submitted for profile {profile_id}")
        return request

    @staticmethod
    def list_brand_verifications(gateway, profile_id: str = None):
        criteria = [BrandVerificationRequest.profile_id == profile_id] if profile_id else []
        return gateway.select(
            BrandVerificationRequest, *criteria, order_by=BrandVerificationRequest.created_at.desc()
        )
