import logging

from app.enums import AdminAction, UserRole, VerificationStatus
from app.errors import ValidationFailed
from app.models.admin import AdminApproval, AdminAuditLog, SystemLog
from app.models.base import utcnow
from app.models.onboarding import BrandVerificationRequest
from app.models.user import User
from app.security import service_session

logger = logging.getLogger(__name__)

_REVIEW_ACTIONS = {
    VerificationStatus.APPROVED: AdminAction.APPROVE,
    VerificationStatus.REJECTED: AdminAction.REJECT,
    VerificationStatus.MORE_INFO_NEEDED: AdminAction.REJECT,
}


class AdminService:
    """Privileged operations. Each one leaves an approval and an audit entry."""

    @staticmethod
    def _record(gateway, action: AdminAction, entity_type: str, entity_id: str,
                target_user_id: str = None, notes: str = None, details: dict = None):
        admin_id = gateway.principal.id
        approval = gateway.insert(
            AdminApproval(
                admin_id=admin_id,
                target_user_id=target_user_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                notes=notes,
            )
        )
        gateway.insert(
            AdminAuditLog(
                admin_id=admin_id,
                action=f"{entity_type}.{action.value}",
                entity_type=entity_type,
                entity_id=entity_id,
                details=details or {},
            )
        )
        return approval

    @staticmethod
    def _set_role(gateway, user_id: str, role: UserRole, action: AdminAction, notes: str = None) -> User:
        with gateway.atomic():
            user = gateway.get(User, user_id, for_update=True)
            previous = user.role
            if previous != role:
                gateway.update(user, role=role)
            AdminService._record(
                gateway,
                action,
                "user_role",
                user.id,
                target_user_id=user.id,
                notes=notes,
                details={"from": previous.value, "to": role.value},
            )
        logger.info(f"Role of {user_id} set to {role.value} by {gateway.principal!r}")
        return user

    @staticmethod
    def promote_to_admin(gateway, user_id: str, notes: str = None) -> User:
        """Grant the admin role. Callable by an admin or the service principal."""
        return AdminService._set_role(gateway, user_id, UserRole.ADMIN, AdminAction.APPROVE, notes)

    @staticmethod
    def revoke_admin(gateway, user_id: str, notes: str = None) -> User:
        if user_id == gateway.principal.id:
            raise ValidationFailed("user_id", "Admins cannot revoke their own role.")
        return AdminService._set_role(gateway, user_id, UserRole.USER, AdminAction.REVOKE, notes)

    @staticmethod
    def review_brand_verification(gateway, request_id: str, status: str, admin_notes: str = None):
        status = VerificationStatus(status)
        if status == VerificationStatus.PENDING:
            raise ValidationFailed("status", "A review must decide the request.")

        with gateway.atomic():
            request = gateway.get(BrandVerificationRequest, request_id, for_update=True)
            gateway.update(
                request,
                verification_status=status,
                admin_notes=admin_notes,
                reviewed_by=gateway.principal.id,
                reviewed_at=utcnow(),
            )
            if status == VerificationStatus.APPROVED:
                gateway.update(request.profile, is_seller=True, brand_name=request.brand_name,
                               brand_category=request.brand_category, brand_website=request.brand_website)
            AdminService._record(
                gateway,
                _REVIEW_ACTIONS[status],
                "brand_verification",
                request.id,
                target_user_id=request.profile_id,
                notes=admin_notes,
                details={"status": status.value},
            )
        return request

    @staticmethod
    def list_audit_log(gateway, entity_type: str = None):
        criteria = [AdminAuditLog.entity_type == entity_type] if entity_type else []
        return gateway.select(AdminAuditLog, *criteria, order_by=AdminAuditLog.created_at.desc())

    @staticmethod
    def list_approvals(gateway, target_user_id: str = None):
        criteria = [AdminApproval.target_user_id == target_user_id] if target_user_id else []
        return gateway.select(AdminApproval, *criteria, order_by=AdminApproval.created_at.desc())

    @staticmethod
    def record_system_event(source: str, message: str, level: str = "info", context: dict = None) -> SystemLog:
        gateway = service_session()
        with gateway.atomic():
            entry = gateway.insert(SystemLog(level=level, source=source, message=message, context=context or {}))
        return entry
