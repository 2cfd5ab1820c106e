from app.models.base import BaseModel, enum_column
from app.extensions import db
from app.enums import AdminAction


class AdminApproval(BaseModel):
    """Append-only record of a privileged decision."""

    __tablename__ = "admin_approvals"

    # NULL when the service role acted (e.g. the first promotion from the CLI)
    admin_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True, index=True)
    target_user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True, index=True)
    action = enum_column(AdminAction, "admin_action", nullable=False)
    entity_type = db.Column(db.String(50), nullable=False)
    entity_id = db.Column(db.String(36))
    notes = db.Column(db.Text)


class AdminAuditLog(BaseModel):
    """Append-only trail of every privileged action."""

    __tablename__ = "admin_audit_log"

    admin_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True, index=True)
    action = db.Column(db.String(100), nullable=False)
    entity_type = db.Column(db.String(50), nullable=False)
    entity_id = db.Column(db.String(36))
    details = db.Column(db.JSON, default=dict)


class SystemLog(BaseModel):
    """Monitoring table: readable and writable by the service role only."""

    __tablename__ = "system_logs"

    level = db.Column(db.String(20), nullable=False, default="info")
    source = db.Column(db.String(100), nullable=False)
    message = db.Column(db.Text, nullable=False)
    context = db.Column(db.JSON, default=dict)
