from app.models.base import BaseModel
from app.extensions import db


class StorageBucket(BaseModel):
    __tablename__ = "storage_buckets"

    id = db.Column(db.String(63), primary_key=True)
    public = db.Column(db.Boolean, default=False, nullable=False)
    allowed_mime_types = db.Column(db.JSON, default=list, nullable=False)
    file_size_limit = db.Column(db.Integer, nullable=False)

    objects = db.relationship("StorageObject", backref="bucket", lazy="dynamic")

    def accepts(self, mime_type: str) -> bool:
        return mime_type in (self.allowed_mime_types or [])


class StorageObject(BaseModel):
    """Metadata of an uploaded object; paths are ``<owner id>/<file name>``."""

    __tablename__ = "storage_objects"
    __table_args__ = (db.UniqueConstraint("bucket_id", "name", name="uq_storage_objects_bucket_name"),)

    bucket_id = db.Column(db.String(63), db.ForeignKey("storage_buckets.id"), nullable=False, index=True)
    name = db.Column(db.String(1024), nullable=False)
    owner_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    mime_type = db.Column(db.String(100), nullable=False)
    size = db.Column(db.Integer, nullable=False)

    @property
    def path_owner(self):
        """First path segment, the principal the object is namespaced under"""
        head, sep, _ = (self.name or "").partition("/")
        return head if sep else None
