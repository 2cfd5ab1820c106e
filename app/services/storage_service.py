import logging

from app.errors import NotFound, ValidationFailed
from app.models.storage import StorageBucket, StorageObject

logger = logging.getLogger(__name__)


class StorageService:
    """Object metadata in buckets. Paths are ``<owner id>/<file name>``."""

    @staticmethod
    def _bucket(gateway, bucket_id: str) -> StorageBucket:
        bucket = gateway.session.get(StorageBucket, bucket_id)
        if bucket is None:
            raise NotFound("Bucket not found")
        return bucket

    @staticmethod
    def upload(gateway, bucket_id: str, name: str, mime_type: str, size: int) -> StorageObject:
        bucket = StorageService._bucket(gateway, bucket_id)
        if not bucket.accepts(mime_type):
            raise ValidationFailed("mime_type", f"'{mime_type}' is not allowed in bucket {bucket.id}.")
        if size <= 0 or size > bucket.file_size_limit:
            raise ValidationFailed("size", f"File size must be between 1 and {bucket.file_size_limit} bytes.")

        with gateway.atomic():
            existing = StorageObject.query.filter_by(bucket_id=bucket.id, name=name).first()
            if existing is None:
                stored = gateway.insert(
                    StorageObject(
                        bucket=bucket,
                        bucket_id=bucket.id,
                        name=name,
                        owner_id=gateway.principal.id,
                        mime_type=mime_type,
                        size=size,
                    )
                )
            else:
                stored = gateway.update(existing, mime_type=mime_type, size=size)
        logger.info(f"Stored {bucket.id}/{name} ({size} bytes)")
        return stored

    @staticmethod
    def list_objects(gateway, bucket_id: str, prefix: str = None):
        bucket = StorageService._bucket(gateway, bucket_id)
        criteria = [StorageObject.bucket_id == bucket.id]
        if prefix:
            criteria.append(StorageObject.name.startswith(prefix))
        return gateway.select(StorageObject, *criteria, order_by=StorageObject.name)

    @staticmethod
    def delete_object(gateway, object_id: str):
        with gateway.atomic():
            stored = gateway.get(StorageObject, object_id)
            gateway.delete(stored)
