from app.models.base import BaseModel
from app.extensions import db


class Conversation(BaseModel):
    __tablename__ = "conversations"

    listing_id = db.Column(db.String(36), db.ForeignKey("listings.id", ondelete="SET NULL"), index=True)
    buyer_id = db.Column(db.String(36), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    seller_id = db.Column(db.String(36), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    last_message_at = db.Column(db.DateTime(timezone=True))

    messages = db.relationship(
        "Message", backref="conversation", lazy="dynamic", cascade="all, delete-orphan"
    )

    def is_party(self, profile_id) -> bool:
        return profile_id is not None and profile_id in (self.buyer_id, self.seller_id)


class Message(BaseModel):
    __tablename__ = "messages"

    conversation_id = db.Column(
        db.String(36), db.ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sender_id = db.Column(db.String(36), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    body = db.Column(db.Text, nullable=False)
    is_read = db.Column(db.Boolean, default=False, nullable=False)
