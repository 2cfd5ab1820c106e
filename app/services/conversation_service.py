from app.errors import ValidationFailed
from app.models.conversation import Conversation, Message
from app.models.listing import Listing


class ConversationService:
    @staticmethod
    def start_conversation(gateway, listing_id: str, body: str):
        """Open (or reuse) the buyer's thread about a listing and post the first message"""
        buyer_id = gateway.principal.id
        with gateway.atomic():
            listing = gateway.get(Listing, listing_id)
            if listing.seller_id == buyer_id:
                raise ValidationFailed("listing_id", "You cannot message yourself about your own listing.")

            conversation = Conversation.query.filter_by(
                listing_id=listing.id, buyer_id=buyer_id, seller_id=listing.seller_id
            ).first()
            if conversation is None:
                conversation = gateway.insert(
                    Conversation(listing_id=listing.id, buyer_id=buyer_id, seller_id=listing.seller_id)
                )
            message = gateway.insert(
                Message(conversation=conversation, conversation_id=conversation.id, sender_id=buyer_id, body=body)
            )
        return conversation, message

    @staticmethod
    def send_message(gateway, conversation_id: str, body: str) -> Message:
        with gateway.atomic():
            conversation = gateway.get(Conversation, conversation_id)
            message = gateway.insert(
                Message(
                    conversation=conversation,
                    conversation_id=conversation.id,
                    sender_id=gateway.principal.id,
                    body=body,
                )
            )
        return message

    @staticmethod
    def list_conversations(gateway):
        return gateway.select(Conversation, order_by=Conversation.updated_at.desc())

    @staticmethod
    def list_messages(gateway, conversation_id: str):
        conversation = gateway.get(Conversation, conversation_id)
        return gateway.select(
            Message, Message.conversation_id == conversation.id, order_by=Message.created_at.asc()
        )
