import pytest
from app.errors import NotFound, ValidationFailed
from app.services.conversation_service import ConversationService


class TestConversations:
    def test_start_and_reply(self, app, buyer_user, seller_user, listing, as_user):
        conversation, _ = ConversationService.start_conversation(as_user(buyer_user), listing.id, "Still available?")
        ConversationService.send_message(as_user(seller_user), conversation.id, "Yes, it is!")

        messages = ConversationService.list_messages(as_user(buyer_user), conversation.id)
        assert [m.body for m in messages] == ["Still available?", "Yes, it is!"]

    def test_thread_is_reused(self, app, buyer_user, listing, as_user):
        first, _ = ConversationService.start_conversation(as_user(buyer_user), listing.id, "Hi")
        second, _ = ConversationService.start_conversation(as_user(buyer_user), listing.id, "Hello again")
        assert first.id == second.id
        assert len(ConversationService.list_messages(as_user(buyer_user), first.id)) == 2

    def test_outsider_cannot_read_or_post(self, app, buyer_user, other_user, listing, as_user):
        conversation, _ = ConversationService.start_conversation(as_user(buyer_user), listing.id, "Hi")

        assert ConversationService.list_conversations(as_user(other_user)) == []
        with pytest.raises(NotFound):
            ConversationService.list_messages(as_user(other_user), conversation.id)
        with pytest.raises(NotFound):
            ConversationService.send_message(as_user(other_user), conversation.id, "Let me in")

    def test_cannot_message_own_listing(self, app, seller_user, listing, as_user):
        with pytest.raises(ValidationFailed):
            ConversationService.start_conversation(as_user(seller_user), listing.id, "Hello me")

    def test_routes(self, client, buyer_headers, seller_headers, listing):
        response = client.post(
            "/api/conversations", headers=buyer_headers, json={"listing_id": listing.id, "body": "Price negotiable?"}
        )
        assert response.status_code == 201
        conversation_id = response.json["conversation"]["id"]

        response = client.post(
            f"/api/conversations/{conversation_id}/messages", headers=seller_headers, json={"body": "A little."}
        )
        assert response.status_code == 201

        inbox = client.get("/api/conversations", headers=seller_headers).json["conversations"]
        assert inbox[0]["last_message_at"] is not None
        messages = client.get(f"/api/conversations/{conversation_id}/messages", headers=buyer_headers).json
        assert len(messages["messages"]) == 2
