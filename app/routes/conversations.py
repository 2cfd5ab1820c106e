from flask import Blueprint, request, jsonify
from app.services.conversation_service import ConversationService
from app.schemas import ConversationCreateSchema, MessageCreateSchema
from app.utils.decorators import principal_required
from app.utils.validators import validate_schema

conversation_bp = Blueprint("conversations", __name__)


@conversation_bp.route("", methods=["GET"])
@principal_required()
def list_conversations(current_user, gateway):
    rows = ConversationService.list_conversations(gateway)
    return jsonify({"conversations": [c.to_dict() for c in rows]}), 200


@conversation_bp.route("", methods=["POST"])
@principal_required()
@validate_schema(ConversationCreateSchema)
def start_conversation(current_user, gateway):
    """Message a seller about a listing"""
    conversation, message = ConversationService.start_conversation(gateway, **request.validated_data)
    return jsonify({"conversation": conversation.to_dict(), "message": message.to_dict()}), 201


@conversation_bp.route("/<conversation_id>/messages", methods=["GET"])
@principal_required()
def list_messages(conversation_id, current_user, gateway):
    rows = ConversationService.list_messages(gateway, conversation_id)
    return jsonify({"messages": [m.to_dict() for m in rows]}), 200


@conversation_bp.route("/<conversation_id>/messages", methods=["POST"])
@principal_required()
@validate_schema(MessageCreateSchema)
def send_message(conversation_id, current_user, gateway):
    message = ConversationService.send_message(gateway, conversation_id, request.validated_data["body"])
    return jsonify({"message": message.to_dict()}), 201
