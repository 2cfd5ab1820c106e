from decimal import Decimal

from app.enums import DisputeStatus, OrderStatus, RefundStatus, ReturnStatus
from app.errors import ValidationFailed
from app.models.base import utcnow
from app.models.order import Order
from app.models.resolution import Dispute, RefundRequest, Return

# A dispute may be raised once money has moved
DISPUTABLE_ORDER_STATUSES = frozenset(
    {
        OrderStatus.PAID,
        OrderStatus.PREPARING,
        OrderStatus.SHIPPED,
        OrderStatus.IN_TRANSIT,
        OrderStatus.DELIVERED,
        OrderStatus.COMPLETED,
    }
)
RETURNABLE_ORDER_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.COMPLETED})


class DisputeService:
    @staticmethod
    def open_dispute(gateway, order_id: str, reason: str, description: str = None) -> Dispute:
        initiator_id = gateway.principal.id
        with gateway.atomic():
            order = gateway.get(Order, order_id, for_update=True)
            if order.status not in DISPUTABLE_ORDER_STATUSES:
                raise ValidationFailed("order_id", "Order cannot be disputed in its current status.")
            respondent_id = order.seller_id if initiator_id == order.buyer_id else order.buyer_id
            dispute = gateway.insert(
                Dispute(
                    order=order,
                    order_id=order.id,
                    initiator_id=initiator_id,
                    respondent_id=respondent_id,
                    reason=reason,
                    description=description,
                    status=DisputeStatus.OPEN,
                )
            )
        return dispute

    @staticmethod
    def update_dispute(gateway, dispute_id: str, status: str, resolution: str = None) -> Dispute:
        changes = {"status": DisputeStatus(status)}
        if resolution is not None:
            changes["resolution"] = resolution
        if changes["status"] == DisputeStatus.RESOLVED:
            changes["resolved_at"] = utcnow()

        with gateway.atomic():
            dispute = gateway.get(Dispute, dispute_id, for_update=True)
            gateway.update(dispute, **changes)
        return dispute

    @staticmethod
    def list_disputes(gateway, status: str = None):
        criteria = [Dispute.status == DisputeStatus(status)] if status else []
        return gateway.select(Dispute, *criteria, order_by=Dispute.created_at.desc())


class ReturnService:
    @staticmethod
    def request_return(gateway, order_id: str, reason: str, description: str = None) -> Return:
        with gateway.atomic():
            order = gateway.get(Order, order_id, for_update=True)
            if order.status not in RETURNABLE_ORDER_STATUSES:
                raise ValidationFailed("order_id", "Only delivered orders can be returned.")
            return_request = gateway.insert(
                Return(
                    order=order,
                    order_id=order.id,
                    buyer_id=gateway.principal.id,
                    seller_id=order.seller_id,
                    reason=reason,
                    description=description,
                    status=ReturnStatus.REQUESTED,
                )
            )
        return return_request

    @staticmethod
    def update_return(gateway, return_id: str, status: str, tracking_number: str = None) -> Return:
        changes = {"status": ReturnStatus(status)}
        if tracking_number is not None:
            changes["tracking_number"] = tracking_number
        with gateway.atomic():
            return_request = gateway.get(Return, return_id, for_update=True)
            gateway.update(return_request, **changes)
        return return_request

    @staticmethod
    def list_returns(gateway):
        return gateway.select(Return, order_by=Return.created_at.desc())


class RefundService:
    @staticmethod
    def request_refund(gateway, order_id: str, amount, reason: str = None) -> RefundRequest:
        amount = Decimal(str(amount))
        with gateway.atomic():
            order = gateway.get(Order, order_id, for_update=True)
            if amount > order.total_amount:
                raise ValidationFailed("amount", "Refund cannot exceed the order total.")
            refund = gateway.insert(
                RefundRequest(
                    order=order,
                    order_id=order.id,
                    buyer_id=gateway.principal.id,
                    seller_id=order.seller_id,
                    amount=amount,
                    reason=reason,
                    status=RefundStatus.PENDING,
                )
            )
        return refund

    @staticmethod
    def update_refund(gateway, refund_id: str, status: str) -> RefundRequest:
        with gateway.atomic():
            refund = gateway.get(RefundRequest, refund_id, for_update=True)
            gateway.update(refund, status=RefundStatus(status))
        return refund

    @staticmethod
    def list_refunds(gateway):
        return gateway.select(RefundRequest, order_by=RefundRequest.created_at.desc())
