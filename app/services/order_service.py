import logging
from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from app.enums import ListingStatus, OrderStatus, PaymentStatus
from app.errors import IntegrityConflict, ValidationFailed
from app.hooks.rules import ORDER_NUMBER_ATTEMPTS
from app.models.order import Order, Transaction
from app.models.listing import Listing
from app.security import service_session

logger = logging.getLogger(__name__)


class OrderService:
    @staticmethod
    def create_order(gateway, buyer_id: str, listing_id: str, shipping_address: str,
                     shipping_cost=Decimal("0.00")) -> Order:
        """Create a pending-payment order for one listing.

        Amounts come from the listing; the order number and total are
        assigned by write hooks in the same transaction. The insert runs in
        a savepoint so an order number taken by a concurrent transaction
        is retried instead of failing the request.
        """
        with gateway.atomic():
            listing = gateway.get(Listing, listing_id, for_update=True)
            if listing.status != ListingStatus.ACTIVE or listing.is_deleted:
                raise ValidationFailed("listing_id", "Listing is not available for purchase.")

            for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
                try:
                    with gateway.session.begin_nested():
                        order = gateway.insert(
                            Order(
                                buyer_id=buyer_id,
                                seller_id=listing.seller_id,
                                listing_id=listing.id,
                                subtotal=listing.price,
                                shipping_cost=shipping_cost,
                                tax_amount=Decimal("0.00"),
                                discount_amount=Decimal("0.00"),
                                shipping_address=shipping_address,
                                status=OrderStatus.PENDING_PAYMENT,
                                payment_status=PaymentStatus.PENDING,
                            )
                        )
                    break
                except IntegrityError as e:
                    if "order_number" not in str(e.orig):
                        raise
                    logger.warning(f"Order number taken concurrently (attempt {attempt})")
            else:
                raise IntegrityConflict("Could not allocate identifier for order")

        logger.info(f"Order {order.order_number} created for listing {listing_id}")
        return order

    @staticmethod
    def get_order_by_id(gateway, order_id: str) -> Order:
        return gateway.get(Order, order_id)

    @staticmethod
    def get_orders(gateway, side: str = None, status: str = None):
        """Orders visible to the caller; ``side`` narrows to buying or selling"""
        principal_id = gateway.principal.id
        criteria = []
        if side == "buyer":
            criteria.append(Order.buyer_id == principal_id)
        elif side == "seller":
            criteria.append(Order.seller_id == principal_id)
        if status:
            criteria.append(Order.status == OrderStatus(status))
        return gateway.select(Order, *criteria, order_by=Order.created_at.desc())

    @staticmethod
    def cancel_order(gateway, order_id: str) -> Order:
        """Buyer withdrawal; only allowed before payment completes"""
        with gateway.atomic():
            order = gateway.get(Order, order_id, for_update=True)
            gateway.update(order, status=OrderStatus.CANCELLED)
        logger.info(f"Order {order.order_number} cancelled")
        return order

    @staticmethod
    def update_order_status(gateway, order_id: str, status: str, tracking_number: str = None,
                            tracking_status: str = None) -> Order:
        changes = {"status": OrderStatus(status)}
        if tracking_number is not None:
            changes["tracking_number"] = tracking_number
        if tracking_status is not None:
            changes["tracking_status"] = tracking_status

        with gateway.atomic():
            order = gateway.get(Order, order_id, for_update=True)
            gateway.update(order, **changes)
        return order

    @staticmethod
    def confirm_receipt(gateway, order_id: str) -> Order:
        return OrderService.update_order_status(gateway, order_id, OrderStatus.COMPLETED.value)

    @staticmethod
    def record_payment_event(order_id: str, status: str) -> Order:
        """Payment processor callback, applied with the service role"""
        gateway = service_session()
        with gateway.atomic():
            order = gateway.get(Order, order_id, for_update=True)
            gateway.update(order, status=OrderStatus(status))
        logger.info(f"Payment event {status} applied to order {order.order_number}")
        return order

    @staticmethod
    def get_transactions(gateway, order_id: str):
        return gateway.select(Transaction, Transaction.order_id == order_id)
