# app/services/order_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from typing import Dict, List, Optional
import logging

from app.core.exceptions import (
    AppError, AuthorizationError, InternalError, InvalidStateError,
    NotFoundError, ValidationError,
)
from app.core.permissions import ensure_order_party, resolve_party
from app.models.message import SenderTypeEnum
from app.models.order import Order, OrderStatusEnum, WithdrawalStatusEnum
from app.models.user import User, UserRoleEnum
from app.repositories.gig_repo import GigRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.payment_detail_repo import PaymentDetailRepository
from app.repositories.user_repo import UserRepository
from app.schemas.order_schema import (
    OrderCreate, OrderUpdate, OrderOut, PartySummary,
    PendingVerificationOut, OrderHistoryOut, WithdrawalRequestOut,
)
from app.schemas.payment_detail_schema import PaymentDetailOut
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

S = OrderStatusEnum

# Fulfillment edges a party may trigger through PUT /orders/{id}.
# Payment edges are not here: the buyer moves Pending payment -> Payment
# pending verify by uploading a screenshot, and only an admin confirms payment.
STATUS_TRANSITIONS: Dict[tuple, List[SenderTypeEnum]] = {
    (S.payment_confirmed, S.in_progress): [SenderTypeEnum.seller],
    (S.payment_confirmed, S.completed): [SenderTypeEnum.seller],
    (S.in_progress, S.delivered): [SenderTypeEnum.seller],
    (S.in_progress, S.completed): [SenderTypeEnum.seller],
    (S.delivered, S.completed): [SenderTypeEnum.seller],
    # buyer sends the delivery back for revision
    (S.delivered, S.in_progress): [SenderTypeEnum.buyer],
}

UNKNOWN_SELLER = PartySummary(name="Unknown Seller")
UNKNOWN_BUYER = PartySummary(name="Unknown Buyer")


class OrderService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.order_repo = OrderRepository(db)
        self.user_repo = UserRepository(db)
        self.gig_repo = GigRepository(db)
        self.payment_detail_repo = PaymentDetailRepository(db)

    # --- helpers ---

    async def _get_order_or_404(self, order_id: str) -> Order:
        order = await self.order_repo.get_order_by_id(order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    async def _apply(self, order_id: str, values: dict, *conditions, error: str) -> Order:
        """
        Run one conditional transition inside the current transaction and
        return the refreshed order. Zero matched rows means another request
        changed the order first.
        """
        applied = await self.order_repo.transition(order_id, values, *conditions)
        if not applied:
            raise InvalidStateError(error)
        return await self._get_order_or_404(order_id)

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Order commit failed: {e}", exc_info=True)
            raise InternalError("Failed to save order")

    # --- CreateOrder ---

    async def create_order(self, data: OrderCreate, buyer: User) -> Order:
        seller_id = (data.seller_id or "").strip()
        if not seller_id:
            raise ValidationError("Seller ID is required. Please ensure the gig has a valid seller.")
        if data.amount is None:
            raise ValidationError("Gig ID and amount are required")
        if data.amount <= 0:
            raise ValidationError("Amount must be greater than zero")
        if seller_id == buyer.user_id:
            raise ValidationError("You cannot place an order on your own gig")

        seller = await self.user_repo.get_user_by_id(seller_id)
        if not seller:
            raise NotFoundError("Seller not found")
        if seller.role != UserRoleEnum.freelancer:
            raise ValidationError("Orders can only be placed with freelancers")

        gig = await self.gig_repo.get_gig_by_id(data.gig_id)
        if gig and gig.seller_id != seller_id:
            raise ValidationError("This gig does not belong to the given seller")

        screenshot = (data.payment_screenshot or "").strip() or None
        now = utcnow()

        new_order = Order(
            gig_id=data.gig_id,
            gig_title=(gig.title if gig else None) or data.gig_title or "Gig Order",
            buyer_id=buyer.user_id,
            buyer_name=buyer.name or data.buyer_name or "Buyer",
            seller_id=seller_id,
            seller_name=seller.name or data.seller_name or "Seller",
            package=data.package or "standard",
            amount=data.amount,
            requirements=data.requirements or "",
            delivery_time=data.delivery_time or 0,
            status=S.payment_pending_verify if screenshot else S.pending_payment,
            payment_screenshot=screenshot,
            payment_uploaded_at=now if screenshot else None,
            payment_verified_at=None,  # set when an admin verifies
        )

        try:
            order = await self.order_repo.create_order(new_order)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Order creation failed: {e}", exc_info=True)
            raise InternalError("Failed to create order")

        logger.info(f"Order {order.order_id} created by buyer {buyer.user_id} with status '{order.status.value}'")
        return order

    # --- Reads ---

    async def get_order(self, order_id: str, user: User) -> Order:
        order = await self._get_order_or_404(order_id)
        ensure_order_party(order, user.user_id, action="view")
        # sellers do not learn about an order before its payment is verified
        if order.seller_id == user.user_id and order.status == S.payment_pending_verify:
            raise NotFoundError("Order not found")
        return order

    async def list_seller_orders(self, seller_id: str) -> List[Order]:
        return await self.order_repo.list_orders_by_seller(seller_id)

    async def list_my_orders(self, user: User, role: Optional[str] = None) -> List[Order]:
        if role == "buyer":
            return await self.order_repo.list_orders_by_buyer(user.user_id)
        if role == "seller":
            return await self.list_seller_orders(user.user_id)

        bought = await self.order_repo.list_orders_by_buyer(user.user_id)
        sold = await self.list_seller_orders(user.user_id)
        merged = {o.order_id: o for o in [*bought, *sold]}
        return sorted(merged.values(), key=lambda o: o.created_at, reverse=True)

    async def list_withdrawal_eligible(self, seller: User) -> List[Order]:
        return await self.order_repo.list_withdrawal_eligible(seller.user_id)

    # --- UpdateOrder ---

    async def update_order(self, order_id: str, data: OrderUpdate, user: User) -> Order:
        """
        Apply a party's update. Fields are handled in a fixed order, each as
        its own conditional transition, all in one transaction.
        """
        order = await self._get_order_or_404(order_id)
        ensure_order_party(order, user.user_id, action="update")
        party = resolve_party(order, user.user_id)

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if changes.get("confirm_completion") is False:
            changes.pop("confirm_completion")
        if not changes:
            raise ValidationError("No updatable fields supplied")

        try:
            if "requirements" in changes:
                order = await self._update_requirements(order, party, changes["requirements"])
            if "payment_screenshot" in changes:
                order = await self._upload_payment(order, party, changes["payment_screenshot"])
            if "status" in changes:
                order = await self._change_status(order, party, changes["status"])
            if changes.get("confirm_completion"):
                order = await self._confirm_completion(order, party)
        except AppError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Order update failed for {order_id}: {e}", exc_info=True)
            raise InternalError("Failed to update order")

        await self._commit()
        return await self._get_order_or_404(order_id)

    async def _update_requirements(self, order: Order, party: SenderTypeEnum, requirements: str) -> Order:
        if party != SenderTypeEnum.buyer:
            raise AuthorizationError("Only the client can edit the requirements")
        if order.status == S.completed:
            raise InvalidStateError("Requirements cannot be changed on a completed order")
        return await self._apply(
            order.order_id,
            {"requirements": requirements},
            Order.status != S.completed,
            error="Requirements cannot be changed on a completed order",
        )

    async def _upload_payment(self, order: Order, party: SenderTypeEnum, screenshot: str) -> Order:
        if party != SenderTypeEnum.buyer:
            raise AuthorizationError("Only the client can upload a payment screenshot")
        screenshot = screenshot.strip()
        if not screenshot:
            raise ValidationError("Payment screenshot URL is required")
        if order.status not in (S.pending_payment, S.payment_pending_verify):
            raise InvalidStateError("Payment has already been verified for this order")

        values = {"payment_screenshot": screenshot, "payment_uploaded_at": utcnow()}
        if order.status == S.pending_payment:
            values["status"] = S.payment_pending_verify
        updated = await self._apply(
            order.order_id, values, Order.status == order.status,
            error="Order status changed, please reload the order",
        )
        logger.info(f"Payment screenshot uploaded for order {order.order_id}")
        return updated

    async def _change_status(self, order: Order, party: SenderTypeEnum, new_status: OrderStatusEnum) -> Order:
        current_status = order.status
        transition = (current_status, new_status)

        if transition not in STATUS_TRANSITIONS:
            raise InvalidStateError(
                f"Illegal status transition: {current_status.value} -> {new_status.value}"
            )
        if party not in STATUS_TRANSITIONS[transition]:
            raise AuthorizationError(
                f"The {party.value} cannot move an order from {current_status.value} to {new_status.value}"
            )

        values = {"status": new_status}
        if new_status == S.completed:
            values["completed_at"] = utcnow()
        updated = await self._apply(
            order.order_id, values, Order.status == current_status,
            error="Order status changed, please reload the order",
        )
        logger.info(f"Order {order.order_id}: {current_status.value} -> {new_status.value} by {party.value}")
        return updated

    async def _confirm_completion(self, order: Order, party: SenderTypeEnum) -> Order:
        if party != SenderTypeEnum.buyer:
            raise AuthorizationError("Only the client can confirm completion")
        if order.status != S.completed:
            raise InvalidStateError("Order must be completed by seller before client can confirm")
        if order.client_confirmed_completion_at is not None:
            raise InvalidStateError("Completion has already been confirmed")
        return await self._apply(
            order.order_id,
            {"client_confirmed_completion_at": utcnow()},
            Order.status == S.completed,
            Order.client_confirmed_completion_at.is_(None),
            error="Completion has already been confirmed",
        )

    # --- VerifyPayment (admin) ---

    async def verify_payment(self, order_id: str, verified: bool, admin: User) -> Order:
        order = await self._get_order_or_404(order_id)
        if order.status != S.payment_pending_verify:
            raise InvalidStateError("Order is not awaiting payment verification")

        if not verified:
            # No rejected state exists: the order stays pending so the payment
            # can be reviewed again (or a new screenshot uploaded).
            logger.warning(f"Admin {admin.user_id} rejected the payment of order {order_id}; order stays pending")
            return order

        try:
            order = await self._apply(
                order_id,
                {"status": S.payment_confirmed, "payment_verified_at": utcnow()},
                Order.status == S.payment_pending_verify,
                error="Order is not awaiting payment verification",
            )
        except InvalidStateError:
            await self.db.rollback()
            raise
        await self._commit()
        logger.info(f"Admin {admin.user_id} verified the payment of order {order_id}")
        return await self._get_order_or_404(order_id)

    # --- Withdrawal ---

    async def request_withdrawal(self, order_id: str, user: User) -> Order:
        order = await self._get_order_or_404(order_id)
        if order.seller_id != user.user_id:
            raise AuthorizationError("You are not authorized to request withdrawal for this order")
        if order.status != S.completed:
            raise InvalidStateError("Only completed orders can have withdrawal requests")
        if order.withdrawal_requested:
            raise InvalidStateError("Withdrawal already requested for this order")

        try:
            await self._apply(
                order_id,
                {
                    "withdrawal_requested": True,
                    "withdrawal_status": WithdrawalStatusEnum.pending,
                    "withdrawal_requested_at": utcnow(),
                },
                Order.status == S.completed,
                Order.withdrawal_requested.is_(False),
                error="Withdrawal already requested for this order",
            )
        except InvalidStateError:
            await self.db.rollback()
            raise
        await self._commit()
        logger.info(f"Seller {user.user_id} requested withdrawal for order {order_id}")
        return await self._get_order_or_404(order_id)

    async def process_withdrawal(self, order_id: str, action: str, admin: User) -> Order:
        order = await self._get_order_or_404(order_id)
        if not order.withdrawal_requested or order.withdrawal_status != WithdrawalStatusEnum.pending:
            raise InvalidStateError("No pending withdrawal request for this order")

        now = utcnow()
        if action == "approve":
            values = {"withdrawal_status": WithdrawalStatusEnum.approved, "withdrawal_processed_at": now}
        elif action == "reject":
            # the seller may request again after a rejection
            values = {
                "withdrawal_status": WithdrawalStatusEnum.rejected,
                "withdrawal_requested": False,
                "withdrawal_processed_at": now,
            }
        else:
            raise ValidationError("Action must be 'approve' or 'reject'")

        try:
            await self._apply(
                order_id, values,
                Order.withdrawal_requested.is_(True),
                Order.withdrawal_status == WithdrawalStatusEnum.pending,
                error="No pending withdrawal request for this order",
            )
        except InvalidStateError:
            await self.db.rollback()
            raise
        await self._commit()
        logger.info(f"Admin {admin.user_id} {action}d the withdrawal of order {order_id}")
        return await self._get_order_or_404(order_id)

    # --- Admin read side ---

    async def _party_summary(self, user_id: str, cache: dict, placeholder: PartySummary) -> PartySummary:
        """
        Best-effort identity lookup for listings. A dangling reference or a
        storage error degrades to the placeholder instead of failing the list.
        """
        if user_id in cache:
            return cache[user_id]
        summary = placeholder
        try:
            user = await self.user_repo.get_user_by_id(user_id)
            if user:
                summary = PartySummary.model_validate(user)
        except SQLAlchemyError as e:
            logger.warning(f"Could not resolve user {user_id} for display: {e}")
            await self.db.rollback()
        cache[user_id] = summary
        return summary

    async def _seller_payment_details(self, seller_id: str) -> Optional[PaymentDetailOut]:
        try:
            detail = await self.payment_detail_repo.get_by_user_id(seller_id)
        except SQLAlchemyError as e:
            logger.warning(f"Could not load payment details of seller {seller_id}: {e}")
            await self.db.rollback()
            return None
        return PaymentDetailOut.model_validate(detail) if detail else None

    async def list_pending_verification(self) -> List[PendingVerificationOut]:
        # Snapshot the ORM rows first: a rollback in a failed lookup below
        # expires instances, the snapshots are unaffected.
        orders = [OrderOut.model_validate(o) for o in await self.order_repo.list_by_status(S.payment_pending_verify)]
        cache: dict = {}
        rows = []
        for order in orders:
            rows.append(PendingVerificationOut(
                **order.model_dump(),
                seller=await self._party_summary(order.seller_id, cache, UNKNOWN_SELLER),
                buyer=await self._party_summary(order.buyer_id, cache, UNKNOWN_BUYER),
            ))
        return rows

    async def list_order_history(self) -> List[OrderHistoryOut]:
        orders = await self.order_repo.list_history()
        return [
            OrderHistoryOut(
                **OrderOut.model_validate(o).model_dump(),
                seller_completed=o.status == S.completed or o.completed_at is not None,
                client_confirmed=o.client_confirmed_completion_at is not None,
            )
            for o in orders
        ]

    async def list_withdrawal_requests(
        self, status: Optional[WithdrawalStatusEnum] = None
    ) -> List[WithdrawalRequestOut]:
        orders = [OrderOut.model_validate(o) for o in await self.order_repo.list_withdrawals(status)]
        cache: dict = {}
        rows = []
        for order in orders:
            seller = await self._party_summary(order.seller_id, cache, UNKNOWN_SELLER)
            rows.append(WithdrawalRequestOut(
                **order.model_dump(),
                seller=seller,
                seller_payment_details=await self._seller_payment_details(order.seller_id),
            ))
        return rows
