import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import (
    AuthorizationError, InvalidStateError, NotFoundError, ValidationError,
)
from app.models.order import Order, OrderStatusEnum as S, WithdrawalStatusEnum
from app.models.user import UserRoleEnum
from app.repositories.order_repo import OrderRepository
from app.schemas.order_schema import OrderCreate, OrderUpdate
from app.services.order_service import OrderService, STATUS_TRANSITIONS


@pytest.fixture
async def people(make_user):
    buyer = await make_user("Alice", UserRoleEnum.client)
    seller = await make_user("Bob", UserRoleEnum.freelancer)
    admin = await make_user("Root", UserRoleEnum.admin)
    return buyer, seller, admin


# --- CreateOrder ---

async def test_create_without_screenshot_is_pending_payment(session, people):
    buyer, seller, _ = people
    order = await OrderService(session).create_order(
        OrderCreate(gig_id="g1", seller_id=seller.user_id, amount=25), buyer
    )
    assert order.status == S.pending_payment
    assert order.payment_uploaded_at is None
    assert order.buyer_name == "Alice"
    assert order.seller_name == "Bob"
    assert order.package == "standard"


async def test_create_with_screenshot_waits_for_verification(session, people):
    buyer, seller, _ = people
    order = await OrderService(session).create_order(
        OrderCreate(gig_id="g1", seller_id=seller.user_id, amount=25, payment_screenshot="https://img/p.png"),
        buyer,
    )
    assert order.status == S.payment_pending_verify
    assert order.payment_uploaded_at is not None
    assert order.payment_verified_at is None


@pytest.mark.parametrize("fields, error", [
    ({"seller_id": None, "amount": 10}, ValidationError),
    ({"seller_id": "   ", "amount": 10}, ValidationError),
    ({"amount": None}, ValidationError),
    ({"amount": 0}, ValidationError),
    ({"amount": -5}, ValidationError),
])
async def test_create_rejects_bad_input(session, people, fields, error):
    buyer, seller, _ = people
    data = {"gig_id": "g1", "seller_id": seller.user_id, **fields}
    with pytest.raises(error):
        await OrderService(session).create_order(OrderCreate(**data), buyer)


async def test_create_rejects_self_dealing(session, make_user):
    freelancer = await make_user("Solo", UserRoleEnum.freelancer)
    with pytest.raises(ValidationError):
        await OrderService(session).create_order(
            OrderCreate(gig_id="g1", seller_id=freelancer.user_id, amount=10), freelancer
        )


async def test_create_unknown_seller(session, people):
    buyer, _, _ = people
    with pytest.raises(NotFoundError):
        await OrderService(session).create_order(
            OrderCreate(gig_id="g1", seller_id="no-such-user", amount=10), buyer
        )


# --- Visibility ---

async def test_seller_cannot_see_unverified_order(session, people, make_order):
    buyer, seller, _ = people
    hidden = await make_order(buyer, seller, status=S.payment_pending_verify)
    visible = await make_order(buyer, seller, status=S.payment_confirmed)
    service = OrderService(session)

    assert [o.order_id for o in await service.list_my_orders(seller, "seller")] == [visible.order_id]
    with pytest.raises(NotFoundError):
        await service.get_order(hidden.order_id, seller)
    # the buyer still sees both
    assert len(await service.list_my_orders(buyer, "buyer")) == 2


async def test_stranger_cannot_view_order(session, people, make_user, make_order):
    buyer, seller, _ = people
    stranger = await make_user("Eve")
    order = await make_order(buyer, seller)
    with pytest.raises(AuthorizationError):
        await OrderService(session).get_order(order.order_id, stranger)


# --- UpdateOrder ---

async def test_happy_path_to_withdrawal(session, people):
    buyer, seller, admin = people
    service = OrderService(session)

    order = await service.create_order(OrderCreate(gig_id="g1", seller_id=seller.user_id, amount=40), buyer)
    order = await service.update_order(order.order_id, OrderUpdate(payment_screenshot="https://img/p.png"), buyer)
    assert order.status == S.payment_pending_verify

    order = await service.verify_payment(order.order_id, True, admin)
    assert order.status == S.payment_confirmed
    assert order.payment_verified_at is not None

    for step in (S.in_progress, S.delivered, S.completed):
        order = await service.update_order(order.order_id, OrderUpdate(status=step), seller)
        assert order.status == step
    assert order.completed_at is not None

    order = await service.update_order(order.order_id, OrderUpdate(confirm_completion=True), buyer)
    assert order.client_confirmed_completion_at is not None

    order = await service.request_withdrawal(order.order_id, seller)
    assert order.withdrawal_requested is True
    assert order.withdrawal_status == WithdrawalStatusEnum.pending

    order = await service.process_withdrawal(order.order_id, "approve", admin)
    assert order.withdrawal_status == WithdrawalStatusEnum.approved
    assert order.withdrawal_processed_at is not None


async def test_seller_cannot_skip_payment_verification(session, people, make_order):
    buyer, seller, _ = people
    order = await make_order(buyer, seller, status=S.payment_pending_verify)
    with pytest.raises(InvalidStateError):
        await OrderService(session).update_order(order.order_id, OrderUpdate(status=S.in_progress), seller)


async def test_buyer_cannot_self_confirm_payment(session, people, make_order):
    buyer, seller, _ = people
    order = await make_order(buyer, seller, status=S.payment_pending_verify)
    with pytest.raises(InvalidStateError):
        await OrderService(session).update_order(order.order_id, OrderUpdate(status=S.payment_confirmed), buyer)


async def test_buyer_cannot_mark_delivered(session, people, make_order):
    buyer, seller, _ = people
    order = await make_order(buyer, seller, status=S.in_progress)
    with pytest.raises(AuthorizationError):
        await OrderService(session).update_order(order.order_id, OrderUpdate(status=S.delivered), buyer)


async def test_buyer_requests_revision(session, people, make_order):
    buyer, seller, _ = people
    order = await make_order(buyer, seller, status=S.delivered)
    order = await OrderService(session).update_order(order.order_id, OrderUpdate(status=S.in_progress), buyer)
    assert order.status == S.in_progress


async def test_completed_is_terminal(session, people, make_order):
    buyer, seller, _ = people
    order = await make_order(buyer, seller, status=S.completed)
    with pytest.raises(InvalidStateError):
        await OrderService(session).update_order(order.order_id, OrderUpdate(status=S.in_progress), seller)


def test_transition_table_never_leaves_completed():
    assert all(src != S.completed for src, _ in STATUS_TRANSITIONS)
    assert all(dst not in (S.pending_payment, S.payment_pending_verify, S.payment_confirmed)
               for _, dst in STATUS_TRANSITIONS)


async def test_confirm_completion_requires_completed(session, people, make_order):
    buyer, seller, _ = people
    order = await make_order(buyer, seller, status=S.delivered)
    with pytest.raises(InvalidStateError):
        await OrderService(session).update_order(order.order_id, OrderUpdate(confirm_completion=True), buyer)


async def test_confirm_completion_only_once(session, people, make_order):
    buyer, seller, _ = people
    order = await make_order(buyer, seller, status=S.completed)
    service = OrderService(session)
    await service.update_order(order.order_id, OrderUpdate(confirm_completion=True), buyer)
    with pytest.raises(InvalidStateError):
        await service.update_order(order.order_id, OrderUpdate(confirm_completion=True), buyer)


async def test_seller_cannot_confirm_completion(session, people, make_order):
    buyer, seller, _ = people
    order = await make_order(buyer, seller, status=S.completed)
    with pytest.raises(AuthorizationError):
        await OrderService(session).update_order(order.order_id, OrderUpdate(confirm_completion=True), seller)


async def test_seller_cannot_edit_requirements(session, people, make_order):
    buyer, seller, _ = people
    order = await make_order(buyer, seller)
    with pytest.raises(AuthorizationError):
        await OrderService(session).update_order(order.order_id, OrderUpdate(requirements="x"), seller)


async def test_screenshot_after_verification_is_rejected(session, people, make_order):
    buyer, seller, _ = people
    order = await make_order(buyer, seller, status=S.in_progress)
    with pytest.raises(InvalidStateError):
        await OrderService(session).update_order(
            order.order_id, OrderUpdate(payment_screenshot="https://img/late.png"), buyer
        )


async def test_empty_update_is_rejected(session, people, make_order):
    buyer, seller, _ = people
    order = await make_order(buyer, seller)
    with pytest.raises(ValidationError):
        await OrderService(session).update_order(order.order_id, OrderUpdate(), buyer)


async def test_failed_step_rolls_back_earlier_steps(session, people, make_order):
    buyer, seller, _ = people
    order = await make_order(buyer, seller, status=S.in_progress, requirements="original")
    order_id = order.order_id  # the rollback expires loaded instances
    # requirements pass, the status edge does not: nothing may be written
    with pytest.raises(InvalidStateError):
        await OrderService(session).update_order(
            order_id, OrderUpdate(requirements="new", status=S.pending_payment), buyer
        )
    fresh = await OrderRepository(session).get_order_by_id(order_id)
    assert fresh.requirements == "original"
    assert fresh.status == S.in_progress


async def test_stale_transition_matches_no_row(session, people, make_order):
    buyer, seller, _ = people
    order = await make_order(buyer, seller, status=S.delivered)
    repo = OrderRepository(session)

    assert await repo.transition(order.order_id, {"status": S.completed}, Order.status == S.delivered)
    await session.commit()
    # a second writer that still believes the order is Delivered loses
    assert not await repo.transition(order.order_id, {"status": S.in_progress}, Order.status == S.delivered)
    assert (await repo.get_order_by_id(order.order_id)).status == S.completed


# --- VerifyPayment ---

async def test_rejected_payment_stays_pending(session, people, make_order):
    buyer, seller, admin = people
    order = await make_order(buyer, seller, status=S.payment_pending_verify)
    order = await OrderService(session).verify_payment(order.order_id, False, admin)
    assert order.status == S.payment_pending_verify
    assert order.payment_verified_at is None


async def test_verify_requires_pending_verification(session, people, make_order):
    buyer, seller, admin = people
    order = await make_order(buyer, seller, status=S.pending_payment)
    with pytest.raises(InvalidStateError):
        await OrderService(session).verify_payment(order.order_id, True, admin)


async def test_verify_payment_twice(session, people, make_order):
    buyer, seller, admin = people
    order = await make_order(buyer, seller, status=S.payment_pending_verify)
    service = OrderService(session)

    order = await service.verify_payment(order.order_id, True, admin)
    assert order.status == S.payment_confirmed
    with pytest.raises(InvalidStateError):
        await service.verify_payment(order.order_id, True, admin)


# --- Withdrawal ---

async def test_withdrawal_only_for_completed_orders(session, people, make_order):
    buyer, seller, _ = people
    order = await make_order(buyer, seller, status=S.delivered)
    with pytest.raises(InvalidStateError):
        await OrderService(session).request_withdrawal(order.order_id, seller)


async def test_withdrawal_only_by_seller(session, people, make_order):
    buyer, seller, _ = people
    order = await make_order(buyer, seller, status=S.completed)
    with pytest.raises(AuthorizationError):
        await OrderService(session).request_withdrawal(order.order_id, buyer)


async def test_duplicate_withdrawal_request(session, people, make_order):
    buyer, seller, _ = people
    order = await make_order(buyer, seller, status=S.completed)
    service = OrderService(session)
    await service.request_withdrawal(order.order_id, seller)
    with pytest.raises(InvalidStateError):
        await service.request_withdrawal(order.order_id, seller)


async def test_rejected_withdrawal_can_be_requested_again(session, people, make_order):
    buyer, seller, admin = people
    order = await make_order(buyer, seller, status=S.completed)
    service = OrderService(session)

    await service.request_withdrawal(order.order_id, seller)
    order = await service.process_withdrawal(order.order_id, "reject", admin)
    assert order.withdrawal_status == WithdrawalStatusEnum.rejected
    assert order.withdrawal_requested is False
    assert [o.order_id for o in await service.list_withdrawal_eligible(seller)] == [order.order_id]

    order = await service.request_withdrawal(order.order_id, seller)
    assert order.withdrawal_status == WithdrawalStatusEnum.pending
    assert await service.list_withdrawal_eligible(seller) == []


async def test_process_requires_pending_request(session, people, make_order):
    buyer, seller, admin = people
    order = await make_order(buyer, seller, status=S.completed)
    with pytest.raises(InvalidStateError):
        await OrderService(session).process_withdrawal(order.order_id, "approve", admin)


# --- Admin listings ---

async def test_withdrawal_listing_survives_missing_seller(session, people, make_order):
    buyer, seller, admin = people
    order = await make_order(
        buyer, seller, status=S.completed,
        withdrawal_requested=True, withdrawal_status=WithdrawalStatusEnum.pending,
    )
    # dangling reference: SQLite does not enforce the foreign key here
    await session.delete(seller)
    await session.commit()

    rows = await OrderService(session).list_withdrawal_requests()
    assert [r.order_id for r in rows] == [order.order_id]
    assert rows[0].seller.name == "Unknown Seller"
    assert rows[0].seller_payment_details is None


async def test_order_history_flags(session, people, make_order):
    buyer, seller, _ = people
    await make_order(buyer, seller, status=S.in_progress)
    done = await make_order(buyer, seller, status=S.completed)

    rows = await OrderService(session).list_order_history()
    assert [r.order_id for r in rows] == [done.order_id]
    assert rows[0].seller_completed is True
    assert rows[0].client_confirmed is False


async def test_pending_listing_survives_missing_seller(session, people, make_order):
    buyer, seller, _ = people
    order = await make_order(buyer, seller, status=S.payment_pending_verify)
    await session.delete(seller)
    await session.commit()

    rows = await OrderService(session).list_pending_verification()
    assert [r.order_id for r in rows] == [order.order_id]
    assert rows[0].seller.name == "Unknown Seller"
    assert rows[0].buyer.name == "Alice"


async def test_pending_listing_survives_lookup_errors(session, people, make_order, monkeypatch):
    buyer, seller, _ = people
    order = await make_order(buyer, seller, status=S.payment_pending_verify)
    order_id = order.order_id  # the rollback after a failed lookup expires loaded instances
    service = OrderService(session)

    async def broken_lookup(user_id):
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(service.user_repo, "get_user_by_id", broken_lookup)

    rows = await service.list_pending_verification()
    assert [r.order_id for r in rows] == [order_id]
    assert rows[0].seller.name == "Unknown Seller"
    assert rows[0].buyer.name == "Unknown Buyer"
