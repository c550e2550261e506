"""
Tests for the domain services.
"""

import pytest

from postal.app.core.exceptions import AuthenticationError, StorageError, ValidationError
from postal.app.core.security import get_password_hash, verify_password
from postal.app.db.repository import CrudRepository
from postal.app.models.account import Account
from postal.app.services.account_service import AccountService
from postal.app.services.shipment_service import ShipmentService
from postal.app.services.shipping_method_service import ShippingMethodService
from postal.app.services.user_service import UserService


async def make_user(db, email, priv=False):
    return await UserService(db).create({"email": email, "address": f"{email} street", "priv": priv})


@pytest.mark.asyncio
async def test_user_lookups(db_session):
    service = UserService(db_session)
    regular = await make_user(db_session, "bob@example.com")
    admin = await make_user(db_session, "boss@example.com", priv=True)

    assert (await service.get_by_email("bob@example.com")).id == regular.id
    assert await service.get_by_email("nobody@example.com") is None
    assert [u.id for u in await service.get_by_privilege(True)] == [admin.id]
    assert [u.id for u in await service.get_by_privilege(False)] == [regular.id]


@pytest.mark.asyncio
async def test_cost_range_is_inclusive_and_cheapest_first(db_session):
    service = ShippingMethodService(db_session)
    await service.create({"name": "Overnight", "cost": 25.0})
    await service.create({"name": "Express", "cost": 12.5})
    await service.create({"name": "Standard", "cost": 5.0})

    names = [m.name for m in await service.get_by_cost_range(5.0, 12.5)]
    assert names == ["Standard", "Express"]


@pytest.mark.asyncio
async def test_create_shipment_defaults_to_pending(db_session, methods, feed):
    standard, _ = methods
    sender = await make_user(db_session, "bob@example.com")

    row = await ShipmentService(db_session, feed).create(
        {"sender_id": sender.id, "to_address": "9 Elm St", "weight": 1.5, "method_id": standard.id}
    )

    assert row.status == "pending"
    assert row.status_label == "Pending"
    # Plain rows carry no joined summaries
    assert row.sender is None and row.method is None


@pytest.mark.asyncio
async def test_unknown_status_is_rejected(db_session, feed):
    with pytest.raises(ValidationError):
        await ShipmentService(db_session, feed).create(
            {"to_address": "9 Elm St", "weight": 1.0, "status": "lost_at_sea"}
        )


@pytest.mark.asyncio
async def test_joined_reads_carry_summaries(db_session, methods, feed):
    _, express = methods
    sender = await make_user(db_session, "bob@example.com")
    other = await make_user(db_session, "carol@example.com")
    service = ShipmentService(db_session, feed)
    await service.create({"sender_id": other.id, "to_address": "1 Oak St", "weight": 1, "method_id": express.id})
    mine = await service.create({"sender_id": sender.id, "to_address": "9 Elm St", "weight": 2, "method_id": express.id})

    rows = await service.get_by_user(sender.id)
    assert [r.id for r in rows] == [mine.id]
    assert rows[0].sender.email == "bob@example.com"
    assert rows[0].method.name == "Express"
    assert rows[0].method.cost == 12.5

    assert len(await service.list_all()) == 2


@pytest.mark.asyncio
async def test_get_by_status(db_session, feed):
    service = ShipmentService(db_session, feed)
    first = await service.create({"to_address": "A", "weight": 1})
    await service.create({"to_address": "B", "weight": 1})
    await service.update_status(first.id, "delivered")

    delivered = await service.get_by_status("delivered")
    assert [r.id for r in delivered] == [first.id]


@pytest.mark.asyncio
async def test_update_status_returns_joined_row_and_publishes(db_session, methods, feed):
    standard, _ = methods
    sender = await make_user(db_session, "bob@example.com")
    service = ShipmentService(db_session, feed)
    row = await service.create({"sender_id": sender.id, "to_address": "9 Elm St", "weight": 2, "method_id": standard.id})
    subscription = feed.subscribe("shipments", sender_id=sender.id)

    updated = await service.update_status(row.id, "picked_up")

    assert updated.status == "picked_up"
    assert updated.sender.email == "bob@example.com"
    change = subscription.queue.get_nowait()
    assert change.row["id"] == row.id
    assert change.row["status"] == "picked_up"
    assert "sender" not in change.row


@pytest.mark.asyncio
async def test_deleted_method_leaves_shipment_unreferenced(session_factory, db_session, methods, feed):
    standard, _ = methods
    row = await ShipmentService(db_session, feed).create(
        {"to_address": "9 Elm St", "weight": 2, "method_id": standard.id}
    )
    await ShippingMethodService(db_session).delete(standard.id)

    async with session_factory() as fresh:
        rows = await ShipmentService(fresh, feed).list_all()

    assert rows[0].id == row.id
    assert rows[0].method_id is None
    assert rows[0].method is None


@pytest.mark.asyncio
async def test_sign_up_creates_regular_profile(db_session):
    user = await AccountService(db_session).sign_up("new@example.com", "secret123", "5 Pine Rd")

    assert user.priv is False
    assert user.address == "5 Pine Rd"
    account = await AccountService(db_session).get_by_email("new@example.com")
    assert verify_password("secret123", account.hashed_password)


@pytest.mark.asyncio
async def test_sign_up_twice_conflicts(db_session):
    service = AccountService(db_session)
    await service.sign_up("new@example.com", "secret123")

    with pytest.raises(StorageError) as exc_info:
        await service.sign_up("new@example.com", "other123")
    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_sign_in_wrong_password(db_session):
    service = AccountService(db_session)
    await service.sign_up("new@example.com", "secret123")

    with pytest.raises(AuthenticationError):
        await service.sign_in("new@example.com", "wrong-password")


@pytest.mark.asyncio
async def test_sign_in_without_profile_row(db_session):
    await CrudRepository(db_session, Account).create(
        {"email": "ghost@example.com", "hashed_password": get_password_hash("secret123")}
    )

    with pytest.raises(StorageError) as exc_info:
        await AccountService(db_session).sign_in("ghost@example.com", "secret123")
    assert exc_info.value.message == "No user record found for this email."


@pytest.mark.asyncio
async def test_sign_up_refuses_leftover_profile(session_factory, db_session):
    await make_user(db_session, "leftover@example.com")

    with pytest.raises(StorageError) as exc_info:
        await AccountService(db_session).sign_up("leftover@example.com", "secret123")
    assert exc_info.value.status_code == 409

    async with session_factory() as fresh:
        assert await AccountService(fresh).get_by_email("leftover@example.com") is None


@pytest.mark.asyncio
async def test_profile_email_change_moves_login(session_factory, db_session):
    service = AccountService(db_session)
    user = await service.sign_up("old@example.com", "secret123")

    updated = await service.update_profile(user.id, {"email": "new@example.com", "address": "2 New Rd"})
    assert updated.email == "new@example.com"

    async with session_factory() as fresh:
        accounts = AccountService(fresh)
        assert await accounts.get_by_email("old@example.com") is None
        _, profile = await accounts.sign_in("new@example.com", "secret123")
    assert profile.id == user.id
    assert profile.address == "2 New Rd"


@pytest.mark.asyncio
async def test_profile_email_change_to_deleted_users_email_changes_nothing(session_factory, db_session):
    service = AccountService(db_session)
    bob = await service.sign_up("bob@example.com", "secret123")
    gone = await service.sign_up("gone@example.com", "gonepass1")
    # Deleting the profile keeps the account, so the email stays taken
    await UserService(db_session).delete(gone.id)

    with pytest.raises(StorageError) as exc_info:
        await service.update_profile(bob.id, {"email": "gone@example.com"})
    assert exc_info.value.status_code == 409
    assert exc_info.value.message == "Email already registered"

    async with session_factory() as fresh:
        accounts = AccountService(fresh)
        _, profile = await accounts.sign_in("bob@example.com", "secret123")
        assert profile.id == bob.id
        assert profile.email == "bob@example.com"
        with pytest.raises(StorageError):
            await accounts.sign_in("gone@example.com", "gonepass1")


@pytest.mark.asyncio
async def test_failed_account_write_rolls_back_profile(session_factory, db_session, monkeypatch):
    service = AccountService(db_session)
    bob = await service.sign_up("bob@example.com", "secret123")

    async def broken_commit():
        await db_session.rollback()
        raise StorageError("Error saving accounts: disk full")

    monkeypatch.setattr(service.repository, "commit", broken_commit)
    with pytest.raises(StorageError):
        await service.update_profile(bob.id, {"email": "bobby@example.com", "address": "Elsewhere"})

    async with session_factory() as fresh:
        profile = await UserService(fresh).get_by_id(bob.id)
        assert profile.email == "bob@example.com"
        assert profile.address == ""
        assert await AccountService(fresh).get_by_email("bob@example.com") is not None


ALL_STATUSES = [
    "pending", "picked_up", "in_transit", "out_for_delivery",
    "delivered", "failed_delivery", "returned", "cancelled",
]


@pytest.mark.asyncio
@pytest.mark.parametrize("origin", ALL_STATUSES)
async def test_any_status_may_follow_any_status(db_session, feed, origin):
    service = ShipmentService(db_session, feed)
    row = await service.create({"to_address": "9 Elm St", "weight": 1.0})

    for target in ALL_STATUSES:
        await service.update_status(row.id, origin)
        moved = await service.update_status(row.id, target)
        assert moved.status == target
        assert (await service.get_by_id(row.id)).status == target


@pytest.mark.asyncio
async def test_backward_moves_are_allowed(db_session, feed):
    service = ShipmentService(db_session, feed)
    row = await service.create({"to_address": "9 Elm St", "weight": 1.0})

    await service.update_status(row.id, "delivered")
    assert (await service.update_status(row.id, "pending")).status == "pending"
    await service.update_status(row.id, "cancelled")
    assert (await service.update_status(row.id, "in_transit")).status == "in_transit"
