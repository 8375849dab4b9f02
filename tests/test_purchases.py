"""Tests for the support purchase manager."""

from __future__ import annotations

import asyncio

import pytest

from core.events import RepositoryEvent, RepositoryEventHub, RepositoryEventKind
from core.purchases import (
    SUPPORT_PRODUCT_ID,
    InMemoryCommerceBackend,
    PurchaseOutcome,
    SupportPurchaseManager,
)


@pytest.mark.asyncio()
async def test_load_products_exposes_support_product() -> None:
    manager = SupportPurchaseManager(InMemoryCommerceBackend())

    products = await manager.load_products()

    assert [product.id for product in products] == [SUPPORT_PRODUCT_ID]
    assert manager.support_product is not None
    assert manager.support_product.display_price == "$2.99"
    assert manager.is_loading is False


@pytest.mark.asyncio()
async def test_verified_purchase_grants_entitlement() -> None:
    events = RepositoryEventHub()
    received: list[RepositoryEvent] = []
    events.subscribe(received.append)
    manager = SupportPurchaseManager(InMemoryCommerceBackend(), events=events)

    outcome = await manager.purchase()

    assert outcome is PurchaseOutcome.VERIFIED
    assert manager.has_purchased_support is True
    assert manager.error is None
    assert received[-1].kind is RepositoryEventKind.PURCHASES_CHANGED
    assert received[-1].payload == {"purchased": [SUPPORT_PRODUCT_ID]}


@pytest.mark.asyncio()
async def test_unverified_purchase_sets_error() -> None:
    backend = InMemoryCommerceBackend(outcome=PurchaseOutcome.UNVERIFIED)
    manager = SupportPurchaseManager(backend)

    assert await manager.purchase() is PurchaseOutcome.UNVERIFIED

    assert manager.has_purchased_support is False
    assert manager.error == "Purchase could not be verified"


@pytest.mark.asyncio()
@pytest.mark.parametrize("outcome", [PurchaseOutcome.PENDING, PurchaseOutcome.CANCELLED])
async def test_pending_or_cancelled_purchase_changes_nothing(outcome: PurchaseOutcome) -> None:
    manager = SupportPurchaseManager(InMemoryCommerceBackend(outcome=outcome))

    assert await manager.purchase() is outcome

    assert manager.has_purchased_support is False
    assert manager.error is None


@pytest.mark.asyncio()
async def test_backend_failures_are_reported() -> None:
    backend = InMemoryCommerceBackend()
    manager = SupportPurchaseManager(backend)
    backend.fail_with = "store offline"

    assert await manager.load_products() == []
    assert manager.error == "Failed to load products: store offline"
    assert await manager.purchase() is None
    assert manager.error == "Purchase failed: store offline"
    await manager.restore_purchases()
    assert manager.error == "Failed to restore purchases: store offline"


@pytest.mark.asyncio()
async def test_restore_picks_up_existing_entitlements() -> None:
    backend = InMemoryCommerceBackend()
    await SupportPurchaseManager(backend).purchase()
    fresh = SupportPurchaseManager(backend)

    await fresh.restore_purchases()

    assert fresh.has_purchased_support is True


@pytest.mark.asyncio()
async def test_unknown_product_fails() -> None:
    manager = SupportPurchaseManager(InMemoryCommerceBackend())

    assert await manager.purchase("unknown") is None
    assert manager.error is not None
    assert "unknown" in manager.error


async def _until_stopped(manager: SupportPurchaseManager) -> None:
    while manager.is_listening:
        await asyncio.sleep(0)


@pytest.mark.asyncio()
async def test_pending_purchase_approved_later_grants_support() -> None:
    events = RepositoryEventHub()
    changed = asyncio.Event()
    events.subscribe(
        lambda event: changed.set() if event.kind is RepositoryEventKind.PURCHASES_CHANGED else None
    )
    backend = InMemoryCommerceBackend(outcome=PurchaseOutcome.PENDING)
    manager = SupportPurchaseManager(backend, events=events)
    await manager.start_listening()

    assert await manager.purchase() is PurchaseOutcome.PENDING
    assert manager.has_purchased_support is False
    update = backend.approve_pending(SUPPORT_PRODUCT_ID)
    await asyncio.wait_for(changed.wait(), timeout=1)

    assert manager.has_purchased_support is True
    assert backend.finished == [update]
    assert backend.pending == set()
    await manager.stop_listening()
    assert manager.is_listening is False


@pytest.mark.asyncio()
async def test_unverified_transaction_update_is_ignored() -> None:
    backend = InMemoryCommerceBackend(outcome=PurchaseOutcome.PENDING)
    manager = SupportPurchaseManager(backend)
    await manager.start_listening()
    await manager.purchase()

    backend.approve_pending(SUPPORT_PRODUCT_ID, verified=False)
    backend.close()
    await asyncio.wait_for(_until_stopped(manager), timeout=1)

    assert manager.has_purchased_support is False
    assert backend.finished == []
