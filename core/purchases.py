"""Optional "support the developer" tip purchases.

Updates:
  v0.2.0 - 2026-10-17 - Consume storefront transaction updates, e.g. approved pending buys.
  v0.1.1 - 2026-09-16 - Publish entitlement changes through the repository event hub.
  v0.1.0 - 2026-09-05 - Introduce commerce backend protocol and support purchase manager.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .events import RepositoryEventKind
from .exceptions import PurchaseError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable, Sequence

    from .events import RepositoryEventHub

logger = logging.getLogger("prompt_playground.purchases")

SUPPORT_PRODUCT_ID = "support_developer_tip"


class PurchaseOutcome(str, Enum):
    VERIFIED = "verified"
    UNVERIFIED = "unverified"
    PENDING = "pending"
    CANCELLED = "cancelled"


@dataclass(slots=True, frozen=True)
class Product:
    """Store listing for a purchasable item."""

    id: str
    display_name: str
    display_price: str
    description: str = ""


@dataclass(slots=True, frozen=True)
class TransactionUpdate:
    """A transaction delivered by the storefront outside of an explicit purchase call."""

    product_id: str
    verified: bool = True
    transaction_id: str = field(default_factory=lambda: uuid.uuid4().hex)


@runtime_checkable
class CommerceBackend(Protocol):
    """Storefront operations used by :class:`SupportPurchaseManager`."""

    async def fetch_products(self, product_ids: Sequence[str]) -> list[Product]: ...

    async def purchase(self, product_id: str) -> PurchaseOutcome: ...

    async def current_entitlements(self) -> set[str]: ...

    async def sync(self) -> None: ...

    def transaction_updates(self) -> AsyncIterator[TransactionUpdate]: ...

    async def finish(self, update: TransactionUpdate) -> None: ...


class InMemoryCommerceBackend:
    """Storefront double for development builds and tests."""

    def __init__(
        self,
        products: Iterable[Product] | None = None,
        *,
        outcome: PurchaseOutcome = PurchaseOutcome.VERIFIED,
    ) -> None:
        self._products = {
            product.id: product
            for product in (
                products
                if products is not None
                else [Product(SUPPORT_PRODUCT_ID, "Support the Developer", "$2.99")]
            )
        }
        self.outcome = outcome
        self.fail_with: str | None = None
        self.pending: set[str] = set()
        self.finished: list[TransactionUpdate] = []
        self._entitlements: set[str] = set()
        self._updates: asyncio.Queue[TransactionUpdate | None] = asyncio.Queue()

    def _check(self) -> None:
        if self.fail_with:
            raise PurchaseError(self.fail_with)

    async def fetch_products(self, product_ids: Sequence[str]) -> list[Product]:
        self._check()
        return [self._products[item] for item in product_ids if item in self._products]

    async def purchase(self, product_id: str) -> PurchaseOutcome:
        self._check()
        if product_id not in self._products:
            raise PurchaseError(f"Unknown product '{product_id}'")
        if self.outcome is PurchaseOutcome.VERIFIED:
            self._entitlements.add(product_id)
        elif self.outcome is PurchaseOutcome.PENDING:
            self.pending.add(product_id)
        return self.outcome

    async def current_entitlements(self) -> set[str]:
        self._check()
        return set(self._entitlements)

    async def sync(self) -> None:
        self._check()

    async def transaction_updates(self) -> AsyncIterator[TransactionUpdate]:
        while True:
            update = await self._updates.get()
            if update is None:
                return
            yield update

    async def finish(self, update: TransactionUpdate) -> None:
        self._check()
        self.finished.append(update)

    def approve_pending(self, product_id: str, *, verified: bool = True) -> TransactionUpdate:
        """Resolve a pending purchase and deliver it as a transaction update."""
        self.pending.discard(product_id)
        if verified:
            self._entitlements.add(product_id)
        update = TransactionUpdate(product_id, verified=verified)
        self._updates.put_nowait(update)
        return update

    def close(self) -> None:
        """End the transaction update stream."""
        self._updates.put_nowait(None)


class SupportPurchaseManager:
    """Track products, entitlements, and the purchase error message."""

    def __init__(
        self,
        backend: CommerceBackend,
        product_ids: Sequence[str] = (SUPPORT_PRODUCT_ID,),
        events: RepositoryEventHub | None = None,
    ) -> None:
        self._backend = backend
        self._product_ids = tuple(product_ids)
        self._events = events
        self.products: list[Product] = []
        self.purchased_products: set[str] = set()
        self.is_loading = False
        self.error: str | None = None
        self._listener: asyncio.Task[None] | None = None

    @property
    def support_product(self) -> Product | None:
        return next((item for item in self.products if item.id == SUPPORT_PRODUCT_ID), None)

    @property
    def has_purchased_support(self) -> bool:
        return SUPPORT_PRODUCT_ID in self.purchased_products

    @property
    def is_listening(self) -> bool:
        return self._listener is not None and not self._listener.done()

    async def start_listening(self) -> None:
        """Consume storefront transaction updates in a background task."""
        if self.is_listening:
            return
        self._listener = asyncio.create_task(self._listen())

    async def stop_listening(self) -> None:
        if self._listener is None:
            return
        self._listener.cancel()
        await asyncio.gather(self._listener, return_exceptions=True)
        self._listener = None

    async def load_products(self) -> list[Product]:
        self.is_loading = True
        try:
            self.products = await self._backend.fetch_products(self._product_ids)
        except PurchaseError as exc:
            self.error = f"Failed to load products: {exc}"
        finally:
            self.is_loading = False
        return list(self.products)

    async def purchase(self, product_id: str = SUPPORT_PRODUCT_ID) -> PurchaseOutcome | None:
        """Buy *product_id*; pending and cancelled outcomes leave state untouched."""
        try:
            outcome = await self._backend.purchase(product_id)
            if outcome is PurchaseOutcome.VERIFIED:
                await self._update_entitlements()
        except PurchaseError as exc:
            self.error = f"Purchase failed: {exc}"
            return None
        if outcome is PurchaseOutcome.VERIFIED:
            self.error = None
        elif outcome is PurchaseOutcome.UNVERIFIED:
            self.error = "Purchase could not be verified"
        logger.info("Purchase finished", extra={"product_id": product_id, "outcome": outcome.value})
        return outcome

    async def restore_purchases(self) -> None:
        try:
            await self._backend.sync()
            await self._update_entitlements()
        except PurchaseError as exc:
            self.error = f"Failed to restore purchases: {exc}"

    async def _listen(self) -> None:
        async for update in self._backend.transaction_updates():
            details = {"product_id": update.product_id, "transaction_id": update.transaction_id}
            if not update.verified:
                logger.warning("Ignoring unverified transaction", extra=details)
                continue
            try:
                await self._backend.finish(update)
                await self._update_entitlements()
            except PurchaseError as exc:
                self.error = f"Failed to complete transaction: {exc}"
                continue
            self.error = None
            logger.info("Transaction update finished", extra=details)

    async def _update_entitlements(self) -> None:
        self.purchased_products = await self._backend.current_entitlements()
        if self._events is not None:
            self._events.emit(
                RepositoryEventKind.PURCHASES_CHANGED,
                purchased=sorted(self.purchased_products),
            )


__all__ = [
    "CommerceBackend",
    "InMemoryCommerceBackend",
    "Product",
    "PurchaseOutcome",
    "SUPPORT_PRODUCT_ID",
    "SupportPurchaseManager",
    "TransactionUpdate",
]
