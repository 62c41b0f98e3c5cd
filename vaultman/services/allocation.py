"""
Stock allocation — reserve units for an order, release them on refund.

All writes run under transaction.atomic() with a per-product lock, row
locks and a guarded UPDATE, retried a bounded number of times (see
services/retry.py).
"""

import logging

from django.db import transaction
from django.utils import timezone

from vaultman.exceptions import StockError
from vaultman.models.unit import ALLOCATION_ORDER, StockUnit
from vaultman.services.locks import lock_product
from vaultman.services.query import Expiry, StockQuery, build
from vaultman.services.retry import LostRace, run_with_retry

logger = logging.getLogger('vaultman')


def _eligible(product_id, now) -> StockQuery:
    """Allocatable units of a product, in allocation order."""
    return StockQuery.for_product(
        product_id,
        used=False,
        expiry=Expiry.VALID,
        order_by=ALLOCATION_ORDER,
        now=now,
    )


def _claim(candidate_ids, order_id, now) -> int:
    """
    Mark candidates as used by order_id.

    Compare-and-swap: only rows that are still unused, held by no order
    and unexpired are touched. Returns the number of rows claimed.
    """
    return build(StockQuery(used=False, expiry=Expiry.VALID, now=now)).filter(
        pk__in=candidate_ids,
    ).update(
        is_used=True,
        used_order_id=order_id,
        used_at=now,
    )


def _allocate_once(product_id, order_id, quantity) -> list[StockUnit]:
    now = timezone.now()
    eligible = _eligible(product_id, now)

    with transaction.atomic():
        lock_product(product_id)
        candidate_ids = list(
            build(eligible).select_for_update().values_list('pk', flat=True)[:quantity]
        )

        if len(candidate_ids) < quantity:
            # Under READ COMMITTED a locked row that another allocation just
            # consumed drops out of the LIMIT without being replaced
            available = build(eligible.replace(order_by=())).count()
            if available < quantity:
                raise StockError(
                    'INSUFFICIENT_INVENTORY',
                    product_id=product_id,
                    requested=quantity,
                    available=available,
                )
            raise LostRace()

        if _claim(candidate_ids, order_id, now) != quantity:
            raise LostRace()

        return list(
            StockUnit.objects.filter(pk__in=candidate_ids).order_by(*ALLOCATION_ORDER)
        )


def _release_once(order_id) -> list[StockUnit]:
    with transaction.atomic():
        units = list(
            build(StockQuery(order_id=order_id, order_by=ALLOCATION_ORDER))
            .select_for_update()
        )
        if not units:
            return []

        broken = [unit.pk for unit in units if not unit.is_used or unit.used_at is None]
        if broken:
            logger.error(
                "stock.corruption",
                extra={"order_id": order_id, "unit_ids": broken},
            )
            raise StockError('CORRUPTED_UNIT', order_id=order_id, unit_ids=broken)

        released = StockUnit.objects.filter(
            pk__in=[unit.pk for unit in units],
            used_order_id=order_id,
        ).update(
            is_used=False,
            used_order_id=None,
            used_at=None,
        )
        if released != len(units):
            raise LostRace()

        for unit in units:
            unit.is_used = False
            unit.used_order_id = None
            unit.used_at = None
        return units


class StockAllocation:
    """Allocate and release methods."""

    @classmethod
    def allocate(cls, product_id, order_id, quantity=1) -> list[StockUnit]:
        """
        Reserve `quantity` units of a product for an order.

        Picks unused, unexpired units by priority (highest first), then
        oldest first. Either all `quantity` units are marked used by the
        order or none are.

        Returns:
            Allocated units, in allocation order

        Raises:
            StockError('INVALID_QUANTITY'): If quantity is not a positive int
            StockError('INVALID_ORDER'): If order_id is empty
            StockError('INSUFFICIENT_INVENTORY'): Fewer eligible units than
                requested. Not retried; the order must not be delivered.
            StockError('CONCURRENT_MODIFICATION' | 'TRANSIENT_STORE_ERROR'):
                Retries exhausted

        Concurrency:
            - Each attempt runs under transaction.atomic()
            - Per-product lock (advisory lock on PostgreSQL)
            - select_for_update() on the candidate rows
            - UPDATE guarded by is_used=False and no holding order; a
              short count rolls back
            - Safe for concurrent calls on the same product
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise StockError('INVALID_QUANTITY', requested=quantity)
        if not order_id:
            raise StockError('INVALID_ORDER', order_id=order_id)
        order_id = str(order_id)

        try:
            units = run_with_retry(
                _allocate_once, product_id, order_id, quantity,
                event="stock.allocate",
            )
        except StockError as e:
            if e.code == 'INSUFFICIENT_INVENTORY':
                logger.warning(
                    "stock.allocate.insufficient",
                    extra={
                        "product_id": product_id,
                        "order_id": order_id,
                        "requested": quantity,
                        "available": e.available,
                    },
                )
            raise

        logger.info(
            "stock.allocate",
            extra={
                "product_id": product_id,
                "order_id": order_id,
                "qty": quantity,
                "unit_ids": [unit.pk for unit in units],
            },
        )
        return units

    @classmethod
    def release(cls, order_id) -> list[StockUnit]:
        """
        Return every unit held by an order to the available pool.

        Idempotent: an order holding nothing (never allocated, or already
        released) yields an empty list. Order status is not checked here.

        Raises:
            StockError('CORRUPTED_UNIT'): A matched unit is inconsistent.
                Logged and left untouched.
            StockError('CONCURRENT_MODIFICATION' | 'TRANSIENT_STORE_ERROR'):
                Retries exhausted
        """
        if not order_id:
            raise StockError('INVALID_ORDER', order_id=order_id)
        order_id = str(order_id)

        units = run_with_retry(_release_once, order_id, event="stock.release")

        if units:
            logger.info(
                "stock.release",
                extra={
                    "order_id": order_id,
                    "qty": len(units),
                    "unit_ids": [unit.pk for unit in units],
                },
            )
        return units
