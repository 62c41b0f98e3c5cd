"""
Stock imports — loading, editing and removing units.

Imports only insert; they never touch allocation state.
"""

import logging
import time

from django.db import transaction
from django.utils import timezone

from vaultman.conf import vaultman_settings
from vaultman.exceptions import StockError
from vaultman.models.unit import StockUnit
from vaultman.services.query import Expiry, StockQuery, build

logger = logging.getLogger('vaultman')

BATCH_NAME_MAX_LENGTH = 100


def clean_lines(raw_text: str, line_separator: str | None = None) -> tuple[list[str], int]:
    """
    Split, strip and de-duplicate import text.

    Exact, case-sensitive duplicates are dropped; first occurrence wins.

    Returns:
        (unique lines in input order, number of duplicates dropped)
    """
    if line_separator:
        parts = raw_text.split(line_separator)
    else:
        parts = raw_text.splitlines()

    lines = [line.strip() for line in parts]
    lines = [line for line in lines if line]
    unique = list(dict.fromkeys(lines))
    return unique, len(lines) - len(unique)


def _check_product(product_id):
    if not vaultman_settings.VALIDATE_PRODUCTS:
        return
    from vaultman.adapters import get_catalog
    if not get_catalog().product_exists(product_id):
        raise StockError('PRODUCT_NOT_FOUND', product_id=product_id)


def _check_priority(priority):
    max_priority = vaultman_settings.MAX_PRIORITY
    if (isinstance(priority, bool) or not isinstance(priority, int)
            or not 0 <= priority <= max_priority):
        raise StockError('INVALID_PRIORITY', priority=priority, max=max_priority)


def _lock_unit(unit_id) -> StockUnit:
    try:
        return StockUnit.objects.select_for_update().get(pk=unit_id)
    except StockUnit.DoesNotExist:
        raise StockError('UNIT_NOT_FOUND', unit_id=unit_id) from None


class StockImports:
    """Import, add, delete and maintenance methods."""

    @classmethod
    def import_text(cls, product_id, raw_text, *, batch_name=None, created_by='',
                    priority=0, expires_at=None, line_separator=None,
                    **metadata) -> list[StockUnit]:
        """
        Bulk-load units from pasted or uploaded text, one unit per line.

        Lines are stripped, blank lines dropped and exact duplicates within
        this call removed. Content already in stock is NOT checked: the
        same code may exist in another batch.

        Returns:
            Created units, in input order

        Raises:
            StockError('EMPTY_IMPORT'): No valid line left after cleaning
            StockError('INVALID_PRIORITY'): Priority outside 0..MAX_PRIORITY
            StockError('INVALID_BATCH'): Batch name too long
            StockError('PRODUCT_NOT_FOUND'): Catalog validation failed
        """
        _check_priority(priority)
        if batch_name and len(batch_name) > BATCH_NAME_MAX_LENGTH:
            raise StockError('INVALID_BATCH', batch_name=batch_name)

        lines, duplicates = clean_lines(raw_text or '', line_separator)
        if not lines:
            raise StockError('EMPTY_IMPORT', product_id=product_id)

        _check_product(product_id)

        batch_name = batch_name or (
            f"{vaultman_settings.BATCH_NAME_PREFIX}_{int(time.time() * 1000)}"
        )
        now = timezone.now()
        units = [
            StockUnit(
                product_id=product_id,
                content=line,
                batch_name=batch_name,
                priority=priority,
                expires_at=expires_at,
                created_at=now,
                created_by=created_by or '',
                metadata=dict(metadata),
            )
            for line in lines
        ]

        with transaction.atomic():
            created = StockUnit.objects.bulk_create(
                units, batch_size=vaultman_settings.IMPORT_BULK_SIZE,
            )

        logger.info(
            "stock.import",
            extra={
                "product_id": product_id,
                "batch_name": batch_name,
                "qty": len(created),
                "duplicates": duplicates,
                "created_by": created_by,
            },
        )
        return created

    @classmethod
    def add(cls, product_id, content, **options) -> StockUnit:
        """Add a single unit (an import of one line)."""
        if content and ('\n' in content or '\r' in content):
            # Multi-line content (e.g. a license block) stays one unit
            options['line_separator'] = '\x00'
        return cls.import_text(product_id, content, **options)[0]

    @classmethod
    def delete(cls, unit_id) -> None:
        """
        Delete an unused unit.

        Raises:
            StockError('UNIT_NOT_FOUND'): If the unit doesn't exist
            StockError('CANNOT_DELETE_ALLOCATED'): If it belongs to an order;
                release the order first
        """
        with transaction.atomic():
            unit = _lock_unit(unit_id)
            if unit.is_used or unit.used_order_id is not None:
                raise StockError(
                    'CANNOT_DELETE_ALLOCATED',
                    unit_id=unit_id,
                    order_id=unit.used_order_id,
                )
            StockUnit.objects.filter(pk=unit_id, is_used=False, used_order_id__isnull=True).delete()

        logger.info("stock.delete", extra={"unit_id": unit_id})

    @classmethod
    def delete_batch(cls, batch_name) -> int:
        """Delete the unused units of a batch. Returns how many were removed."""
        if not batch_name:
            raise StockError('INVALID_BATCH', batch_name=batch_name)

        with transaction.atomic():
            deleted, _ = build(StockQuery(batch_name=batch_name, used=False)).delete()

        logger.info(
            "stock.batch.deleted",
            extra={"batch_name": batch_name, "deleted": deleted},
        )
        return deleted

    @classmethod
    def sweep_expired(cls, batch_size=None, product_id=None) -> int:
        """
        Delete expired, unused units in batches.

        Returns:
            Number of units deleted

        Concurrency:
            - Each batch runs under its own transaction.atomic()
            - Uses select_for_update() with SKIP LOCKED
            - Safe for multiple instances
        """
        batch_size = batch_size or vaultman_settings.EXPIRED_BATCH_SIZE
        query = StockQuery(
            product_ids=None if product_id is None else (product_id,),
            used=False,
            expiry=Expiry.EXPIRED,
        )
        total = 0

        while True:
            with transaction.atomic():
                batch_ids = list(
                    build(query)
                    .select_for_update(skip_locked=True)
                    .values_list('pk', flat=True)[:batch_size]
                )
                if not batch_ids:
                    break

                deleted, _ = StockUnit.objects.filter(
                    pk__in=batch_ids, is_used=False,
                ).delete()
                total += deleted

        if total:
            logger.info(
                "stock.expired_swept",
                extra={"deleted": total, "product_id": product_id},
            )
        return total

    @classmethod
    def reprioritize(cls, unit_id, priority) -> StockUnit:
        """Change the priority of a unit."""
        _check_priority(priority)
        with transaction.atomic():
            unit = _lock_unit(unit_id)
            unit.priority = priority
            unit.save(update_fields=['priority'])
        return unit

    @classmethod
    def set_expiry(cls, unit_id, expires_at) -> StockUnit:
        """Set or clear (None) the expiry of a unit."""
        with transaction.atomic():
            unit = _lock_unit(unit_id)
            unit.expires_at = expires_at
            unit.save(update_fields=['expires_at'])
        return unit
