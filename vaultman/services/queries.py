"""
Stock queries — read-only operations.

All methods are classmethod on Stock and use no locking.
"""

import logging

from django.core.paginator import EmptyPage, Paginator

from vaultman.exceptions import StockError
from vaultman.models.unit import ALLOCATION_ORDER, StockUnit
from vaultman.services.query import Expiry, StockQuery, build

logger = logging.getLogger('vaultman')


def _paginate(qs, page, limit) -> dict:
    """Slice a queryset into a page dict for the admin API."""
    page = max(int(page or 1), 1)
    limit = max(int(limit or 1), 1)
    paginator = Paginator(qs, limit)
    try:
        items = list(paginator.page(page).object_list)
    except EmptyPage:
        items = []

    total = paginator.count
    return {
        'items': items,
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'total_pages': paginator.num_pages if total else 0,
            'has_next': page * limit < total,
            'has_prev': page > 1,
        },
    }


class StockQueries:
    """Read-only stock query methods."""

    @classmethod
    def get_unit(cls, unit_id) -> StockUnit | None:
        """Get a unit by id."""
        return StockUnit.objects.filter(pk=unit_id).first()

    @classmethod
    def units_for_order(cls, order_id) -> list[StockUnit]:
        """Units currently delivered to an order (its delivery content)."""
        return list(build(StockQuery(order_id=str(order_id), order_by=ALLOCATION_ORDER)))

    @classmethod
    def list_units(cls, page=1, limit=20, product_id=None, batch_name=None,
                   is_used=None, expired_only=False) -> dict:
        """
        Paginated unit listing for the admin.

        Shows unexpired units, or only expired ones with expired_only.
        batch_name matches as a substring.
        """
        query = StockQuery(
            product_ids=None if product_id is None else (product_id,),
            used=is_used,
            expiry=Expiry.EXPIRED if expired_only else Expiry.VALID,
            batch_contains=batch_name or None,
            order_by=('-priority', '-created_at', '-pk'),
        )
        return _paginate(build(query), page, limit)

    @classmethod
    def units_in_batch(cls, batch_name) -> list[StockUnit]:
        """All units of a batch, oldest first."""
        return list(build(StockQuery(batch_name=batch_name, order_by=('created_at', 'pk'))))

    @classmethod
    def recent_units(cls, product_id, limit=10) -> list[StockUnit]:
        """Most recently imported units of a product."""
        return list(build(StockQuery.for_product(
            product_id, order_by=('-created_at', '-pk'), limit=limit,
        )))

    @classmethod
    def export(cls, product_id, include_used=False, batch_name=None) -> list[StockUnit]:
        """Units of a product grouped by batch, oldest first."""
        return list(build(StockQuery.for_product(
            product_id,
            used=None if include_used else False,
            batch_name=batch_name,
            order_by=('batch_name', 'created_at', 'pk'),
        )))

    @classmethod
    def export_text(cls, product_id, include_used=False, batch_name=None) -> str:
        """Exported contents, one per line (re-importable)."""
        units = cls.export(product_id, include_used=include_used, batch_name=batch_name)
        return '\n'.join(unit.content for unit in units)

    @classmethod
    def usage_history(cls, product_id, start=None, end=None, page=1, limit=50) -> dict:
        """Delivered units of a product, most recent delivery first."""
        query = StockQuery.for_product(
            product_id,
            used=True,
            used_from=start,
            used_until=end,
            order_by=('-used_at', '-pk'),
        )
        return _paginate(build(query), page, limit)

    @classmethod
    def corrupted_units(cls, product_id=None) -> list[StockUnit]:
        """Units whose is_used, used_order_id and used_at disagree."""
        query = StockQuery() if product_id is None else StockQuery.for_product(product_id)
        return list(build(query).corrupted().order_by('pk'))

    @classmethod
    def verify_integrity(cls, product_id=None) -> None:
        """
        Audit the tri-state invariant.

        Never repairs: which side is right cannot be guessed.

        Raises:
            StockError('CORRUPTED_UNIT'): If any unit is inconsistent
        """
        broken = [unit.pk for unit in cls.corrupted_units(product_id)]
        if broken:
            logger.error(
                "stock.corruption",
                extra={"product_id": product_id, "unit_ids": broken},
            )
            raise StockError('CORRUPTED_UNIT', product_id=product_id, unit_ids=broken)
