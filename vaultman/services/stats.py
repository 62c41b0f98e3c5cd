"""
Stock stats — availability and usage counts.

All counts come from one grouped aggregation, whatever the number of
products. Nothing is cached: every call reflects committed state.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime

from django.db.models import Count, Max, Q
from django.utils import timezone

from vaultman.conf import vaultman_settings
from vaultman.services.query import StockQuery, build

logger = logging.getLogger('vaultman')


@dataclass(frozen=True)
class UnitStats:
    """Counts for one product."""

    total: int = 0
    used: int = 0
    available: int = 0
    expired: int = 0
    usage_rate: float = 0.0

    @classmethod
    def empty(cls) -> 'UnitStats':
        return cls()

    @classmethod
    def from_counts(cls, total, used, available, expired) -> 'UnitStats':
        rate = (used / total) * 100 if total else 0.0
        return cls(
            total=total,
            used=used,
            available=available,
            expired=expired,
            usage_rate=rate,
        )

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class BatchSummary:
    """Counts for one import batch."""

    batch_name: str
    product_id: int
    total: int
    used: int
    available: int
    created_at: datetime | None


def _count_annotations(now):
    """
    available = unused, held by no order and not expired
    expired   = unused, expires_at set and in the past
    used      = is_used, whatever the expiry
    """
    not_expired = Q(expires_at__isnull=True) | Q(expires_at__gt=now)
    return {
        'total': Count('pk'),
        'used': Count('pk', filter=Q(is_used=True)),
        'available': Count(
            'pk',
            filter=Q(is_used=False, used_order_id__isnull=True) & not_expired,
        ),
        'expired': Count(
            'pk',
            filter=Q(is_used=False, expires_at__isnull=False, expires_at__lte=now),
        ),
    }


class StockStats:
    """Read-only aggregation methods."""

    @classmethod
    def stats_for(cls, product_id) -> UnitStats:
        """Counts for a single product (all zeros when it has no stock)."""
        product_id = int(product_id)
        return cls.batch_stats_for([product_id])[product_id]

    @classmethod
    def batch_stats_for(cls, product_ids) -> dict[int, UnitStats]:
        """
        Counts for many products in a single grouped query.

        Every requested product is present in the result; products without
        stock units map to UnitStats.empty(). Ids are keyed as ints, so
        "7" and 7 are the same product.

        Performance:
            One query for N products (GROUP BY product_id)
        """
        ids = list(dict.fromkeys(int(pid) for pid in product_ids))
        result = {pid: UnitStats.empty() for pid in ids}
        if not ids:
            return result

        now = timezone.now()
        rows = (
            build(StockQuery(product_ids=tuple(ids), now=now))
            .order_by()
            .values('product_id')
            .annotate(**_count_annotations(now))
        )
        for row in rows:
            result[row['product_id']] = UnitStats.from_counts(
                row['total'], row['used'], row['available'], row['expired'],
            )
        return result

    @classmethod
    def batch_summaries(cls, product_id=None) -> list[BatchSummary]:
        """Per-batch counts, newest batch first."""
        query = StockQuery() if product_id is None else StockQuery.for_product(product_id)
        now = timezone.now()
        counts = _count_annotations(now)
        rows = (
            build(query)
            .order_by()
            .values('batch_name', 'product_id')
            .annotate(
                total=counts['total'],
                used=counts['used'],
                available=counts['available'],
                created=Max('created_at'),
            )
            .order_by('-created', 'batch_name')
        )
        return [
            BatchSummary(
                batch_name=row['batch_name'],
                product_id=row['product_id'],
                total=row['total'],
                used=row['used'],
                available=row['available'],
                created_at=row['created'],
            )
            for row in rows
        ]

    @classmethod
    def low_stock(cls, threshold=None, product_ids=None) -> dict[int, UnitStats]:
        """
        Products running low: at least one available unit, fewer than
        `threshold`.

        Products with nothing available are out of stock, not low, and are
        left out (overview() counts them separately). `product_ids` limits
        the check to those products; None checks every product with stock.
        """
        if threshold is None:
            threshold = vaultman_settings.LOW_STOCK_THRESHOLD

        query = StockQuery() if product_ids is None else StockQuery(product_ids=product_ids)
        known = set(
            build(query).order_by().values_list('product_id', flat=True).distinct()
        )

        stats = cls.batch_stats_for(sorted(known))
        low = {pid: s for pid, s in stats.items() if 0 < s.available < threshold}
        if low:
            logger.info(
                "stock.low_stock",
                extra={"threshold": threshold, "product_ids": sorted(low)},
            )
        return low

    @classmethod
    def overview(cls, product_ids, low_threshold=None) -> dict:
        """
        Dashboard totals across a catalog.

        Out of stock: no available unit. Low stock: 1..low_threshold - 1
        available units.
        """
        if low_threshold is None:
            low_threshold = vaultman_settings.LOW_STOCK_THRESHOLD

        stats = cls.batch_stats_for(product_ids)
        out_of_stock = sum(1 for s in stats.values() if s.available == 0)
        low = sum(1 for s in stats.values() if 0 < s.available < low_threshold)

        recent = cls.batch_summaries()[:vaultman_settings.RECENT_BATCHES]

        return {
            'total_products': len(stats),
            'total_units': sum(s.total for s in stats.values()),
            'available_units': sum(s.available for s in stats.values()),
            'used_units': sum(s.used for s in stats.values()),
            'low_stock_products': low,
            'out_of_stock_products': out_of_stock,
            'recent_batches': recent,
        }
