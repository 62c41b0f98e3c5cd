"""
Typed stock query description.

Every read of the stock table goes through build(): a StockQuery states
which product(s), usage state, expiry window, order, batch and row limit
are wanted, and build() turns that into exactly one explicit filter per
field. Nothing is expressed as a raw SQL fragment.

Usage:
    from vaultman.services.query import Expiry, StockQuery, build

    eligible = StockQuery(product_ids=(7,), used=False, expiry=Expiry.VALID,
                          order_by=ALLOCATION_ORDER, limit=2)
    build(eligible).select_for_update()
"""

import enum
from dataclasses import dataclass, replace
from datetime import datetime

from django.utils import timezone

from vaultman.models.unit import StockUnit


class Expiry(enum.Enum):
    """Expiry window of a query (time only, independent of usage)."""

    ANY = 'any'
    VALID = 'valid'        # expires_at is null or in the future
    EXPIRED = 'expired'    # expires_at is set and in the past


@dataclass(frozen=True)
class StockQuery:
    """What to read from the stock table."""

    product_ids: tuple[int, ...] | None = None
    used: bool | None = None
    expiry: Expiry = Expiry.ANY
    order_id: str | None = None
    batch_name: str | None = None
    batch_contains: str | None = None
    created_by: str | None = None
    used_from: datetime | None = None
    used_until: datetime | None = None
    order_by: tuple[str, ...] = ()
    limit: int | None = None
    now: datetime | None = None

    def __post_init__(self):
        if self.product_ids is not None:
            object.__setattr__(self, 'product_ids', tuple(self.product_ids))
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"limit must be >= 0, got {self.limit}")

    @classmethod
    def for_product(cls, product_id: int, **kwargs) -> 'StockQuery':
        return cls(product_ids=(product_id,), **kwargs)

    def replace(self, **changes) -> 'StockQuery':
        """Derive a variant of this query."""
        return replace(self, **changes)


def build(query: StockQuery):
    """
    Build the StockUnit queryset described by query.

    An empty product_ids collection selects nothing; None means "all
    products". The time reference is query.now, or the current time.
    """
    qs = StockUnit.objects.all()
    now = query.now or timezone.now()

    if query.product_ids is not None:
        if not query.product_ids:
            return qs.none()
        if len(query.product_ids) == 1:
            qs = qs.for_product(query.product_ids[0])
        else:
            qs = qs.for_products(query.product_ids)

    if query.used is True:
        qs = qs.used()
    elif query.used is False:
        qs = qs.unused()

    if query.expiry is Expiry.VALID:
        qs = qs.valid(now)
    elif query.expiry is Expiry.EXPIRED:
        qs = qs.expired(now)

    if query.order_id is not None:
        qs = qs.for_order(query.order_id)

    if query.batch_name is not None:
        qs = qs.filter(batch_name=query.batch_name)

    if query.batch_contains:
        qs = qs.filter(batch_name__icontains=query.batch_contains)

    if query.created_by is not None:
        qs = qs.filter(created_by=query.created_by)

    if query.used_from is not None:
        qs = qs.filter(used_at__gte=query.used_from)

    if query.used_until is not None:
        qs = qs.filter(used_at__lte=query.used_until)

    if query.order_by:
        qs = qs.order_by(*query.order_by)

    if query.limit is not None:
        qs = qs[:query.limit]

    return qs
