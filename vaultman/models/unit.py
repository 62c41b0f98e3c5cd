"""
StockUnit model — one allocatable piece of digital inventory.
"""

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from vaultman.exceptions import StockError

# Highest priority first, oldest first within a tier, insertion order last
ALLOCATION_ORDER = ('-priority', 'created_at', 'pk')

# Set at import, never changed afterwards
IMMUTABLE_FIELDS = ('product_id', 'content', 'created_at', 'created_by')


class StockUnitQuerySet(models.QuerySet):
    """QuerySet with the filters every stock read is composed of."""

    def for_product(self, product_id):
        """Filter units of a single product."""
        return self.filter(product_id=product_id)

    def for_products(self, product_ids):
        """Filter units of several products."""
        return self.filter(product_id__in=list(product_ids))

    def for_order(self, order_id):
        """Units currently delivered to an order."""
        return self.filter(used_order_id=order_id)

    def used(self):
        return self.filter(is_used=True)

    def unused(self):
        """Units free to allocate: not used and held by no order."""
        return self.filter(is_used=False, used_order_id__isnull=True)

    def valid(self, now=None):
        """Units with no expiry or expiring in the future."""
        now = now or timezone.now()
        return self.filter(Q(expires_at__isnull=True) | Q(expires_at__gt=now))

    def expired(self, now=None):
        """Units whose expiry is in the past (used or not)."""
        now = now or timezone.now()
        return self.filter(expires_at__isnull=False, expires_at__lte=now)

    def available(self, now=None):
        """Allocatable units: unused and not expired."""
        return self.unused().valid(now)

    def corrupted(self):
        """Units violating is_used <=> used_order_id <=> used_at."""
        return self.filter(
            Q(is_used=True, used_order_id__isnull=True)
            | Q(is_used=True, used_at__isnull=True)
            | Q(is_used=False, used_order_id__isnull=False)
            | Q(is_used=False, used_at__isnull=False)
        )


class StockUnit(models.Model):
    """
    A single unit of digital stock: a card code, a download link or a
    license text. The content IS the delivered value and is never
    regenerated.

    LIFECYCLE:

        import/add ──► AVAILABLE ──allocate()──► USED (used_order_id set)
                           ▲                          │
                           └────────release()─────────┘

    Rules:
    - content, product and provenance are immutable
    - is_used, used_order_id and used_at change together, only through
      allocate() and release()
    - allocated units cannot be deleted
    - expired units stay in the table until swept, but are not allocatable
    """

    product_id = models.PositiveIntegerField(
        db_index=True,
        verbose_name=_('ID do Produto'),
    )
    content = models.TextField(
        verbose_name=_('Conteúdo'),
        help_text=_('Código, link ou licença entregue ao cliente'),
    )
    batch_name = models.CharField(
        max_length=100,
        blank=True,
        default='',
        verbose_name=_('Lote'),
    )
    priority = models.IntegerField(
        default=0,
        verbose_name=_('Prioridade'),
        help_text=_('Maior prioridade é entregue primeiro'),
    )

    # Allocation state
    is_used = models.BooleanField(
        default=False,
        verbose_name=_('Utilizado'),
    )
    used_order_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        verbose_name=_('Pedido'),
    )
    used_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_('Utilizado em'),
    )

    expires_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        verbose_name=_('Expira em'),
        help_text=_('Depois desta data o item não é mais entregue'),
    )

    # Provenance
    created_at = models.DateTimeField(default=timezone.now, verbose_name=_('Criado em'))
    created_by = models.CharField(
        max_length=150,
        blank=True,
        default='',
        verbose_name=_('Criado por'),
    )
    metadata = models.JSONField(default=dict, blank=True, verbose_name=_('Metadados'))

    objects = StockUnitQuerySet.as_manager()

    class Meta:
        verbose_name = _('Item de Estoque')
        verbose_name_plural = _('Itens de Estoque')
        indexes = [
            models.Index(
                fields=['product_id', 'is_used', '-priority', 'created_at'],
                name='vaultman_unit_allocation_idx',
            ),
            models.Index(fields=['used_order_id'], name='vaultman_unit_order_idx'),
            models.Index(fields=['batch_name'], name='vaultman_unit_batch_idx'),
        ]

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_values = dict(zip(field_names, values))
        return instance

    # ══════════════════════════════════════════════════════════════
    # PROPERTIES
    # ══════════════════════════════════════════════════════════════

    @property
    def is_expired(self) -> bool:
        """Has the expiry passed?"""
        if self.expires_at is None:
            return False
        return self.expires_at <= timezone.now()

    @property
    def is_available(self) -> bool:
        """Can be allocated right now?"""
        return not self.is_used and not self.is_expired

    @property
    def is_consistent(self) -> bool:
        """is_used, used_order_id and used_at agree with each other."""
        return self.is_used == (self.used_order_id is not None) == (self.used_at is not None)

    # ══════════════════════════════════════════════════════════════
    # PERSISTENCE GUARDS
    # ══════════════════════════════════════════════════════════════

    def save(self, *args, **kwargs):
        """Save unit, refusing inconsistent or immutable-field changes."""
        if not self.is_consistent:
            raise ValueError(
                f"Item {self.pk}: is_used, used_order_id e used_at devem mudar juntos."
            )

        loaded = getattr(self, '_loaded_values', None)
        if self.pk and loaded:
            for field in IMMUTABLE_FIELDS:
                if field in loaded and loaded[field] != getattr(self, field):
                    raise ValueError(f"Campo {field} é imutável (item {self.pk}).")
            if loaded.get('batch_name') and loaded['batch_name'] != self.batch_name:
                raise ValueError(f"Lote é imutável depois de definido (item {self.pk}).")

        super().save(*args, **kwargs)

        self._loaded_values = {
            field: getattr(self, field)
            for field in (*IMMUTABLE_FIELDS, 'batch_name')
        }

    def delete(self, *args, **kwargs):
        """Prevent deletion of units held by an order."""
        if self.is_used or self.used_order_id is not None:
            raise StockError(
                'CANNOT_DELETE_ALLOCATED',
                unit_id=self.pk,
                order_id=self.used_order_id,
            )
        return super().delete(*args, **kwargs)

    def __str__(self) -> str:
        marker = f"→ {self.used_order_id}" if self.is_used else "livre"
        return f"#{self.pk} produto {self.product_id} [{self.batch_name or '-'}] {marker}"
