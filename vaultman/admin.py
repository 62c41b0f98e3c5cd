"""
Vaultman Admin.

Provides views for production debugging and manual cleanup:
- StockUnit: list + search; allocation fields read-only
- "release" action (goes through the Releaser, never edits rows directly)
- delete only for unused units
"""

import logging

from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _

from vaultman.exceptions import StockError
from vaultman.models import StockUnit

logger = logging.getLogger(__name__)


class AvailabilityFilter(admin.SimpleListFilter):
    """Filter by allocation/expiry state."""

    title = _('Situação')
    parameter_name = 'situacao'

    def lookups(self, request, model_admin):
        return [
            ('available', _('Disponível')),
            ('used', _('Utilizado')),
            ('expired', _('Expirado')),
        ]

    def queryset(self, request, queryset):
        if self.value() == 'available':
            return queryset.available()
        if self.value() == 'used':
            return queryset.used()
        if self.value() == 'expired':
            return queryset.unused().expired()
        return queryset


@admin.register(StockUnit)
class StockUnitAdmin(admin.ModelAdmin):
    """StockUnit admin — allocation state only changes via the Stock service."""

    list_display = ['id', 'product_id', 'batch_name', 'priority', 'is_used',
                    'used_order_id', 'used_at', 'expires_at', 'created_at']
    list_filter = [AvailabilityFilter, 'is_used', 'batch_name']
    search_fields = ['=product_id', 'batch_name', '=used_order_id', 'content']
    readonly_fields = ['product_id', 'content', 'batch_name', 'is_used',
                       'used_order_id', 'used_at', 'created_at', 'created_by']
    fields = ['product_id', 'content', 'batch_name', 'priority', 'expires_at',
              'is_used', 'used_order_id', 'used_at', 'created_at', 'created_by',
              'metadata']
    date_hierarchy = 'created_at'
    ordering = ['product_id', '-priority', 'created_at']
    actions = ['release_orders', 'delete_unused']

    def has_add_permission(self, request):
        # Stock enters through import_text()/add()
        return False

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.is_used:
            return False
        return super().has_delete_permission(request, obj)

    def get_actions(self, request):
        actions = super().get_actions(request)
        actions.pop('delete_selected', None)
        return actions

    @admin.action(description=_('Estornar pedidos dos itens selecionados'))
    def release_orders(self, request, queryset):
        from vaultman import stock

        order_ids = sorted(set(
            queryset.filter(is_used=True).values_list('used_order_id', flat=True)
        ))
        count = 0
        for order_id in order_ids:
            try:
                count += len(stock.release(order_id))
            except StockError as exc:
                logger.warning("release_orders: failed to release %s: %s", order_id, exc)
                self.message_user(request, exc.message, level=messages.ERROR)

        self.message_user(request, _('{count} item(ns) liberado(s).').format(count=count))

    @admin.action(description=_('Remover itens não utilizados'))
    def delete_unused(self, request, queryset):
        from vaultman import stock

        count = 0
        for unit_id in queryset.filter(is_used=False).values_list('pk', flat=True):
            try:
                stock.delete(unit_id)
                count += 1
            except StockError as exc:
                logger.warning("delete_unused: failed to delete %s: %s", unit_id, exc)

        self.message_user(request, _('{count} item(ns) removido(s).').format(count=count))
