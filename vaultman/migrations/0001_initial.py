"""
Initial migration for Vaultman models.
"""

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create StockUnit."""

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='StockUnit',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_id', models.PositiveIntegerField(db_index=True, verbose_name='ID do Produto')),
                ('content', models.TextField(help_text='Código, link ou licença entregue ao cliente', verbose_name='Conteúdo')),
                ('batch_name', models.CharField(blank=True, default='', max_length=100, verbose_name='Lote')),
                ('priority', models.IntegerField(default=0, help_text='Maior prioridade é entregue primeiro', verbose_name='Prioridade')),
                ('is_used', models.BooleanField(default=False, verbose_name='Utilizado')),
                ('used_order_id', models.CharField(blank=True, max_length=64, null=True, verbose_name='Pedido')),
                ('used_at', models.DateTimeField(blank=True, null=True, verbose_name='Utilizado em')),
                ('expires_at', models.DateTimeField(blank=True, db_index=True, help_text='Depois desta data o item não é mais entregue', null=True, verbose_name='Expira em')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Criado em')),
                ('created_by', models.CharField(blank=True, default='', max_length=150, verbose_name='Criado por')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadados')),
            ],
            options={
                'verbose_name': 'Item de Estoque',
                'verbose_name_plural': 'Itens de Estoque',
                'indexes': [
                    models.Index(fields=['product_id', 'is_used', '-priority', 'created_at'], name='vaultman_unit_allocation_idx'),
                    models.Index(fields=['used_order_id'], name='vaultman_unit_order_idx'),
                    models.Index(fields=['batch_name'], name='vaultman_unit_batch_idx'),
                ],
            },
        ),
    ]
