"""
Initial migration for Depotman models.
"""

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create Depotman models: Location, LocationStock, StockMovement, StockTransfer, StockTransferItem."""

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Location',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.SlugField(help_text='Unique identifier (e.g. downtown, central)', unique=True, verbose_name='Code')),
                ('name', models.CharField(max_length=100, unique=True, verbose_name='Name')),
                ('name_en', models.CharField(blank=True, default='', max_length=100, verbose_name='English name')),
                ('kind', models.CharField(choices=[('main', 'Main store'), ('branch', 'Branch'), ('warehouse', 'Warehouse')], default='branch', max_length=20, verbose_name='Kind')),
                ('address', models.CharField(blank=True, default='', max_length=255)),
                ('city', models.CharField(blank=True, default='', max_length=100)),
                ('governorate', models.CharField(blank=True, default='', max_length=100)),
                ('phone', models.CharField(blank=True, default='', max_length=30)),
                ('manager_id', models.PositiveBigIntegerField(blank=True, null=True, verbose_name='Manager')),
                ('is_active', models.BooleanField(default=True, verbose_name='Active')),
                ('is_default', models.BooleanField(default=False, help_text='Movements recorded without a location land here.', verbose_name='Default location')),
                ('allow_negative_stock', models.BooleanField(default=False, help_text='If set, quantities here may drop below zero.', verbose_name='Allow negative stock')),
                ('auto_reorder', models.BooleanField(default=True, verbose_name='Auto reorder')),
                ('print_receipts', models.BooleanField(default=True, verbose_name='Print receipts')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Location',
                'verbose_name_plural': 'Locations',
                'db_table': 'depotman_location',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='LocationStock',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_id', models.PositiveBigIntegerField(verbose_name='Product')),
                ('variant_id', models.PositiveBigIntegerField(blank=True, null=True, verbose_name='Variant')),
                ('quantity', models.IntegerField(default=0, verbose_name='Quantity')),
                ('reserved_quantity', models.PositiveIntegerField(default=0, verbose_name='Reserved')),
                ('min_stock', models.PositiveIntegerField(default=0, verbose_name='Minimum stock')),
                ('max_stock', models.PositiveIntegerField(blank=True, null=True, verbose_name='Maximum stock')),
                ('last_updated', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Last updated')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='stock', to='depotman.location', verbose_name='Location')),
            ],
            options={
                'verbose_name': 'Location stock',
                'verbose_name_plural': 'Location stock',
                'db_table': 'location_stock',
                'ordering': ['location_id', 'product_id', 'variant_id'],
                'indexes': [models.Index(fields=['product_id', 'variant_id'], name='location_stock_product_idx')],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('variant_id__isnull', False)), fields=('location', 'product_id', 'variant_id'), name='unique_location_stock_variant'),
                    models.UniqueConstraint(condition=models.Q(('variant_id__isnull', True)), fields=('location', 'product_id'), name='unique_location_stock_product'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_id', models.PositiveBigIntegerField(verbose_name='Product')),
                ('variant_id', models.PositiveBigIntegerField(blank=True, null=True, verbose_name='Variant')),
                ('movement_type', models.CharField(choices=[('in', 'In'), ('out', 'Out'), ('transfer', 'Transfer'), ('adjustment', 'Adjustment'), ('return', 'Return')], max_length=20, verbose_name='Type')),
                ('quantity', models.IntegerField(help_text='Positive = stock added, negative = stock removed', verbose_name='Quantity')),
                ('reference_type', models.CharField(blank=True, choices=[('sale', 'Sale'), ('purchase', 'Purchase'), ('transfer', 'Transfer'), ('adjustment', 'Adjustment')], default='', max_length=20, verbose_name='Reference type')),
                ('reference_id', models.PositiveBigIntegerField(blank=True, null=True, verbose_name='Reference')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Notes')),
                ('actor_id', models.PositiveBigIntegerField(verbose_name='Actor')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Created at')),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='depotman.location', verbose_name='Location')),
                ('stock', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='depotman.locationstock', verbose_name='Stock row')),
            ],
            options={
                'verbose_name': 'Stock movement',
                'verbose_name_plural': 'Stock movements',
                'db_table': 'stock_movements',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['location', 'product_id', 'variant_id'], name='stock_movement_tuple_idx'),
                    models.Index(fields=['reference_type', 'reference_id'], name='stock_movement_ref_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity', 0), _negated=True), name='stock_movement_nonzero_quantity'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockTransfer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('transfer_number', models.CharField(max_length=40, unique=True, verbose_name='Transfer number')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('in_transit', 'In transit'), ('received', 'Received'), ('cancelled', 'Cancelled')], db_index=True, default='pending', max_length=20, verbose_name='Status')),
                ('requested_by', models.PositiveBigIntegerField(verbose_name='Requested by')),
                ('approved_by', models.PositiveBigIntegerField(blank=True, null=True, verbose_name='Approved by')),
                ('received_by', models.PositiveBigIntegerField(blank=True, null=True, verbose_name='Received by')),
                ('cancelled_by', models.PositiveBigIntegerField(blank=True, null=True, verbose_name='Cancelled by')),
                ('request_date', models.DateField(default=django.utils.timezone.localdate, verbose_name='Request date')),
                ('approval_date', models.DateField(blank=True, null=True, verbose_name='Approval date')),
                ('receive_date', models.DateField(blank=True, null=True, verbose_name='Receive date')),
                ('cancel_date', models.DateField(blank=True, null=True, verbose_name='Cancel date')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Notes')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('from_location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='outgoing_transfers', to='depotman.location', verbose_name='From')),
                ('to_location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='incoming_transfers', to='depotman.location', verbose_name='To')),
            ],
            options={
                'verbose_name': 'Stock transfer',
                'verbose_name_plural': 'Stock transfers',
                'db_table': 'stock_transfers',
                'ordering': ['-created_at', '-id'],
                'indexes': [models.Index(fields=['status', 'approval_date'], name='stock_transfer_status_idx')],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('from_location', models.F('to_location')), _negated=True), name='stock_transfer_distinct_locations'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockTransferItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_id', models.PositiveBigIntegerField(verbose_name='Product')),
                ('variant_id', models.PositiveBigIntegerField(blank=True, null=True, verbose_name='Variant')),
                ('requested_quantity', models.PositiveIntegerField(verbose_name='Requested')),
                ('approved_quantity', models.PositiveIntegerField(blank=True, null=True, verbose_name='Approved')),
                ('received_quantity', models.PositiveIntegerField(blank=True, null=True, verbose_name='Received')),
                ('transfer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='depotman.stocktransfer', verbose_name='Transfer')),
            ],
            options={
                'verbose_name': 'Stock transfer item',
                'verbose_name_plural': 'Stock transfer items',
                'db_table': 'stock_transfer_items',
                'ordering': ['id'],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('variant_id__isnull', False)), fields=('transfer', 'product_id', 'variant_id'), name='unique_transfer_item_variant'),
                    models.UniqueConstraint(condition=models.Q(('variant_id__isnull', True)), fields=('transfer', 'product_id'), name='unique_transfer_item_product'),
                    models.CheckConstraint(condition=models.Q(('requested_quantity__gt', 0)), name='transfer_item_requested_positive'),
                    models.CheckConstraint(condition=models.Q(('approved_quantity__isnull', True), ('approved_quantity__lte', models.F('requested_quantity')), _connector='OR'), name='transfer_item_approved_lte_requested'),
                    models.CheckConstraint(condition=models.Q(('received_quantity__isnull', True), models.Q(('approved_quantity__isnull', True), ('received_quantity__lte', models.F('requested_quantity'))), ('received_quantity__lte', models.F('approved_quantity')), _connector='OR'), name='transfer_item_received_lte_approved'),
                ],
            },
        ),
    ]
