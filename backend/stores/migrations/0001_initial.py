# Generated manually
import django.db.models.deletion
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='MerchantStore',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('store_id', models.CharField(max_length=20, unique=True)),
                ('store_name', models.CharField(max_length=200)),
                ('store_display_name', models.CharField(blank=True, max_length=200)),
                ('store_description', models.TextField(blank=True)),
                ('store_email', models.EmailField(blank=True, max_length=254)),
                ('store_phones', models.JSONField(blank=True, default=list)),
                ('store_type', models.CharField(choices=[('RESTAURANT', 'Restaurant'), ('CAFE', 'Cafe'), ('BAKERY', 'Bakery'), ('CLOUD_KITCHEN', 'Cloud Kitchen'), ('GROCERY', 'Grocery'), ('PHARMA', 'Pharma'), ('STATIONERY', 'Stationery'), ('ELECTRONICS_ECOMMERCE', 'Electronics / E-commerce'), ('OTHERS', 'Others')], default='RESTAURANT', max_length=30)),
                ('custom_store_type', models.CharField(blank=True, max_length=100)),
                ('full_address', models.TextField(blank=True)),
                ('landmark', models.CharField(blank=True, max_length=255)),
                ('city', models.CharField(blank=True, max_length=100)),
                ('state', models.CharField(blank=True, max_length=100)),
                ('postal_code', models.CharField(blank=True, max_length=10)),
                ('country', models.CharField(default='IN', max_length=2)),
                ('latitude', models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ('longitude', models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ('approval_status', models.CharField(choices=[('DRAFT', 'Draft'), ('SUBMITTED', 'Submitted'), ('UNDER_VERIFICATION', 'Under Verification'), ('APPROVED', 'Approved'), ('REJECTED', 'Rejected')], default='DRAFT', max_length=20)),
                ('status', models.CharField(choices=[('ACTIVE', 'Active'), ('INACTIVE', 'Inactive')], default='INACTIVE', max_length=10)),
                ('operational_status', models.CharField(choices=[('OPEN', 'Open'), ('CLOSED', 'Closed')], default='CLOSED', max_length=10)),
                ('current_onboarding_step', models.PositiveSmallIntegerField(default=1)),
                ('onboarding_completed', models.BooleanField(default=False)),
                ('onboarding_completed_at', models.DateTimeField(blank=True, null=True)),
                ('cuisine_types', models.JSONField(blank=True, default=list)),
                ('food_categories', models.JSONField(blank=True, default=list)),
                ('avg_preparation_time_minutes', models.PositiveIntegerField(default=30)),
                ('min_order_amount', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=10)),
                ('delivery_radius_km', models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ('is_pure_veg', models.BooleanField(default=False)),
                ('accepts_online_payment', models.BooleanField(default=True)),
                ('accepts_cash', models.BooleanField(default=True)),
                ('logo_url', models.TextField(blank=True)),
                ('banner_url', models.TextField(blank=True)),
                ('gallery_images', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('parent', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stores', to='core.merchantparent')),
            ],
            options={
                'db_table': 'merchant_stores',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['parent', 'approval_status'], name='store_parent_approval_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StoreOperatingHours',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('monday_open', models.BooleanField(default=False)),
                ('monday_slot1_start', models.CharField(blank=True, max_length=5, null=True)),
                ('monday_slot1_end', models.CharField(blank=True, max_length=5, null=True)),
                ('monday_slot2_start', models.CharField(blank=True, max_length=5, null=True)),
                ('monday_slot2_end', models.CharField(blank=True, max_length=5, null=True)),
                ('monday_total_duration_minutes', models.PositiveIntegerField(default=0)),
                ('tuesday_open', models.BooleanField(default=False)),
                ('tuesday_slot1_start', models.CharField(blank=True, max_length=5, null=True)),
                ('tuesday_slot1_end', models.CharField(blank=True, max_length=5, null=True)),
                ('tuesday_slot2_start', models.CharField(blank=True, max_length=5, null=True)),
                ('tuesday_slot2_end', models.CharField(blank=True, max_length=5, null=True)),
                ('tuesday_total_duration_minutes', models.PositiveIntegerField(default=0)),
                ('wednesday_open', models.BooleanField(default=False)),
                ('wednesday_slot1_start', models.CharField(blank=True, max_length=5, null=True)),
                ('wednesday_slot1_end', models.CharField(blank=True, max_length=5, null=True)),
                ('wednesday_slot2_start', models.CharField(blank=True, max_length=5, null=True)),
                ('wednesday_slot2_end', models.CharField(blank=True, max_length=5, null=True)),
                ('wednesday_total_duration_minutes', models.PositiveIntegerField(default=0)),
                ('thursday_open', models.BooleanField(default=False)),
                ('thursday_slot1_start', models.CharField(blank=True, max_length=5, null=True)),
                ('thursday_slot1_end', models.CharField(blank=True, max_length=5, null=True)),
                ('thursday_slot2_start', models.CharField(blank=True, max_length=5, null=True)),
                ('thursday_slot2_end', models.CharField(blank=True, max_length=5, null=True)),
                ('thursday_total_duration_minutes', models.PositiveIntegerField(default=0)),
                ('friday_open', models.BooleanField(default=False)),
                ('friday_slot1_start', models.CharField(blank=True, max_length=5, null=True)),
                ('friday_slot1_end', models.CharField(blank=True, max_length=5, null=True)),
                ('friday_slot2_start', models.CharField(blank=True, max_length=5, null=True)),
                ('friday_slot2_end', models.CharField(blank=True, max_length=5, null=True)),
                ('friday_total_duration_minutes', models.PositiveIntegerField(default=0)),
                ('saturday_open', models.BooleanField(default=False)),
                ('saturday_slot1_start', models.CharField(blank=True, max_length=5, null=True)),
                ('saturday_slot1_end', models.CharField(blank=True, max_length=5, null=True)),
                ('saturday_slot2_start', models.CharField(blank=True, max_length=5, null=True)),
                ('saturday_slot2_end', models.CharField(blank=True, max_length=5, null=True)),
                ('saturday_total_duration_minutes', models.PositiveIntegerField(default=0)),
                ('sunday_open', models.BooleanField(default=False)),
                ('sunday_slot1_start', models.CharField(blank=True, max_length=5, null=True)),
                ('sunday_slot1_end', models.CharField(blank=True, max_length=5, null=True)),
                ('sunday_slot2_start', models.CharField(blank=True, max_length=5, null=True)),
                ('sunday_slot2_end', models.CharField(blank=True, max_length=5, null=True)),
                ('sunday_total_duration_minutes', models.PositiveIntegerField(default=0)),
                ('closed_days', models.JSONField(blank=True, default=list)),
                ('same_for_all_days', models.BooleanField(default=False)),
                ('is_24_hours', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('store', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='operating_hours', to='stores.merchantstore')),
            ],
            options={
                'db_table': 'merchant_store_operating_hours',
            },
        ),
        migrations.CreateModel(
            name='StoreSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('self_delivery', models.BooleanField(default=False)),
                ('platform_delivery', models.BooleanField(default=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('store', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='settings', to='stores.merchantstore')),
            ],
            options={
                'db_table': 'merchant_store_settings',
            },
        ),
    ]
