# Generated manually
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        ('stores', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='OnboardingPayment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('razorpay_order_id', models.CharField(max_length=100, unique=True)),
                ('razorpay_payment_id', models.CharField(blank=True, max_length=100, null=True)),
                ('razorpay_signature', models.CharField(blank=True, max_length=200, null=True)),
                ('razorpay_status', models.CharField(blank=True, max_length=30, null=True)),
                ('amount_paise', models.PositiveIntegerField()),
                ('standard_amount_paise', models.PositiveIntegerField(blank=True, null=True)),
                ('promo_amount_paise', models.PositiveIntegerField(blank=True, null=True)),
                ('currency', models.CharField(default='INR', max_length=3)),
                ('status', models.CharField(choices=[('created', 'Created'), ('captured', 'Captured'), ('failed', 'Failed')], default='created', max_length=10)),
                ('plan_id', models.CharField(default='FREE', max_length=50)),
                ('plan_name', models.CharField(blank=True, max_length=100)),
                ('promo_label', models.CharField(blank=True, max_length=50)),
                ('failure_reason', models.TextField(blank=True, null=True)),
                ('captured_at', models.DateTimeField(blank=True, null=True)),
                ('webhook_payload', models.JSONField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('parent', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='onboarding_payments', to='core.merchantparent')),
                ('store', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='onboarding_payments', to='stores.merchantstore')),
            ],
            options={
                'db_table': 'merchant_onboarding_payments',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['parent', 'status'], name='payment_parent_status_idx'),
                ],
            },
        ),
    ]
