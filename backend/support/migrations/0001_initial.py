# Generated manually
import backend.support.models
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        ('stores', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='SupportTicket',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('ticket_id', models.CharField(default=backend.support.models.generate_ticket_id, max_length=30, unique=True)),
                ('raised_by_name', models.CharField(blank=True, max_length=200, null=True)),
                ('raised_by_email', models.CharField(blank=True, max_length=254, null=True)),
                ('raised_by_mobile', models.CharField(blank=True, max_length=20, null=True)),
                ('ticket_type', models.CharField(default='NON_ORDER_RELATED', max_length=30)),
                ('ticket_source', models.CharField(default='MERCHANT', max_length=20)),
                ('page_context', models.CharField(default='auth', max_length=30)),
                ('title', models.CharField(max_length=50)),
                ('category', models.CharField(default='OTHER', max_length=30)),
                ('subject', models.CharField(max_length=500)),
                ('description', models.TextField(max_length=5000)),
                ('attachments', models.JSONField(blank=True, default=list)),
                ('status', models.CharField(choices=[('OPEN', 'Open'), ('IN_PROGRESS', 'In Progress'), ('WAITING_FOR_MERCHANT', 'Waiting for Merchant'), ('RESOLVED', 'Resolved'), ('CLOSED', 'Closed'), ('REOPENED', 'Reopened')], default='OPEN', max_length=25)),
                ('priority', models.CharField(choices=[('LOW', 'Low'), ('MEDIUM', 'Medium'), ('HIGH', 'High'), ('URGENT', 'Urgent')], default='MEDIUM', max_length=10)),
                ('resolution', models.TextField(blank=True, null=True)),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
                ('closed_at', models.DateTimeField(blank=True, null=True)),
                ('reopened_at', models.DateTimeField(blank=True, null=True)),
                ('rating', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('rating_feedback', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('parent', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='support_tickets', to='core.merchantparent')),
                ('raised_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='support_tickets', to=settings.AUTH_USER_MODEL)),
                ('store', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='support_tickets', to='stores.merchantstore')),
            ],
            options={
                'db_table': 'merchant_support_tickets',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['parent', 'status'], name='ticket_parent_status_idx'),
                    models.Index(fields=['category'], name='ticket_category_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TicketMessage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sender_type', models.CharField(choices=[('MERCHANT', 'Merchant'), ('AGENT', 'Agent'), ('SYSTEM', 'System')], default='MERCHANT', max_length=10)),
                ('message', models.TextField()),
                ('attachments', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('sender', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='ticket_messages', to=settings.AUTH_USER_MODEL)),
                ('ticket', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='messages', to='support.supportticket')),
            ],
            options={
                'db_table': 'merchant_ticket_messages',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='StoreReview',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('customer_ref', models.CharField(blank=True, max_length=50, null=True)),
                ('customer_name', models.CharField(blank=True, max_length=200, null=True)),
                ('customer_email', models.CharField(blank=True, max_length=254, null=True)),
                ('customer_mobile', models.CharField(blank=True, max_length=20, null=True)),
                ('customer_order_count', models.PositiveIntegerField(default=0)),
                ('order_ref', models.CharField(blank=True, max_length=50, null=True)),
                ('overall_rating', models.PositiveSmallIntegerField()),
                ('food_quality_rating', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('delivery_rating', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('packaging_rating', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('review_title', models.CharField(blank=True, max_length=255, null=True)),
                ('review_text', models.TextField(blank=True, null=True)),
                ('review_images', models.JSONField(blank=True, default=list)),
                ('review_tags', models.JSONField(blank=True, default=list)),
                ('merchant_response', models.TextField(blank=True, null=True)),
                ('merchant_responded_at', models.DateTimeField(blank=True, null=True)),
                ('is_verified', models.BooleanField(default=False)),
                ('is_flagged', models.BooleanField(default=False)),
                ('flag_reason', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('store', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reviews', to='stores.merchantstore')),
            ],
            options={
                'db_table': 'merchant_store_reviews',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['store', '-created_at'], name='review_store_created_idx'),
                ],
            },
        ),
    ]
