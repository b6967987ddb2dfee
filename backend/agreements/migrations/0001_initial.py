# Generated manually
import django.db.models.deletion
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        ('stores', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='AgreementTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('template_key', models.CharField(max_length=100)),
                ('title', models.CharField(max_length=200)),
                ('version', models.CharField(default='v1', max_length=20)),
                ('content_markdown', models.TextField(blank=True)),
                ('pdf_url', models.TextField(blank=True, null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('applies_to', models.JSONField(blank=True, default=dict, help_text='{"store_types": [...], "cities": [...]}')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'merchant_agreement_templates',
                'ordering': ['-updated_at'],
                'unique_together': {('template_key', 'version')},
            },
        ),
        migrations.CreateModel(
            name='AgreementAcceptance',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('template_key', models.CharField(max_length=100)),
                ('template_version', models.CharField(max_length=20)),
                ('template_snapshot', models.TextField(blank=True)),
                ('signer_name', models.CharField(max_length=200)),
                ('signer_email', models.CharField(blank=True, max_length=254)),
                ('signer_phone', models.CharField(blank=True, max_length=20)),
                ('signature_data_url', models.TextField()),
                ('signature_hash', models.CharField(max_length=64)),
                ('accepted_ip', models.GenericIPAddressField(blank=True, null=True)),
                ('user_agent', models.TextField(blank=True)),
                ('accepted_at', models.DateTimeField(auto_now_add=True)),
                ('terms_accepted', models.BooleanField(default=False)),
                ('contract_read_confirmed', models.BooleanField(default=False)),
                ('acceptance_source', models.CharField(choices=[('CHILD_ONBOARDING', 'Store Onboarding')], default='CHILD_ONBOARDING', max_length=30)),
                ('contract_pdf_url', models.TextField(blank=True, null=True)),
                ('commission_first_month_pct', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=5)),
                ('commission_from_second_month_pct', models.DecimalField(decimal_places=2, default=Decimal('15'), max_digits=5)),
                ('parent', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='agreement_acceptances', to='core.merchantparent')),
                ('store', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='agreement_acceptances', to='stores.merchantstore')),
                ('template', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='acceptances', to='agreements.agreementtemplate')),
            ],
            options={
                'db_table': 'merchant_agreement_acceptances',
                'ordering': ['-accepted_at'],
                'indexes': [
                    models.Index(fields=['store', '-accepted_at'], name='agreement_store_accepted_idx'),
                ],
            },
        ),
    ]
