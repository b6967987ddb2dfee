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
            name='RegistrationProgress',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('current_step', models.PositiveSmallIntegerField(default=1)),
                ('next_step', models.PositiveSmallIntegerField(default=1)),
                ('total_steps', models.PositiveSmallIntegerField(default=9)),
                ('completed_steps', models.PositiveSmallIntegerField(default=0)),
                ('step_1_completed', models.BooleanField(default=False)),
                ('step_2_completed', models.BooleanField(default=False)),
                ('step_3_completed', models.BooleanField(default=False)),
                ('step_4_completed', models.BooleanField(default=False)),
                ('step_5_completed', models.BooleanField(default=False)),
                ('step_6_completed', models.BooleanField(default=False)),
                ('step_7_completed', models.BooleanField(default=False)),
                ('step_8_completed', models.BooleanField(default=False)),
                ('step_9_completed', models.BooleanField(default=False)),
                ('form_data', models.JSONField(blank=True, default=dict)),
                ('registration_status', models.CharField(choices=[('IN_PROGRESS', 'In Progress'), ('COMPLETED', 'Completed')], default='IN_PROGRESS', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('parent', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='registration_progress', to='core.merchantparent')),
                ('store', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='registration_progress', to='stores.merchantstore')),
            ],
            options={
                'db_table': 'merchant_store_registration_progress',
                'ordering': ['-updated_at'],
                'indexes': [
                    models.Index(fields=['parent', 'registration_status'], name='progress_parent_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StoreMediaFile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('media_scope', models.CharField(choices=[('MENU_REFERENCE', 'Menu Reference'), ('STORE_MEDIA', 'Store Media')], default='MENU_REFERENCE', max_length=30)),
                ('source_entity', models.CharField(choices=[('ONBOARDING_MENU_IMAGE', 'Onboarding Menu Image'), ('ONBOARDING_MENU_PDF', 'Onboarding Menu PDF'), ('ONBOARDING_MENU_SHEET', 'Onboarding Menu Sheet')], max_length=40)),
                ('r2_key', models.CharField(blank=True, max_length=500, null=True)),
                ('public_url', models.TextField(blank=True, null=True)),
                ('original_file_name', models.CharField(blank=True, max_length=255, null=True)),
                ('file_size_bytes', models.PositiveIntegerField(blank=True, null=True)),
                ('mime_type', models.CharField(blank=True, max_length=120, null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('store', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='media_files', to='stores.merchantstore')),
            ],
            options={
                'db_table': 'merchant_store_media_files',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['store', 'media_scope'], name='media_store_scope_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StoreDocuments',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('pan_document_number', models.CharField(blank=True, max_length=20, null=True)),
                ('pan_document_url', models.TextField(blank=True, null=True)),
                ('pan_document_name', models.CharField(blank=True, max_length=255, null=True)),
                ('pan_holder_name', models.CharField(blank=True, max_length=200, null=True)),
                ('aadhaar_document_number', models.CharField(blank=True, max_length=20, null=True)),
                ('aadhaar_document_url', models.TextField(blank=True, null=True)),
                ('aadhaar_back_url', models.TextField(blank=True, null=True)),
                ('aadhaar_document_name', models.CharField(blank=True, max_length=255, null=True)),
                ('aadhaar_holder_name', models.CharField(blank=True, max_length=200, null=True)),
                ('gst_document_number', models.CharField(blank=True, max_length=20, null=True)),
                ('gst_document_url', models.TextField(blank=True, null=True)),
                ('gst_document_name', models.CharField(blank=True, max_length=255, null=True)),
                ('fssai_document_number', models.CharField(blank=True, max_length=20, null=True)),
                ('fssai_document_url', models.TextField(blank=True, null=True)),
                ('fssai_document_name', models.CharField(blank=True, max_length=255, null=True)),
                ('fssai_expiry_date', models.DateField(blank=True, null=True)),
                ('drug_license_document_number', models.CharField(blank=True, max_length=50, null=True)),
                ('drug_license_document_url', models.TextField(blank=True, null=True)),
                ('drug_license_document_name', models.CharField(blank=True, max_length=255, null=True)),
                ('drug_license_expiry_date', models.DateField(blank=True, null=True)),
                ('pharmacist_certificate_document_number', models.CharField(blank=True, max_length=50, null=True)),
                ('pharmacist_certificate_document_url', models.TextField(blank=True, null=True)),
                ('pharmacist_certificate_document_name', models.CharField(blank=True, max_length=255, null=True)),
                ('pharmacist_certificate_expiry_date', models.DateField(blank=True, null=True)),
                ('pharmacy_council_registration_document_url', models.TextField(blank=True, null=True)),
                ('pharmacy_council_registration_document_name', models.CharField(blank=True, max_length=255, null=True)),
                ('other_document_type', models.CharField(blank=True, max_length=100, null=True)),
                ('other_document_number', models.CharField(blank=True, max_length=100, null=True)),
                ('other_document_url', models.TextField(blank=True, null=True)),
                ('other_document_name', models.CharField(blank=True, max_length=255, null=True)),
                ('other_expiry_date', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('store', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='documents', to='stores.merchantstore')),
            ],
            options={
                'db_table': 'merchant_store_documents',
            },
        ),
        migrations.CreateModel(
            name='StoreBankAccount',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('payout_method', models.CharField(choices=[('bank', 'Bank Account'), ('upi', 'UPI')], default='bank', max_length=10)),
                ('account_holder_name', models.CharField(max_length=200)),
                ('account_number', models.CharField(max_length=30)),
                ('ifsc_code', models.CharField(max_length=20)),
                ('bank_name', models.CharField(max_length=200)),
                ('branch_name', models.CharField(blank=True, max_length=200, null=True)),
                ('account_type', models.CharField(blank=True, choices=[('savings', 'Savings'), ('current', 'Current')], max_length=20, null=True)),
                ('upi_id', models.CharField(blank=True, max_length=100, null=True)),
                ('bank_proof_type', models.CharField(blank=True, max_length=50, null=True)),
                ('bank_proof_file_url', models.TextField(blank=True, null=True)),
                ('upi_qr_screenshot_url', models.TextField(blank=True, null=True)),
                ('is_primary', models.BooleanField(default=False)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('store', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bank_accounts', to='stores.merchantstore')),
            ],
            options={
                'db_table': 'merchant_store_bank_accounts',
                'ordering': ['-is_primary', '-created_at'],
            },
        ),
    ]
