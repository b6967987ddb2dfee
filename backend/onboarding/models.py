from django.db import models
from backend.core.models import MerchantParent
from backend.stores.models import MerchantStore


class RegistrationProgress(models.Model):
    """Saved wizard state for one store registration"""
    STATUS_CHOICES = [
        ('IN_PROGRESS', 'In Progress'),
        ('COMPLETED', 'Completed'),
    ]
    TOTAL_STEPS = 9

    parent = models.ForeignKey(MerchantParent, on_delete=models.CASCADE, related_name='registration_progress')
    store = models.ForeignKey(MerchantStore, on_delete=models.SET_NULL, null=True, blank=True, related_name='registration_progress')
    current_step = models.PositiveSmallIntegerField(default=1)
    next_step = models.PositiveSmallIntegerField(default=1)
    total_steps = models.PositiveSmallIntegerField(default=TOTAL_STEPS)
    completed_steps = models.PositiveSmallIntegerField(default=0)
    step_1_completed = models.BooleanField(default=False)
    step_2_completed = models.BooleanField(default=False)
    step_3_completed = models.BooleanField(default=False)
    step_4_completed = models.BooleanField(default=False)
    step_5_completed = models.BooleanField(default=False)
    step_6_completed = models.BooleanField(default=False)
    step_7_completed = models.BooleanField(default=False)
    step_8_completed = models.BooleanField(default=False)
    step_9_completed = models.BooleanField(default=False)
    form_data = models.JSONField(default=dict, blank=True)
    registration_status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='IN_PROGRESS')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Progress {self.id} ({self.parent.parent_merchant_id}) step {self.current_step}"

    def get_flags(self):
        return {f'step_{i}_completed': getattr(self, f'step_{i}_completed') for i in range(1, self.TOTAL_STEPS + 1)}

    class Meta:
        db_table = 'merchant_store_registration_progress'
        ordering = ['-updated_at']
        indexes = [
            models.Index(fields=['parent', 'registration_status'], name='progress_parent_status_idx'),
        ]


class StoreMediaFile(models.Model):
    """Uploaded media attached to a store (menu references, gallery)"""
    MEDIA_SCOPE_CHOICES = [
        ('MENU_REFERENCE', 'Menu Reference'),
        ('STORE_MEDIA', 'Store Media'),
    ]
    SOURCE_ENTITY_CHOICES = [
        ('ONBOARDING_MENU_IMAGE', 'Onboarding Menu Image'),
        ('ONBOARDING_MENU_PDF', 'Onboarding Menu PDF'),
        ('ONBOARDING_MENU_SHEET', 'Onboarding Menu Sheet'),
    ]

    store = models.ForeignKey(MerchantStore, on_delete=models.CASCADE, related_name='media_files')
    media_scope = models.CharField(max_length=30, choices=MEDIA_SCOPE_CHOICES, default='MENU_REFERENCE')
    source_entity = models.CharField(max_length=40, choices=SOURCE_ENTITY_CHOICES)
    r2_key = models.CharField(max_length=500, blank=True, null=True)
    public_url = models.TextField(blank=True, null=True)
    original_file_name = models.CharField(max_length=255, blank=True, null=True)
    file_size_bytes = models.PositiveIntegerField(null=True, blank=True)
    mime_type = models.CharField(max_length=120, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.source_entity} for {self.store.store_id}"

    class Meta:
        db_table = 'merchant_store_media_files'
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['store', 'media_scope'], name='media_store_scope_idx'),
        ]


class StoreDocuments(models.Model):
    """KYC documents, one row per store"""
    store = models.OneToOneField(MerchantStore, on_delete=models.CASCADE, related_name='documents')

    pan_document_number = models.CharField(max_length=20, blank=True, null=True)
    pan_document_url = models.TextField(blank=True, null=True)
    pan_document_name = models.CharField(max_length=255, blank=True, null=True)
    pan_holder_name = models.CharField(max_length=200, blank=True, null=True)

    aadhaar_document_number = models.CharField(max_length=20, blank=True, null=True)
    aadhaar_document_url = models.TextField(blank=True, null=True)
    aadhaar_back_url = models.TextField(blank=True, null=True)
    aadhaar_document_name = models.CharField(max_length=255, blank=True, null=True)
    aadhaar_holder_name = models.CharField(max_length=200, blank=True, null=True)

    gst_document_number = models.CharField(max_length=20, blank=True, null=True)
    gst_document_url = models.TextField(blank=True, null=True)
    gst_document_name = models.CharField(max_length=255, blank=True, null=True)

    fssai_document_number = models.CharField(max_length=20, blank=True, null=True)
    fssai_document_url = models.TextField(blank=True, null=True)
    fssai_document_name = models.CharField(max_length=255, blank=True, null=True)
    fssai_expiry_date = models.DateField(null=True, blank=True)

    drug_license_document_number = models.CharField(max_length=50, blank=True, null=True)
    drug_license_document_url = models.TextField(blank=True, null=True)
    drug_license_document_name = models.CharField(max_length=255, blank=True, null=True)
    drug_license_expiry_date = models.DateField(null=True, blank=True)

    pharmacist_certificate_document_number = models.CharField(max_length=50, blank=True, null=True)
    pharmacist_certificate_document_url = models.TextField(blank=True, null=True)
    pharmacist_certificate_document_name = models.CharField(max_length=255, blank=True, null=True)
    pharmacist_certificate_expiry_date = models.DateField(null=True, blank=True)

    pharmacy_council_registration_document_url = models.TextField(blank=True, null=True)
    pharmacy_council_registration_document_name = models.CharField(max_length=255, blank=True, null=True)

    other_document_type = models.CharField(max_length=100, blank=True, null=True)
    other_document_number = models.CharField(max_length=100, blank=True, null=True)
    other_document_url = models.TextField(blank=True, null=True)
    other_document_name = models.CharField(max_length=255, blank=True, null=True)
    other_expiry_date = models.DateField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Documents for {self.store.store_id}"

    class Meta:
        db_table = 'merchant_store_documents'


class StoreBankAccount(models.Model):
    """Payout destination for a store (bank account or UPI)"""
    PAYOUT_METHOD_CHOICES = [
        ('bank', 'Bank Account'),
        ('upi', 'UPI'),
    ]
    ACCOUNT_TYPE_CHOICES = [
        ('savings', 'Savings'),
        ('current', 'Current'),
    ]

    store = models.ForeignKey(MerchantStore, on_delete=models.CASCADE, related_name='bank_accounts')
    payout_method = models.CharField(max_length=10, choices=PAYOUT_METHOD_CHOICES, default='bank')
    account_holder_name = models.CharField(max_length=200)
    account_number = models.CharField(max_length=30)
    ifsc_code = models.CharField(max_length=20)
    bank_name = models.CharField(max_length=200)
    branch_name = models.CharField(max_length=200, blank=True, null=True)
    account_type = models.CharField(max_length=20, choices=ACCOUNT_TYPE_CHOICES, blank=True, null=True)
    upi_id = models.CharField(max_length=100, blank=True, null=True)
    bank_proof_type = models.CharField(max_length=50, blank=True, null=True)
    bank_proof_file_url = models.TextField(blank=True, null=True)
    upi_qr_screenshot_url = models.TextField(blank=True, null=True)
    is_primary = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.payout_method} account for {self.store.store_id}"

    class Meta:
        db_table = 'merchant_store_bank_accounts'
        ordering = ['-is_primary', '-created_at']
