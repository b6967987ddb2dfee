from django.db import models
from backend.core.models import MerchantParent
from backend.stores.models import MerchantStore


class AgreementTemplate(models.Model):
    """Versioned merchant agreement text, optionally limited to store types or cities"""
    template_key = models.CharField(max_length=100)
    title = models.CharField(max_length=200)
    version = models.CharField(max_length=20, default='v1')
    content_markdown = models.TextField(blank=True)
    pdf_url = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    applies_to = models.JSONField(default=dict, blank=True, help_text='{"store_types": [...], "cities": [...]}')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.template_key} {self.version}"

    def matches(self, store_type=None, city=None) -> bool:
        rules = self.applies_to or {}
        store_types = [str(v).upper() for v in (rules.get('store_types') or [])]
        cities = [str(v).lower() for v in (rules.get('cities') or [])]
        store_type_ok = not store_types or bool(store_type and str(store_type).upper() in store_types)
        city_ok = not cities or bool(city and str(city).lower() in cities)
        return store_type_ok and city_ok

    class Meta:
        db_table = 'merchant_agreement_templates'
        ordering = ['-updated_at']
        unique_together = [['template_key', 'version']]


class AgreementAcceptance(models.Model):
    """Signed acceptance of the enrolment form for one store"""
    SOURCE_CHOICES = [
        ('CHILD_ONBOARDING', 'Store Onboarding'),
    ]

    parent = models.ForeignKey(MerchantParent, on_delete=models.CASCADE, related_name='agreement_acceptances')
    store = models.ForeignKey(MerchantStore, on_delete=models.CASCADE, related_name='agreement_acceptances')
    template = models.ForeignKey(AgreementTemplate, on_delete=models.SET_NULL, null=True, blank=True, related_name='acceptances')
    template_key = models.CharField(max_length=100)
    template_version = models.CharField(max_length=20)
    template_snapshot = models.TextField(blank=True)

    signer_name = models.CharField(max_length=200)
    signer_email = models.CharField(max_length=254, blank=True)
    signer_phone = models.CharField(max_length=20, blank=True)
    signature_data_url = models.TextField()
    signature_hash = models.CharField(max_length=64)

    accepted_ip = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)
    accepted_at = models.DateTimeField(auto_now_add=True)
    terms_accepted = models.BooleanField(default=False)
    contract_read_confirmed = models.BooleanField(default=False)
    acceptance_source = models.CharField(max_length=30, choices=SOURCE_CHOICES, default='CHILD_ONBOARDING')
    contract_pdf_url = models.TextField(blank=True, null=True)

    commission_first_month_pct = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    commission_from_second_month_pct = models.DecimalField(max_digits=5, decimal_places=2, default=15)

    def __str__(self):
        return f"{self.store.store_id} signed by {self.signer_name}"

    class Meta:
        db_table = 'merchant_agreement_acceptances'
        ordering = ['-accepted_at']
        indexes = [
            models.Index(fields=['store', '-accepted_at'], name='agreement_store_accepted_idx'),
        ]
