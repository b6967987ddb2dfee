from rest_framework import serializers
from .models import AgreementAcceptance


class AgreementAcceptanceSerializer(serializers.ModelSerializer):
    store_id = serializers.CharField(source='store.store_id', read_only=True)

    class Meta:
        model = AgreementAcceptance
        fields = ['id', 'store_id', 'template_key', 'template_version', 'signer_name', 'signer_email',
                  'signer_phone', 'signature_hash', 'accepted_ip', 'accepted_at', 'terms_accepted',
                  'contract_read_confirmed', 'acceptance_source', 'contract_pdf_url',
                  'commission_first_month_pct', 'commission_from_second_month_pct']
        read_only_fields = fields
