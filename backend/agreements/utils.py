"""Template selection and acceptance recording"""
import hashlib
import logging

from backend.core.utils import get_client_ip
from .contract import COMMISSION_FIRST_MONTH_PERCENT, COMMISSION_FROM_SECOND_MONTH_PERCENT
from .models import AgreementAcceptance, AgreementTemplate

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_KEY = 'DEFAULT_CHILD_ONBOARDING_AGREEMENT'

FALLBACK_TEMPLATE = {
    'id': None,
    'template_key': DEFAULT_TEMPLATE_KEY,
    'title': 'Merchant Partner Agreement',
    'version': 'v1',
    'pdf_url': None,
    'content_markdown': """Terms and Conditions - Partnership Plan

1) Onboarding benefits (if any) are valid only within the specified eligibility and timeline.
2) Merchant is responsible for operational readiness, menu accuracy, pricing, and legal compliance.
3) Platform charges, commission, and support fees apply as per active commercial terms.
4) Settlement and payout schedules follow platform policy and applicable law.
5) Merchant shall not use discouraged practices, including pricing disparity and off-platform diversion.
6) Contract terms may vary by city, store type, plan, and operational factors.
7) Merchant agrees to digital acceptance, audit logging, and policy updates communicated by the platform.

By signing digitally, merchant confirms reading and accepting all applicable terms and annexures.""",
}


def template_to_dict(template):
    if template is None:
        return dict(FALLBACK_TEMPLATE)
    return {
        'id': template.id,
        'template_key': template.template_key or FALLBACK_TEMPLATE['template_key'],
        'title': template.title or FALLBACK_TEMPLATE['title'],
        'version': template.version or FALLBACK_TEMPLATE['version'],
        'content_markdown': template.content_markdown or FALLBACK_TEMPLATE['content_markdown'],
        'pdf_url': template.pdf_url or None,
    }


def select_template(store_type=None, city=None):
    """
    First active template whose rules match, else the newest active one,
    else the built-in fallback.

    Returns:
        dict in the template API shape
    """
    templates = list(AgreementTemplate.objects.filter(is_active=True).order_by('-updated_at'))
    if not templates:
        return template_to_dict(None)
    matched = next((t for t in templates if t.matches(store_type, city)), None)
    return template_to_dict(matched or templates[0])


def signature_hash(signature_data_url) -> str:
    return hashlib.sha256((signature_data_url or '').encode('utf-8')).hexdigest()


def record_acceptance(request, parent, store, agreement, signature, contract_pdf_url=None):
    """Create the AgreementAcceptance for a submitted store"""
    agreement = agreement or {}
    signature = signature or {}
    template_key = agreement.get('template_key') or agreement.get('templateKey') or DEFAULT_TEMPLATE_KEY
    template_version = agreement.get('template_version') or agreement.get('templateVersion') or 'v1'
    template = AgreementTemplate.objects.filter(template_key=template_key, version=template_version).first()

    acceptance = AgreementAcceptance.objects.create(
        parent=parent,
        store=store,
        template=template,
        template_key=template_key,
        template_version=template_version,
        template_snapshot=agreement.get('template_snapshot') or agreement.get('contract_text') or '',
        signer_name=str(signature.get('signer_name') or '').strip(),
        signer_email=signature.get('signer_email') or parent.owner_email or '',
        signer_phone=signature.get('signer_phone') or parent.registered_phone or '',
        signature_data_url=signature.get('signature_data_url') or '',
        signature_hash=signature_hash(signature.get('signature_data_url')),
        accepted_ip=get_client_ip(request),
        user_agent=request.META.get('HTTP_USER_AGENT', '') if request else '',
        terms_accepted=bool(agreement.get('terms_accepted')),
        contract_read_confirmed=bool(agreement.get('contract_read_confirmed')),
        contract_pdf_url=contract_pdf_url,
        commission_first_month_pct=COMMISSION_FIRST_MONTH_PERCENT,
        commission_from_second_month_pct=COMMISSION_FROM_SECOND_MONTH_PERCENT,
    )
    logger.info(f"Agreement accepted for store {store.store_id} by {acceptance.signer_name}")
    return acceptance
