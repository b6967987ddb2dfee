"""
Restaurant partner enrolment form: structured contract and plain-text rendering.
"""
import re
from dataclasses import dataclass
from typing import Optional, List, Dict, Any

COMMISSION_FIRST_MONTH_PERCENT = 0
COMMISSION_FROM_SECOND_MONTH_PERCENT = 15

MISSING = '—'

FORM_TITLE = 'RESTAURANT PARTNER ENROLMENT FORM ("FORM") FOR FOOD ORDERING AND DELIVERY SERVICES'
FORM_TITLE_LINES = ['RESTAURANT PARTNER ENROLMENT FORM', '("FORM") FOR FOOD ORDERING AND DELIVERY SERVICES']

ANNEXURE_B_BANK_HEADERS = ['Beneficiary Name', 'Bank Name', 'Account Number', 'IFSC Code', 'Account Type']
ANNEXURE_B_UPI_HEADERS = ['Beneficiary Name', 'UPI ID', 'Payment Method']
ANNEXURE_B_EMPTY = 'To be provided or as per application.'

MERCHANT_PARTNERSHIP_TERMS = """Terms and Conditions
Partnership Plan

You hereby agree and acknowledge that as part of the Plan and in consideration of the agreed onboarding fees, the Platform will provide onboarding services in accordance with the following terms and conditions:

(a) The one-time photoshoot service of up to thirty (30) images of your menu dishes through authorised third-party service providers will be valid for a period of ninety (90) days from the date your restaurant goes live on the Platform for food ordering and delivery services. You will not be able to avail this photoshoot service if the same is not availed within the said ninety (90) days period.

(b) For the photoshoot services, the designated photoshoot personnel will be available at your restaurant location at the date and time as communicated by you for a maximum duration of three (3) hours. It will be your responsibility to ensure all dishes are prepared and ready for the shoot prior to or immediately upon the arrival of the photoshoot personnel for the photoshoot personnel to complete the photoshoot within the stipulated timeframe.

(c) You acknowledge and agree that rescheduling the photoshoot is allowed/permissible only once.

(d) You acknowledge and agree that the one-time ads credit worth up to INR 1,500/- that you receive under the Plan is subject to an eligibility criteria which will be communicated to you by the Platform from time to time. If your restaurant meets this criteria you will be able to claim this discount. The discount must be utilized within thirty (30) days from the date your restaurant goes live under this plan.

(e) The Plan only offers additional benefits for your restaurant page and the Platform does not provide any warranty or guarantee towards the reach, engagement and/or performance for your restaurant.

(f) You agree and acknowledge that in the event your service fee is revised or reduced from the agreed service fee, the Platform reserves the right to void the unclaimed benefits as a part of the Plan.

(g) The offering with respect to partner discounts shall be governed by separate terms and conditions as may be communicated to you from time to time.

(h) You have an option to make an upfront payment of the onboarding fee at time of onboarding or reduction from your weekly payouts for food ordering and delivery services in five (5) equal installments.

1) In case you make an upfront payment of the onboarding fee at the time of onboarding, in the event of a payment failure on the platform, the amount of the onboarding fee will be refunded to your source account within three (3) business days. Additionally, if your restaurant is not successfully onboarded on the Platform within fifteen (15) days from the date of receipt of payment of the onboarding fee, due to reasons not attributable to you, the onboarding fee will be refunded to you.

2) In case you choose a post-paid model of payment of onboarding fee, i.e., by way of reduction from your weekly payouts, the onboarding fee will reflect separately and identifiable in your statement of account.

3) For clarity, the onboarding fee payable for the onboarding services is independent of the fee payable by you to the Platform under the terms and conditions for the food ordering and delivery services.

4) The Platform shall raise tax invoice as per GST laws for such onboarding fee. If as per the applicable tax laws, You are liable to deduct taxes at source ("TDS") on the Onboarding Fees payable to the Platform, then You shall deposit the applicable TDS from your own pocket and shall claim a refund of such TDS from the Platform upon submission of TDS certificate within time stipulated under the applicable law.

5) If you already have an existing restaurant on the Platform and are adding a new restaurant, a reduced onboarding fee will be applicable."""

DEFINITIONS = [
    ('Platform', 'The food ordering and delivery platform operated by the Company, including its website, mobile applications, and associated services.'),
    ('Restaurant Partner', 'The legal entity (restaurant/outlet) that has agreed to list its menu and fulfil Orders through the Platform, as identified in this Form.'),
    ('Customer', 'An end-user who places an Order for food and/or beverages through the Platform.'),
    ('Order', 'A request placed by a Customer through the Platform for food and/or beverages to be supplied by the Restaurant Partner.'),
    ('Order Value', 'The amount payable by the Customer for an Order (including food, beverages, packaging, and applicable taxes), as received by the Platform.'),
    ('Charges', 'The commission and other fees payable by the Restaurant Partner to the Platform as set out in Annexure A and the Terms.'),
    ('Services', 'The services provided by the Platform to the Restaurant Partner as described in this Form and the Terms.'),
    ('Terms', 'The Terms and Conditions for food ordering and delivery services, as amended from time to time, and which are incorporated by reference into this Form.'),
]

SECTIONS = [
    {
        'title': 'I. Services',
        'bullets': [
            'Order placement and catalog hosting: The Platform provides the order placement mechanism for Customers to place Orders with the Restaurant Partners on a real-time basis and hosts the menu and price lists as provided by the Restaurant Partners.',
            'Demand generation and marketing: The Platform helps bring new Customers to Restaurant Partners through targeted marketing, discovery, and a seamless food ordering experience.',
            "Logistics: The Platform enables a reliable delivery ecosystem for fulfilling the Restaurant Partner's Orders.",
            'Support: A support team is available to help resolve issues for Customers and Restaurant Partners.',
            'Technology: The Platform builds and supports products including payment and order management infrastructure.',
        ],
    },
    {
        'title': 'II. Charges',
        'paragraphs': [
            'For the Services above, the Restaurant Partner shall pay the applicable Charges as set out in Annexure A and the Terms. All amounts are subject to applicable taxes (including GST). The Platform shall raise tax invoices as per applicable law.',
        ],
    },
    {
        'title': 'III. Payment Settlement',
        'paragraphs': [
            'The Platform shall transfer the Order Value received to the Restaurant Partner, after deduction of Charges, on a weekly basis. Settlement shall be made to the bank account details provided in Annexure B. The payment settlement day for Orders serviced from Monday to Sunday shall be on or before Thursday of the following week. If the settlement day falls on a bank holiday, it shall be the next working day.',
        ],
    },
    {
        'title': 'IV. Additional Terms',
        'bullets': [
            'The Restaurant Partner shall not charge the Customer for anything other than food, beverages, and packaging on the Platform.',
            'The Restaurant Partner will maintain equal or lower prices for products on the Platform as compared to its direct channels.',
            'The Restaurant Partner will not send marketing material with Orders that discourages Customers from ordering via the Platform.',
            'This Form and its annexures, together with the Terms, constitute the entire agreement between the Parties and are legally binding.',
        ],
    },
    {
        'title': 'Declaration',
        'paragraphs': [
            'I/We have read and understood this Form and the Terms. I/We accept and agree to be bound by the Terms. I/We represent and warrant that I/we are duly authorized to sign this Form on behalf of the Restaurant Partner.',
        ],
    },
]

ANNEXURE_A = {
    'description': 'Commission and charges payable by the Restaurant Partner to the Platform for food ordering and delivery services:',
    'table': {
        'headers': ['Period', 'Commission (on Order Value)', 'Remarks'],
        'rows': [
            ['First month from Go-Live', f'{COMMISSION_FIRST_MONTH_PERCENT}%',
             'No commission for the first calendar month from the date the restaurant goes live on the Platform.'],
            ['From second month onwards', f'{COMMISSION_FROM_SECOND_MONTH_PERCENT}% + GST',
             'Fifteen per cent (15%) of the Order Value plus applicable GST. Subject to commercial terms communicated from time to time.'],
        ],
    },
}

CERTIFICATION = (
    'I/We hereby certify that the details provided above are correct, that the bank account is an account '
    'legally opened and maintained by me/our organization, and that I/we shall be liable to the maximum extent '
    'possible under applicable law in the event any details provided above are found to be incorrect.'
)


@dataclass
class BankDetails:
    account_holder_name: str = ''
    bank_name: str = ''
    account_number: str = ''
    ifsc_code: str = ''
    account_type: str = ''
    payout_method: Optional[str] = None
    upi_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['BankDetails']:
        if not data or not isinstance(data, dict):
            return None
        return cls(**{name: data.get(name) or ('' if name not in ('payout_method', 'upi_id') else None)
                      for name in cls.__dataclass_fields__})


@dataclass
class ContractData:
    storeName: str = ''
    parentName: str = ''
    ownerName: str = ''
    email: str = ''
    phone: str = ''
    address: str = ''
    effectiveDate: str = ''
    contactPerson: str = ''
    bank: Optional[BankDetails] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ContractData':
        data = data or {}
        values = {name: str(data.get(name) or '') for name in cls.__dataclass_fields__ if name != 'bank'}
        return cls(bank=BankDetails.from_dict(data.get('bank')), **values)


@dataclass
class StructuredContract:
    intro: Dict[str, str]
    definitions: List[Dict[str, str]]
    sections: List[Dict[str, Any]]
    annexureA: Dict[str, Any]
    annexureB: Dict[str, Any]
    certification: str
    termsBody: str = ''


def _strip(value) -> str:
    return str(value or '').strip()


def build_annexure_b(bank: Optional[BankDetails]) -> Dict[str, Any]:
    """Payout table: UPI or bank rows, whichever was actually filled and preferred"""
    if bank is None:
        return {'headers': ANNEXURE_B_BANK_HEADERS, 'rows': [], 'isUPI': False}

    has_upi = bool(_strip(bank.upi_id))
    has_bank = bool(_strip(bank.account_number) and _strip(bank.bank_name))
    prefers_upi = bank.payout_method == 'upi'
    prefers_bank = bank.payout_method == 'bank' or not bank.payout_method

    is_upi = (prefers_upi and has_upi) or (has_upi and not has_bank)
    is_bank = (prefers_bank and has_bank) or (has_bank and not has_upi)

    if is_upi:
        return {
            'headers': ANNEXURE_B_UPI_HEADERS,
            'rows': [[_strip(bank.account_holder_name) or MISSING, _strip(bank.upi_id), 'UPI']],
            'isUPI': True,
        }
    if is_bank:
        return {
            'headers': ANNEXURE_B_BANK_HEADERS,
            'rows': [[
                _strip(bank.account_holder_name) or MISSING,
                _strip(bank.bank_name),
                _strip(bank.account_number),
                _strip(bank.ifsc_code) or MISSING,
                _strip(bank.account_type).upper() or MISSING,
            ]],
            'isUPI': False,
        }
    return {'headers': ANNEXURE_B_BANK_HEADERS, 'rows': [], 'isUPI': False}


def build_structured_contract(data: ContractData, terms_body: str = MERCHANT_PARTNERSHIP_TERMS) -> StructuredContract:
    intro = {
        'effectiveDate': data.effectiveDate,
        'storeName': data.storeName or MISSING,
        'ownerName': data.ownerName or MISSING,
        'address': data.address or MISSING,
        'contactPerson': data.contactPerson or data.ownerName or MISSING,
        'phone': data.phone or MISSING,
        'email': data.email or MISSING,
    }
    return StructuredContract(
        intro=intro,
        definitions=[{'term': term, 'meaning': meaning} for term, meaning in DEFINITIONS],
        sections=[dict(section) for section in SECTIONS],
        annexureA=ANNEXURE_A,
        annexureB=build_annexure_b(data.bank),
        certification=CERTIFICATION,
        termsBody=terms_body or '',
    )


def intro_lines(intro: Dict[str, str]) -> List[str]:
    return [
        f"Effective Date: {intro['effectiveDate']}",
        f"Restaurant Name: {intro['storeName']}",
        f"Legal Entity Name (\"Restaurant Partner\"): {intro['ownerName']}",
        f"Legal Entity Address: {intro['address']}",
        f"Contact Person: {intro['contactPerson']}",
        f"Phone: {intro['phone']}",
        f"Email ID: {intro['email']}",
    ]


def build_contract_text(data: ContractData, terms_body: str = MERCHANT_PARTNERSHIP_TERMS) -> str:
    contract = build_structured_contract(data, terms_body)
    lines = [FORM_TITLE, '']
    lines.extend(intro_lines(contract.intro))
    lines.extend(['', 'Definitions'])
    lines.extend(f"{d['term']}: {d['meaning']}" for d in contract.definitions)
    lines.append('')

    for section in contract.sections:
        lines.append(section['title'] + ':')
        lines.extend('• ' + bullet for bullet in section.get('bullets', []))
        lines.extend(section.get('paragraphs', []))
        lines.append('')

    annexure_a = contract.annexureA
    lines.append('Annexure A - ' + annexure_a['description'])
    lines.append(' | '.join(annexure_a['table']['headers']))
    lines.extend(' | '.join(row) for row in annexure_a['table']['rows'])
    lines.append('')

    annexure_b = contract.annexureB
    lines.append('Annexure B - Bank Details')
    lines.append(' | '.join(annexure_b['headers']))
    lines.extend(' | '.join(row) for row in annexure_b['rows'])
    if not annexure_b['rows']:
        lines.append(ANNEXURE_B_EMPTY)
    lines.extend(['', contract.certification, '', '---', contract.termsBody])
    return '\n'.join(lines)


def contract_filename(store_name: Optional[str], ts: int) -> str:
    safe = re.sub(r'[^a-zA-Z0-9\-_]', '_', store_name or 'store')
    return f"contract-approval-{safe}-{ts}.pdf"
