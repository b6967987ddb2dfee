# Ticket titles a merchant may raise from each page context
COMMON_TITLES = ['OTHER', 'FEEDBACK', 'COMPLAINT', 'SUGGESTION']

TITLES_BY_CONTEXT = {
    'auth': ['MERCHANT_APP_TECHNICAL_ISSUE', 'VERIFICATION_ISSUE', 'ACCOUNT_ISSUE'] + COMMON_TITLES,
    'register': ['MERCHANT_APP_TECHNICAL_ISSUE', 'VERIFICATION_ISSUE', 'ACCOUNT_ISSUE'] + COMMON_TITLES,
    'login': ['MERCHANT_APP_TECHNICAL_ISSUE', 'VERIFICATION_ISSUE', 'ACCOUNT_ISSUE'] + COMMON_TITLES,
    'post-login': ['MERCHANT_APP_TECHNICAL_ISSUE', 'VERIFICATION_ISSUE'] + COMMON_TITLES,
    'store-onboarding': ['MERCHANT_APP_TECHNICAL_ISSUE', 'VERIFICATION_ISSUE', 'MENU_UPDATE_ISSUE',
                         'STORE_STATUS_ISSUE'] + COMMON_TITLES,
    'dashboard': ['MERCHANT_APP_TECHNICAL_ISSUE', 'PAYOUT_DELAYED', 'PAYOUT_NOT_RECEIVED', 'SETTLEMENT_DISPUTE',
                  'COMMISSION_DISPUTE', 'MENU_UPDATE_ISSUE', 'STORE_STATUS_ISSUE',
                  'MERCHANT_ORDER_NOT_RECEIVING'] + COMMON_TITLES,
}
DEFAULT_CONTEXT = 'auth'

TITLE_TO_CATEGORY = {
    'MERCHANT_APP_TECHNICAL_ISSUE': 'TECHNICAL',
    'VERIFICATION_ISSUE': 'VERIFICATION',
    'ACCOUNT_ISSUE': 'ACCOUNT',
    'PAYOUT_DELAYED': 'EARNINGS',
    'PAYOUT_NOT_RECEIVED': 'EARNINGS',
    'SETTLEMENT_DISPUTE': 'PAYMENT',
    'COMMISSION_DISPUTE': 'PAYMENT',
    'MENU_UPDATE_ISSUE': 'TECHNICAL',
    'STORE_STATUS_ISSUE': 'TECHNICAL',
    'MERCHANT_ORDER_NOT_RECEIVING': 'TECHNICAL',
    'OTHER': 'OTHER',
    'FEEDBACK': 'FEEDBACK',
    'COMPLAINT': 'COMPLAINT',
    'SUGGESTION': 'FEEDBACK',
}

MAX_SUBJECT_LENGTH = 500
MAX_DESCRIPTION_LENGTH = 5000
MAX_ATTACHMENTS = 20

REVIEW_LIST_LIMIT = 100
REVIEW_THRESHOLD = 4
REPEAT_CUSTOMER_ORDERS = 5


def allowed_titles(context):
    return TITLES_BY_CONTEXT.get(context or DEFAULT_CONTEXT) or TITLES_BY_CONTEXT[DEFAULT_CONTEXT]


def category_for_title(title):
    return TITLE_TO_CATEGORY.get(title, 'OTHER')
