"""Onboarding plans offered at the plan step"""
import os
from django.conf import settings
from django.core.cache import cache

from backend.core.cache_utils import PLANS_CACHE_TTL

PLANS_CACHE_KEY = 'onboarding_plans'
DEFAULT_PLAN_ID = 'FREE'
DEFAULT_PLAN_NAME = 'Starter Plan'
PROMO_LABEL = '₹1 today'


def promo_amount_paise() -> int:
    return int(getattr(settings, 'ONBOARDING_PROMO_AMOUNT_PAISE', os.getenv('ONBOARDING_PROMO_AMOUNT_PAISE', 100)))


def standard_amount_paise() -> int:
    return int(getattr(settings, 'ONBOARDING_STANDARD_AMOUNT_PAISE', os.getenv('ONBOARDING_STANDARD_AMOUNT_PAISE', 9900)))


def build_plans():
    promo = promo_amount_paise() // 100
    standard = standard_amount_paise() // 100
    return [
        {
            'id': DEFAULT_PLAN_ID,
            'name': DEFAULT_PLAN_NAME,
            'onboardingFee': standard,
            'promoAmountPaise': promo_amount_paise(),
            'standardAmountPaise': standard_amount_paise(),
            'baseServiceFee': '0%',
            'highlighted': True,
            'features': [
                f'One-time onboarding fee ₹{promo}/- today (standard ₹{standard})',
                'Base service fee 0% for initial period',
                'Real-time on-call support',
                'Weekly or daily payouts',
                'Full access to partner dashboard',
            ],
        },
    ]


def get_plans():
    plans = cache.get(PLANS_CACHE_KEY)
    if plans is None:
        plans = build_plans()
        cache.set(PLANS_CACHE_KEY, plans, PLANS_CACHE_TTL)
    return plans


def get_plan(plan_id):
    return next((plan for plan in get_plans() if plan['id'] == plan_id), None)
