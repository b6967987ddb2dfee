"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backend.core.models import MerchantParent
from backend.core.utils import generate_parent_merchant_id
from backend.stores.models import MerchantStore
from backend.stores.utils import generate_store_public_id
from backend.onboarding.models import RegistrationProgress
from backend.support.models import SupportTicket, TicketMessage, StoreReview
from backend.payments.models import OnboardingPayment
import random
import string

User = get_user_model()

SIGNATURE_DATA_URL = (
    'data:image/png;base64,'
    'iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=='
)


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def random_phone():
        return random.choice('6789') + ''.join(random.choices(string.digits, k=9))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )
        return user

    @staticmethod
    def create_merchant_parent(user=None, name=None, phone=None):
        """Create a parent merchant, with a fresh user unless one is given"""
        if user is None:
            user = TestDataFactory.create_user()
        if not name:
            name = f'Merchant_{TestDataFactory.random_string(6)}'
        return MerchantParent.objects.create(
            user=user,
            parent_merchant_id=generate_parent_merchant_id(),
            parent_name=name,
            owner_name=f'Owner {name}',
            owner_email=user.email or None,
            registered_phone=phone or TestDataFactory.random_phone(),
        )

    @staticmethod
    def create_store(parent, name=None, store_type='RESTAURANT', approval_status='DRAFT', **extra):
        """Create a test store under a parent"""
        if not name:
            name = f'Store_{TestDataFactory.random_string(6)}'
        defaults = {
            'full_address': f'12 Test Road, {name}',
            'city': 'Bengaluru',
            'state': 'Karnataka',
            'postal_code': '560001',
        }
        defaults.update(extra)
        return MerchantStore.objects.create(
            store_id=generate_store_public_id(),
            parent=parent,
            store_name=name,
            store_type=store_type,
            approval_status=approval_status,
            **defaults
        )

    @staticmethod
    def create_progress(parent, store=None, current_step=1, form_data=None, **flags):
        """Create saved wizard progress"""
        return RegistrationProgress.objects.create(
            parent=parent,
            store=store,
            current_step=current_step,
            next_step=current_step,
            form_data=form_data or {},
            **flags
        )

    @staticmethod
    def create_ticket(parent, user=None, store=None, title='OTHER', subject=None, status='OPEN', category='OTHER'):
        """Create a support ticket with its opening message"""
        subject = subject or f'Ticket {TestDataFactory.random_string(6)}'
        ticket = SupportTicket.objects.create(
            parent=parent,
            store=store,
            raised_by=user,
            title=title,
            category=category,
            subject=subject,
            description=f'Description for {subject}',
            status=status,
        )
        TicketMessage.objects.create(ticket=ticket, sender=user, message=ticket.description)
        return ticket

    @staticmethod
    def create_review(store, rating=5, order_count=0, text=None):
        """Create a customer review"""
        return StoreReview.objects.create(
            store=store,
            customer_name=f'Customer {TestDataFactory.random_string(4)}',
            customer_order_count=order_count,
            overall_rating=rating,
            review_text=text or 'Good food',
        )

    @staticmethod
    def create_payment(parent, order_id=None, amount_paise=100, status='created', store=None):
        """Create an onboarding payment row"""
        return OnboardingPayment.objects.create(
            parent=parent,
            store=store,
            razorpay_order_id=order_id or f'order_{TestDataFactory.random_string(14)}',
            amount_paise=amount_paise,
            status=status,
        )

    @staticmethod
    def wizard_form_data(store_name='Spice Route', store_type='RESTAURANT'):
        """A form_data payload that passes every wizard step"""
        day = {'closed': False, 'slot1_open': '09:00', 'slot1_close': '22:00', 'slot2_open': '', 'slot2_close': ''}
        return {
            'step1': {
                'store_name': store_name,
                'owner_full_name': 'Asha Rao',
                'store_email': 'asha@example.com',
                'store_phones': ['9876543210'],
                'store_type': store_type,
                'store_description': 'Home style meals',
            },
            'step2': {
                'full_address': '12 MG Road',
                'city': 'Bengaluru',
                'state': 'Karnataka',
                'postal_code': '560001',
                'latitude': 12.9716,
                'longitude': 77.5946,
            },
            'step3': {
                'menuUploadMode': 'IMAGE',
                'menuImageUrls': ['https://cdn.example.com/menu/1.jpg'],
            },
            'step4': {
                'pan_number': 'ABCDE1234F',
                'pan_holder_name': 'Asha Rao',
                'pan_image_url': 'https://cdn.example.com/docs/pan.jpg',
                'aadhar_number': '123456789012',
                'aadhar_holder_name': 'Asha Rao',
                'aadhar_front_url': 'https://cdn.example.com/docs/aadhar_front.jpg',
                'aadhar_back_url': 'https://cdn.example.com/docs/aadhar_back.jpg',
                'fssai_number': '12345678901234',
                'fssai_image_url': 'https://cdn.example.com/docs/fssai.jpg',
                'fssai_expiry_date': '2030-12-31',
                'gst_number': '',
                'bank': {
                    'payout_method': 'bank',
                    'account_holder_name': 'Asha Rao',
                    'account_number': '123456789012',
                    'ifsc_code': 'HDFC0001234',
                    'bank_name': 'HDFC Bank',
                    'account_type': 'savings',
                    'bank_proof_type': 'cancelled_cheque',
                    'bank_proof_file_url': 'https://cdn.example.com/docs/cheque.jpg',
                },
            },
            'step5': {
                'cuisine_types': ['North Indian'],
                'avg_preparation_time_minutes': 25,
                'min_order_amount': 100,
                'accepts_online_payment': True,
                'accepts_cash': True,
                'store_hours': {d: dict(day) for d in
                                ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']},
            },
            'plan': {'planId': 'FREE'},
            'agreement': {
                'terms_accepted': True,
                'contract_read_confirmed': True,
                'signer_name': 'Asha Rao',
                'signer_email': 'asha@example.com',
                'signer_phone': '9876543210',
            },
            'signature': {'signer_name': 'Asha Rao', 'signature_data_url': SIGNATURE_DATA_URL},
        }


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
