"""
Tests for merchant support tickets and customer reviews
"""
import re
from django.test import TestCase
from rest_framework import status
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.support.constants import allowed_titles, category_for_title
from backend.support.models import SupportTicket, TicketMessage, generate_ticket_id


class TicketConstantsTests(TestCase):
    """Test title rules per page context"""

    def test_ticket_id_format(self):
        self.assertRegex(generate_ticket_id(), re.compile(r'^TKT-\d{8}-[A-Z0-9]{6}$'))

    def test_titles_by_context(self):
        self.assertIn('PAYOUT_DELAYED', allowed_titles('dashboard'))
        self.assertNotIn('PAYOUT_DELAYED', allowed_titles('store-onboarding'))
        self.assertEqual(allowed_titles('unknown-page'), allowed_titles('auth'))

    def test_category_for_title(self):
        self.assertEqual(category_for_title('PAYOUT_DELAYED'), 'EARNINGS')
        self.assertEqual(category_for_title('SUGGESTION'), 'FEEDBACK')
        self.assertEqual(category_for_title('SOMETHING_NEW'), 'OTHER')


class TicketAPITests(TestCase):
    """Test raising and listing tickets"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.parent = TestDataFactory.create_merchant_parent()
        self.user = self.parent.user
        self.client.authenticate_user(self.user)
        self.store = TestDataFactory.create_store(self.parent)

    def _payload(self, **overrides):
        payload = {
            'page_context': 'dashboard',
            'ticket_title': 'PAYOUT_DELAYED',
            'subject': 'Payout pending',
            'description': 'Last week payout has not arrived.',
            'store_id': self.store.store_id,
            'attachments': ['docs/a.jpg', '', 42],
        }
        payload.update(overrides)
        return payload

    def test_create_ticket(self):
        response = self.client.post('/api/v1/support/tickets/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        ticket = SupportTicket.objects.get(ticket_id=response.data['ticket_id'])
        self.assertEqual(ticket.category, 'EARNINGS')
        self.assertEqual(ticket.store, self.store)
        self.assertEqual(ticket.attachments, ['docs/a.jpg'])
        self.assertEqual(ticket.raised_by_name, self.parent.owner_name)
        self.assertTrue(AuditLog.objects.filter(action='ticket_create').exists())

    def test_title_not_allowed_for_context(self):
        response = self.client.post('/api/v1/support/tickets/', self._payload(page_context='login'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_subject_required(self):
        response = self.client.post('/api/v1/support/tickets/', self._payload(subject='  '), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_foreign_store(self):
        foreign = TestDataFactory.create_store(TestDataFactory.create_merchant_parent())
        response = self.client.post('/api/v1/support/tickets/', self._payload(store_id=foreign.store_id), format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_list_and_filter(self):
        TestDataFactory.create_ticket(self.parent, self.user, store=self.store, subject='Menu sync broken')
        TestDataFactory.create_ticket(self.parent, self.user, status='RESOLVED', category='EARNINGS')
        TestDataFactory.create_ticket(TestDataFactory.create_merchant_parent(), subject='Foreign ticket')

        response = self.client.get('/api/v1/support/tickets/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['tickets']), 2)
        self.assertEqual(response.data['tickets'][0]['message_count'], 1)

        response = self.client.get('/api/v1/support/tickets/', {'status': 'open,reopened'})
        self.assertEqual([t['subject'] for t in response.data['tickets']], ['Menu sync broken'])

        response = self.client.get('/api/v1/support/tickets/', {'category': 'earnings'})
        self.assertEqual(len(response.data['tickets']), 1)

        response = self.client.get('/api/v1/support/tickets/', {'store': self.store.store_id})
        self.assertEqual(len(response.data['tickets']), 1)

        response = self.client.get('/api/v1/support/tickets/', {'search': 'menu sync'})
        self.assertEqual(len(response.data['tickets']), 1)


class TicketConversationTests(TestCase):
    """Test detail, reply, rating, reopening and polling"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.parent = TestDataFactory.create_merchant_parent()
        self.user = self.parent.user
        self.client.authenticate_user(self.user)
        self.ticket = TestDataFactory.create_ticket(self.parent, self.user)

    def _url(self, suffix=''):
        return f'/api/v1/support/tickets/{self.ticket.ticket_id}/{suffix}'

    def test_detail_includes_messages(self):
        response = self.client.get(self._url())
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['ticket']['messages']), 1)

    def test_detail_of_foreign_ticket_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_merchant_parent().user)
        response = self.client.get(self._url())
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_detail_missing(self):
        response = self.client.get('/api/v1/support/tickets/TKT-00000000-XXXXXX/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_reply_moves_waiting_ticket_in_progress(self):
        self.ticket.status = 'WAITING_FOR_MERCHANT'
        self.ticket.save()
        response = self.client.post(self._url('reply/'), {'message': 'Here is the screenshot'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.ticket.refresh_from_db()
        self.assertEqual(self.ticket.status, 'IN_PROGRESS')
        self.assertEqual(self.ticket.messages.count(), 2)

    def test_reply_requires_content(self):
        response = self.client.post(self._url('reply/'), {'message': ' '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reply_to_closed_ticket(self):
        self.ticket.status = 'CLOSED'
        self.ticket.save()
        response = self.client.post(self._url('reply/'), {'message': 'hello'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_rate_only_resolved(self):
        response = self.client.post(self._url('rate/'), {'rating': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        self.ticket.status = 'RESOLVED'
        self.ticket.save()
        response = self.client.post(self._url('rate/'), {'rating': 6}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(self._url('rate/'), {'rating': 4, 'feedback': 'Quick fix'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.ticket.refresh_from_db()
        self.assertEqual(self.ticket.rating, 4)
        self.assertEqual(self.ticket.rating_feedback, 'Quick fix')

    def test_reopen_resolved_ticket(self):
        self.ticket.status = 'RESOLVED'
        self.ticket.resolution = 'Payout released'
        self.ticket.save()
        response = self.client.post(self._url('reopen/'), {'reason': 'Still missing'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.ticket.refresh_from_db()
        self.assertEqual(self.ticket.status, 'REOPENED')
        self.assertIsNone(self.ticket.resolution)
        self.assertIsNotNone(self.ticket.reopened_at)
        system_message = self.ticket.messages.last()
        self.assertEqual(system_message.sender_type, 'SYSTEM')
        self.assertIn('Still missing', system_message.message)

    def test_reopen_rejected_for_open_and_closed(self):
        response = self.client.post(self._url('reopen/'), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.ticket.status = 'CLOSED'
        self.ticket.save()
        response = self.client.post(self._url('reopen/'), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_poll_messages_since(self):
        first = self.ticket.messages.first()
        reply = TicketMessage.objects.create(ticket=self.ticket, sender_type='AGENT', message='Looking into it')
        response = self.client.get(self._url('messages/'), {'since': first.id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([m['id'] for m in response.data['messages']], [reply.id])
        self.assertEqual(response.data['last_id'], reply.id)

        response = self.client.get(self._url('messages/'), {'since': reply.id})
        self.assertEqual(response.data['messages'], [])
        self.assertEqual(response.data['last_id'], reply.id)

    def test_poll_invalid_since(self):
        response = self.client.get(self._url('messages/'), {'since': 'yesterday'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ReviewAPITests(TestCase):
    """Test the reviews inbox and merchant responses"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.parent = TestDataFactory.create_merchant_parent()
        self.client.authenticate_user(self.parent.user)
        self.store = TestDataFactory.create_store(self.parent)
        self.praise = TestDataFactory.create_review(self.store, rating=5, order_count=6)
        self.complaint = TestDataFactory.create_review(self.store, rating=2, text='Cold food')
        self.complaint.is_flagged = True
        self.complaint.save()

    def test_list_with_stats(self):
        response = self.client.get('/api/v1/support/reviews/', {'storeId': self.store.store_id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['stats'], {
            'total': 2, 'reviews': 1, 'complaints': 1, 'repeatedUsers': 1, 'newUsers': 1, 'fraudUsers': 1,
        })
        types = {r['id']: (r['type'], r['userType']) for r in response.data['reviews']}
        self.assertEqual(types[self.praise.id], ('Review', 'repeated'))
        self.assertEqual(types[self.complaint.id], ('Complaint', 'new'))

    def test_list_requires_store(self):
        response = self.client.get('/api/v1/support/reviews/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_respond_with_images(self):
        response = self.client.post('/api/v1/support/reviews/respond/', {
            'reviewId': self.complaint.id,
            'storeId': self.store.store_id,
            'message': 'Sorry about that',
            'images': ['docs/merchants/x/reply.jpg'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.complaint.refresh_from_db()
        self.assertEqual(self.complaint.merchant_response,
                         'Sorry about that\n\n[IMAGES:["docs/merchants/x/reply.jpg"]]')
        self.assertIsNotNone(self.complaint.merchant_responded_at)

    def test_respond_requires_content(self):
        response = self.client.post('/api/v1/support/reviews/respond/', {
            'reviewId': self.complaint.id, 'storeId': self.store.store_id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_respond_to_review_of_other_store(self):
        other_store = TestDataFactory.create_store(self.parent)
        response = self.client.post('/api/v1/support/reviews/respond/', {
            'reviewId': self.complaint.id, 'storeId': other_store.store_id, 'message': 'Hi',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
