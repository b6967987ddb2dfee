import json
import logging
from django.db import transaction
from django.db.models import Count
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from backend.core.utils import create_audit_log, get_merchant_parent
from backend.stores.utils import get_store_for_parent
from .constants import (
    MAX_ATTACHMENTS, MAX_DESCRIPTION_LENGTH, MAX_SUBJECT_LENGTH, REPEAT_CUSTOMER_ORDERS, REVIEW_LIST_LIMIT,
    REVIEW_THRESHOLD, allowed_titles, category_for_title,
)
from .filters import TicketFilter
from .models import StoreReview, SupportTicket, TicketMessage
from .serializers import (
    StoreReviewSerializer, SupportTicketDetailSerializer, SupportTicketSerializer, TicketMessageSerializer,
)

logger = logging.getLogger('backend.support')

RATABLE_STATUSES = {'RESOLVED', 'CLOSED'}
REOPENABLE_STATUSES = {'RESOLVED', 'REOPENED'}


def _clean_attachments(value):
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()][:MAX_ATTACHMENTS]


def _get_owned_ticket(request, ticket_id):
    """(ticket, error_response) for a ticket the caller's merchant owns"""
    parent = get_merchant_parent(request.user)
    if parent is None:
        return None, Response({'error': 'Merchant account not found.'}, status=status.HTTP_403_FORBIDDEN)
    ticket = SupportTicket.objects.filter(ticket_id=ticket_id).select_related('store').first()
    if ticket is None:
        return None, Response({'error': 'Ticket not found'}, status=status.HTTP_404_NOT_FOUND)
    if ticket.parent_id != parent.id:
        logger.warning(f"User {request.user.username} tried to access ticket {ticket_id} of another merchant")
        return None, Response({'error': 'You do not have access to this ticket.'}, status=status.HTTP_403_FORBIDDEN)
    return ticket, None


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def ticket_list(request):
    """
    GET: merchant tickets, filterable by status, category, store and search
    POST: raise a ticket from a page context
    """
    try:
        parent = get_merchant_parent(request.user)
        if parent is None:
            return Response({'error': 'Merchant account not found.'}, status=status.HTTP_403_FORBIDDEN)

        if request.method == 'GET':
            queryset = SupportTicket.objects.filter(parent=parent).select_related('store').annotate(
                message_count=Count('messages'))
            filterset = TicketFilter(request.query_params, queryset=queryset)
            if not filterset.is_valid():
                return Response({'error': filterset.errors}, status=status.HTTP_400_BAD_REQUEST)
            tickets = filterset.qs
            return Response({'success': True, 'tickets': SupportTicketSerializer(tickets, many=True).data})

        data = request.data
        context = str(data.get('page_context') or 'auth')
        title = data.get('ticket_title')
        if title not in allowed_titles(context):
            return Response({'success': False, 'error': 'This ticket type is not allowed on this page.'},
                            status=status.HTTP_400_BAD_REQUEST)

        subject = str(data.get('subject') or '').strip()
        description = str(data.get('description') or '').strip()
        if not subject or not description:
            return Response({'success': False, 'error': 'Subject and description are required.'},
                            status=status.HTTP_400_BAD_REQUEST)

        store = None
        if data.get('store_id'):
            store = get_store_for_parent(parent, data['store_id'])
            if store is None:
                return Response({'error': 'Store not found or access denied.'}, status=status.HTTP_404_NOT_FOUND)

        ticket = SupportTicket.objects.create(
            parent=parent,
            store=store,
            raised_by=request.user,
            raised_by_name=str(data.get('raised_by_name') or '').strip() or parent.owner_name,
            raised_by_email=str(data.get('raised_by_email') or '').strip() or parent.owner_email,
            raised_by_mobile=str(data.get('raised_by_mobile') or '').strip() or parent.registered_phone,
            page_context=context,
            title=title,
            category=category_for_title(title),
            subject=subject[:MAX_SUBJECT_LENGTH],
            description=description[:MAX_DESCRIPTION_LENGTH],
            attachments=_clean_attachments(data.get('attachments')),
        )
        create_audit_log(request=request, action='ticket_create', model_name='SupportTicket',
                         object_id=str(ticket.id), object_name=ticket.subject[:255], object_reference=ticket.ticket_id,
                         changes={'title': title, 'category': ticket.category})
        logger.info(f"Ticket {ticket.ticket_id} raised by {parent.parent_merchant_id}")
        return Response({
            'success': True,
            'ticket_id': ticket.ticket_id,
            'message': 'Ticket raised successfully. We will get back to you soon.',
        }, status=status.HTTP_201_CREATED)
    except Exception as e:
        logger.error(f"Unexpected error in ticket_list: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def ticket_detail(request, ticket_id):
    """Ticket with its conversation"""
    ticket, error = _get_owned_ticket(request, ticket_id)
    if error:
        return error
    return Response({'success': True, 'ticket': SupportTicketDetailSerializer(ticket).data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def ticket_reply(request, ticket_id):
    """Merchant reply on a ticket"""
    ticket, error = _get_owned_ticket(request, ticket_id)
    if error:
        return error
    if ticket.status == 'CLOSED':
        return Response({'error': 'Closed tickets cannot be replied to.'}, status=status.HTTP_400_BAD_REQUEST)

    message = str(request.data.get('message') or '').strip()
    attachments = _clean_attachments(request.data.get('attachments'))
    if not message and not attachments:
        return Response({'error': 'Message is required.'}, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        reply = TicketMessage.objects.create(
            ticket=ticket,
            sender_type='MERCHANT',
            sender=request.user,
            message=message[:MAX_DESCRIPTION_LENGTH],
            attachments=attachments,
        )
        if ticket.status == 'WAITING_FOR_MERCHANT':
            ticket.status = 'IN_PROGRESS'
        ticket.save(update_fields=['status', 'updated_at'])

    create_audit_log(request=request, action='ticket_reply', model_name='SupportTicket', object_id=str(ticket.id),
                     object_reference=ticket.ticket_id, changes={'message_id': reply.id})
    return Response({'success': True, 'message': TicketMessageSerializer(reply).data}, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def ticket_rate(request, ticket_id):
    """Rate a resolved or closed ticket 1-5"""
    ticket, error = _get_owned_ticket(request, ticket_id)
    if error:
        return error
    if ticket.status not in RATABLE_STATUSES:
        return Response({'error': 'Only resolved or closed tickets can be rated.'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        rating = int(request.data.get('rating'))
    except (TypeError, ValueError):
        rating = 0
    if rating < 1 or rating > 5:
        return Response({'error': 'Rating must be between 1 and 5.'}, status=status.HTTP_400_BAD_REQUEST)

    ticket.rating = rating
    ticket.rating_feedback = str(request.data.get('feedback') or '').strip() or None
    ticket.save(update_fields=['rating', 'rating_feedback', 'updated_at'])
    create_audit_log(request=request, action='ticket_rate', model_name='SupportTicket', object_id=str(ticket.id),
                     object_reference=ticket.ticket_id, changes={'rating': rating})
    return Response({'success': True, 'ticket': SupportTicketSerializer(ticket).data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def ticket_reopen(request, ticket_id):
    """Reopen a resolved ticket"""
    ticket, error = _get_owned_ticket(request, ticket_id)
    if error:
        return error
    if ticket.status == 'CLOSED':
        return Response({'error': 'Closed tickets cannot be reopened.'}, status=status.HTTP_400_BAD_REQUEST)
    if ticket.status not in REOPENABLE_STATUSES:
        return Response({'error': 'Only resolved tickets can be reopened.'}, status=status.HTTP_400_BAD_REQUEST)

    reason = str(request.data.get('reason') or '').strip()
    with transaction.atomic():
        ticket.status = 'REOPENED'
        ticket.resolution = None
        ticket.resolved_at = None
        ticket.reopened_at = timezone.now()
        ticket.save(update_fields=['status', 'resolution', 'resolved_at', 'reopened_at', 'updated_at'])
        TicketMessage.objects.create(
            ticket=ticket,
            sender_type='SYSTEM',
            message=f"Ticket reopened by merchant{': ' + reason if reason else ''}",
        )
    create_audit_log(request=request, action='ticket_reopen', model_name='SupportTicket', object_id=str(ticket.id),
                     object_reference=ticket.ticket_id, changes={'reason': reason})
    return Response({'success': True, 'ticket': SupportTicketSerializer(ticket).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def ticket_messages(request, ticket_id):
    """Messages after ?since=<message id>, for polling clients"""
    ticket, error = _get_owned_ticket(request, ticket_id)
    if error:
        return error
    messages = ticket.messages.all()
    since = request.query_params.get('since')
    if since:
        try:
            messages = messages.filter(id__gt=int(since))
        except ValueError:
            return Response({'error': 'since must be a message id'}, status=status.HTTP_400_BAD_REQUEST)
    data = TicketMessageSerializer(messages, many=True).data
    return Response({
        'success': True,
        'status': ticket.status,
        'messages': data,
        'last_id': data[-1]['id'] if data else (int(since) if since else None),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def review_list(request):
    """Reviews and complaints for ?storeId=, with summary counts"""
    parent = get_merchant_parent(request.user)
    if parent is None:
        return Response({'error': 'Merchant account not found.'}, status=status.HTTP_403_FORBIDDEN)
    store_ref = request.query_params.get('storeId')
    if not store_ref:
        return Response({'error': 'Store ID is required.'}, status=status.HTTP_400_BAD_REQUEST)
    store = get_store_for_parent(parent, store_ref)
    if store is None:
        return Response({'error': 'Store not found or access denied.'}, status=status.HTTP_404_NOT_FOUND)

    reviews = list(StoreReview.objects.filter(store=store).order_by('-created_at')[:REVIEW_LIST_LIMIT])
    positive = sum(1 for r in reviews if r.overall_rating >= REVIEW_THRESHOLD)
    repeated = sum(1 for r in reviews if r.customer_order_count >= REPEAT_CUSTOMER_ORDERS)
    stats = {
        'total': len(reviews),
        'reviews': positive,
        'complaints': len(reviews) - positive,
        'repeatedUsers': repeated,
        'newUsers': len(reviews) - repeated,
        'fraudUsers': sum(1 for r in reviews if r.is_flagged),
    }
    return Response({'success': True, 'reviews': StoreReviewSerializer(reviews, many=True).data, 'stats': stats})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def review_respond(request):
    """Merchant response to a review, images appended as an [IMAGES:...] marker"""
    parent = get_merchant_parent(request.user)
    if parent is None:
        return Response({'error': 'Merchant account not found.'}, status=status.HTTP_403_FORBIDDEN)

    review_id = request.data.get('reviewId')
    store_ref = request.data.get('storeId')
    message = str(request.data.get('message') or '').strip()
    images = _clean_attachments(request.data.get('images'))
    if not review_id or not store_ref:
        return Response({'error': 'reviewId and storeId are required.'}, status=status.HTTP_400_BAD_REQUEST)
    if not message and not images:
        return Response({'error': 'Please enter a message or attach an image.'}, status=status.HTTP_400_BAD_REQUEST)

    store = get_store_for_parent(parent, store_ref)
    if store is None:
        return Response({'error': 'Store not found or access denied.'}, status=status.HTTP_404_NOT_FOUND)
    review = StoreReview.objects.filter(pk=review_id, store=store).first()
    if review is None:
        return Response({'error': 'Review not found'}, status=status.HTTP_404_NOT_FOUND)

    response_text = message
    if images:
        response_text = f"{message}\n\n[IMAGES:{json.dumps(images)}]"
    review.merchant_response = response_text
    review.merchant_responded_at = timezone.now()
    review.save(update_fields=['merchant_response', 'merchant_responded_at'])

    create_audit_log(request=request, action='review_respond', model_name='StoreReview', object_id=str(review.id),
                     object_reference=store.store_id, changes={'images': len(images)})
    return Response({'success': True, 'review': StoreReviewSerializer(review).data})
