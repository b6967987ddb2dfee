from django.urls import path
from .views import (
    ticket_list, ticket_detail, ticket_reply, ticket_rate, ticket_reopen, ticket_messages,
    review_list, review_respond
)

urlpatterns = [
    path('support/tickets/', ticket_list, name='ticket-list'),
    path('support/tickets/<str:ticket_id>/', ticket_detail, name='ticket-detail'),
    path('support/tickets/<str:ticket_id>/reply/', ticket_reply, name='ticket-reply'),
    path('support/tickets/<str:ticket_id>/rate/', ticket_rate, name='ticket-rate'),
    path('support/tickets/<str:ticket_id>/reopen/', ticket_reopen, name='ticket-reopen'),
    path('support/tickets/<str:ticket_id>/messages/', ticket_messages, name='ticket-messages'),
    path('support/reviews/', review_list, name='review-list'),
    path('support/reviews/respond/', review_respond, name='review-respond'),
]
