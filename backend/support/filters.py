import django_filters
from django.db.models import Q
from .models import SupportTicket


class TicketFilter(django_filters.FilterSet):
    """Filter for the merchant tickets inbox"""

    status = django_filters.CharFilter(method='filter_status', label='Status')
    category = django_filters.CharFilter(field_name='category', lookup_expr='iexact')
    store = django_filters.CharFilter(method='filter_store', label='Store')
    search = django_filters.CharFilter(method='filter_search', label='Search')

    class Meta:
        model = SupportTicket
        fields = ['status', 'category', 'store', 'search']

    def filter_status(self, queryset, name, value):
        """Comma separated statuses, e.g. OPEN,REOPENED"""
        statuses = [s.strip().upper() for s in value.split(',') if s.strip()]
        return queryset.filter(status__in=statuses) if statuses else queryset

    def filter_store(self, queryset, name, value):
        """Public store id or numeric id"""
        if value.isdigit():
            return queryset.filter(Q(store_id=int(value)) | Q(store__store_id=value))
        return queryset.filter(store__store_id=value)

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(ticket_id__icontains=value) | Q(subject__icontains=value) | Q(description__icontains=value)
        )
