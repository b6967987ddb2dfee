from django.urls import path
from .views import (
    store_list, store_detail, store_next_id, store_hours, store_settings
)

urlpatterns = [
    path('stores/', store_list, name='store-list'),
    path('stores/next-id/', store_next_id, name='store-next-id'),
    path('stores/<str:store_ref>/', store_detail, name='store-detail'),
    path('stores/<str:store_ref>/hours/', store_hours, name='store-hours'),
    path('store-settings/', store_settings, name='store-settings'),
]
