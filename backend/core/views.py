import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.db import transaction, IntegrityError
from django.shortcuts import get_object_or_404
from .models import MerchantParent, AuditLog
from .serializers import (
    UserSerializer, MerchantParentSerializer, MerchantRegisterSerializer, AuditLogSerializer
)
from .utils import create_audit_log, generate_parent_merchant_id, get_merchant_parent

User = get_user_model()

logger = logging.getLogger('backend.core')


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        parent = get_merchant_parent(user)
        token['parent_merchant_id'] = parent.parent_merchant_id if parent else None
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that rejects tokens of deleted users cleanly"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Register a parent merchant together with its login user"""
    serializer = MerchantRegisterSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    phone = data['registered_phone']
    email = (data.get('owner_email') or '').strip().lower() or None

    existing = MerchantParent.objects.filter(registered_phone=phone).first()
    if existing:
        logger.warning(f"Registration rejected: phone {phone} already registered to {existing.parent_merchant_id}")
        return Response({
            'error': 'Merchant already registered with this mobile number.',
            'info': 'This mobile number is already registered.',
            'parent_merchant_id': existing.parent_merchant_id,
        }, status=status.HTTP_409_CONFLICT)
    if email and MerchantParent.objects.filter(owner_email=email).exists():
        return Response({
            'error': 'Email already registered.',
            'info': 'This email address is already registered.',
        }, status=status.HTTP_409_CONFLICT)

    username = (data.get('username') or '').strip() or phone
    if User.objects.filter(username=username).exists():
        return Response({'error': 'Username already taken.'}, status=status.HTTP_409_CONFLICT)

    try:
        with transaction.atomic():
            user = User.objects.create(username=username, email=email or '', phone=phone, is_active=True)
            user.set_password(data['password'])
            user.save()
            parent = MerchantParent.objects.create(
                user=user,
                parent_merchant_id=generate_parent_merchant_id(),
                parent_name=data['parent_name'],
                merchant_type=data.get('merchant_type') or 'LOCAL',
                owner_name=data['owner_name'],
                owner_email=email,
                registered_phone=phone,
                brand_name=data.get('brand_name', ''),
                business_category=data.get('business_category', ''),
                address_line1=data.get('address_line1', ''),
                city=data.get('city', ''),
                state=data.get('state', ''),
                pincode=data.get('pincode', ''),
            )
    except IntegrityError as e:
        logger.error(f"IntegrityError registering merchant {phone}: {str(e)}", exc_info=True)
        return Response({'error': 'Duplicate entry for phone or email.'}, status=status.HTTP_409_CONFLICT)

    logger.info(f"Registered parent merchant {parent.parent_merchant_id} for user {user.username}")
    create_audit_log(
        request=request,
        user=user,
        action='create',
        model_name='MerchantParent',
        object_id=parent.id,
        object_name=parent.parent_name,
        object_reference=parent.parent_merchant_id,
    )

    token = CustomTokenObtainPairSerializer.get_token(user)
    return Response({
        'success': True,
        'user': UserSerializer(user).data,
        'merchant_parent': MerchantParentSerializer(parent).data,
        'parent_merchant_id': parent.parent_merchant_id,
        'access': str(token.access_token),
        'refresh': str(token),
        'info': 'Parent merchant registered successfully.',
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user with its parent merchant"""
    user_data = UserSerializer(request.user).data
    parent = get_merchant_parent(request.user)
    user_data['merchant_parent'] = MerchantParentSerializer(parent).data if parent else None
    return Response(user_data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_list(request):
    """List the caller's audit logs, newest first"""
    queryset = AuditLog.objects.filter(user=request.user)

    action = request.query_params.get('action')
    if action:
        queryset = queryset.filter(action=action)
    model_name = request.query_params.get('model_name')
    if model_name:
        queryset = queryset.filter(model_name=model_name)
    reference = request.query_params.get('object_reference')
    if reference:
        queryset = queryset.filter(object_reference=reference)

    try:
        limit = min(int(request.query_params.get('limit', 100)), 500)
    except (TypeError, ValueError):
        limit = 100

    serializer = AuditLogSerializer(queryset[:limit], many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_detail(request, pk):
    """Retrieve one of the caller's audit logs"""
    log = get_object_or_404(AuditLog, pk=pk, user=request.user)
    return Response(AuditLogSerializer(log).data)
