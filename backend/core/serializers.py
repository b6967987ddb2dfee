from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, MerchantParent, AuditLog


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'phone', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class MerchantParentSerializer(serializers.ModelSerializer):
    class Meta:
        model = MerchantParent
        fields = ['id', 'parent_merchant_id', 'parent_name', 'merchant_type', 'owner_name', 'owner_email',
                  'registered_phone', 'alternate_phone', 'brand_name', 'business_category',
                  'registration_status', 'is_active', 'address_line1', 'city', 'state', 'pincode',
                  'created_at', 'updated_at']
        read_only_fields = ['parent_merchant_id', 'registration_status', 'is_active', 'created_at', 'updated_at']


class MerchantRegisterSerializer(serializers.Serializer):
    """Creates the login user and its parent merchant in one step"""
    username = serializers.CharField(required=False, allow_blank=True)
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)
    parent_name = serializers.CharField(max_length=200)
    owner_name = serializers.CharField(max_length=200)
    owner_email = serializers.EmailField(required=False, allow_blank=True)
    registered_phone = serializers.CharField(max_length=20)
    merchant_type = serializers.ChoiceField(choices=MerchantParent.MERCHANT_TYPE_CHOICES, required=False)
    brand_name = serializers.CharField(required=False, allow_blank=True)
    business_category = serializers.CharField(required=False, allow_blank=True)
    address_line1 = serializers.CharField(required=False, allow_blank=True)
    city = serializers.CharField(required=False, allow_blank=True)
    state = serializers.CharField(required=False, allow_blank=True)
    pincode = serializers.CharField(required=False, allow_blank=True)

    def validate_registered_phone(self, value):
        digits = ''.join(ch for ch in value if ch.isdigit())
        if digits.startswith('91') and len(digits) == 12:
            digits = digits[2:]
        if len(digits) != 10 or digits[0] not in '6789':
            raise serializers.ValidationError("Invalid phone number. Must be a 10 digit mobile number")
        return digits

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'object_reference', 'changes', 'ip_address', 'created_at']
