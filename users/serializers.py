# users/serializers.py
from rest_framework import serializers
from .models import User


class UserSummarySerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="display_name", read_only=True)

    class Meta:
        model = User
        fields = ["id", "email", "username", "name", "role"]
        read_only_fields = fields
