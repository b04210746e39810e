from rest_framework import serializers

from .models import ActivityLog, DeadLetterJob, Tenant


class TenantSerializer(serializers.ModelSerializer):
    class Meta:
        model = Tenant
        fields = ("id", "slug", "name", "status", "plan", "shop_domain", "custom_domain", "created_at")
        read_only_fields = fields


class ActivityLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = ActivityLog
        fields = ("id", "event_type", "cart_id", "company", "company_user", "payload", "created_at")
        read_only_fields = fields


class DeadLetterJobSerializer(serializers.ModelSerializer):
    class Meta:
        model = DeadLetterJob
        fields = '__all__'
        read_only_fields = [f.name for f in DeadLetterJob._meta.fields]
