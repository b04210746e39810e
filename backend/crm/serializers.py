from rest_framework import serializers
from .models import Company, CompanyUser


class CompanyRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Company
        fields = ("id", "name", "is_anonymous")


class CompanyUserRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = CompanyUser
        fields = ("id", "email", "first_name", "last_name")
