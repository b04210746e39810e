from django.contrib import admin

from .models import Event


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ("ts", "tenant", "event_type", "company", "session_id")
    list_filter = ("event_type",)
    search_fields = ("session_id", "envelope_id", "page_url")
