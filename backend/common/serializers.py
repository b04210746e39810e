from collections.abc import Mapping

from rest_framework import serializers


class AliasedFieldsMixin:
    """
    Accept alternative key names used by older storefront snippets.
    ``field_aliases = {"shop": "shopDomain"}`` copies ``shop`` into
    ``shopDomain`` when the canonical key is absent or empty.
    """
    field_aliases = {}

    def to_internal_value(self, data):
        if isinstance(data, Mapping):
            data = dict(data)
            for alias, name in self.field_aliases.items():
                if data.get(name) in (None, "") and data.get(alias) not in (None, ""):
                    data[name] = data[alias]
        return super().to_internal_value(data)


class ProviderIdField(serializers.Field):
    """
    A provider identifier kept exactly as sent (number or string).
    Shape is checked here; parsing is left to the consumer so that one bad
    id can be skipped without rejecting the whole payload.
    """
    default_error_messages = {
        "invalid": "Expected a number or a string identifier.",
    }

    def to_internal_value(self, data):
        if isinstance(data, bool) or not isinstance(data, (int, float, str)):
            self.fail("invalid")
        if isinstance(data, str):
            data = data.strip()
            if not data:
                self.fail("invalid")
        return data

    def to_representation(self, value):
        return str(value)
