import logging

from .middleware import current_request_id


class RequestIDFilter(logging.Filter):
    """Stamps every record with the id of the request being served ("-" in workers)."""

    def filter(self, record):
        if not hasattr(record, "request_id"):
            record.request_id = current_request_id()
        return True
