from django.http import JsonResponse
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .checks import CHECKS, run_checks


# --- Tiny public endpoints ----------------------------------------------------

def healthz(_request):
    return JsonResponse({"ok": True})


# --- Deeper diagnostics -------------------------------------------------------

class DeepHealthView(APIView):
    """
    GET /api/v1/core/deep-health/?db=1&cache=1&broker=1
    Return component statuses. All checks optional; 503 when one fails.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        names = [name for name in CHECKS if request.query_params.get(name) == "1"]
        out = run_checks(names)
        code = status.HTTP_200_OK if out["ok"] else status.HTTP_503_SERVICE_UNAVAILABLE
        return Response(out, status=code)
