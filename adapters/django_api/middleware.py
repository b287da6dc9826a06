"""
SpaceFlow Django Adapter Middleware
=====================================
Stamps API responses with the contract version.
"""

from __future__ import annotations

from django.conf import settings


API_VERSION_HEADER = "X-API-Version"


class ApiVersionMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        if request.path.startswith(getattr(settings, "API_PATH_PREFIX", "/v1/")):
            response[API_VERSION_HEADER] = getattr(settings, "API_VERSION", "1.0")
        return response
