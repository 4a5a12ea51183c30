import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """
    DRF exception handler that turns anything DRF does not know about
    into a generic 500 so database or logic errors never leak to clients.
    Validation (400) and not-found (404) responses pass through unchanged.
    """
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view")
    request = context.get("request")
    logger.error(
        "Unhandled error in %s %s",
        view.__class__.__name__ if view else "unknown view",
        request.method if request else "",
        exc_info=exc,
    )
    return Response({"detail": "Internal server error"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
