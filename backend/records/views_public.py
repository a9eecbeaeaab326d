from __future__ import annotations

import logging
from pathlib import PurePath

from django.core import signing
from django.http import FileResponse
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .errors import BlobNotFoundError
from .services import get_workflow_service
from .storage import PrivateStorageBlobStore, content_type_for

logger = logging.getLogger(__name__)


class PublicRecordFileAPIView(APIView):
    """Streams a private document for a still-valid signed token.

    The token is the whole capability: no session or JWT is consulted.
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request, token: str, format=None):
        try:
            blob_ref = PrivateStorageBlobStore.resolve_download_token(token)
        except signing.SignatureExpired:
            return Response({"detail": "El enlace de descarga expiró."}, status=410)
        except signing.BadSignature:
            return Response({"detail": "Enlace de descarga inválido."}, status=404)

        try:
            handle = get_workflow_service().blob_store.open(blob_ref)
        except BlobNotFoundError:
            return Response({"detail": "El documento ya no está disponible."}, status=404)

        logger.info("records.document_download", extra={"blob_ref": blob_ref})
        return FileResponse(
            handle,
            as_attachment=True,
            filename=PurePath(blob_ref).name,
            content_type=content_type_for(blob_ref),
        )
