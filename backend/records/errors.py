from __future__ import annotations

from rest_framework import status
from rest_framework.exceptions import APIException


class RecordError(APIException):
    """Base class for every failure the records workflow reports to its callers.

    Callers branch on the class (or on `kind`), never on the message text.
    `retryable_after_reread` is only true for conflicts: the caller must load
    the current state again before retrying.
    """

    kind = "error"
    retryable_after_reread = False
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "No se pudo procesar el registro académico."
    default_code = "record_error"


class RecordValidationError(RecordError):
    kind = "validation"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Datos inválidos."
    default_code = "invalid"

    def __init__(self, field: str, message: str):
        super().__init__({field: [message]})
        self.field = field


class RecordAuthorizationError(RecordError):
    kind = "authorization"
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "No tienes permisos para esta operación."
    default_code = "permission_denied"


class RecordNotFoundError(RecordError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Registro académico no encontrado."
    default_code = "not_found"


class RecordConflictError(RecordError):
    kind = "conflict"
    retryable_after_reread = True
    status_code = status.HTTP_409_CONFLICT
    default_detail = "El estado del registro cambió; vuelve a consultarlo antes de reintentar."
    default_code = "conflict"


class StorageError(RecordError):
    kind = "storage"
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "El almacenamiento de documentos no está disponible."
    default_code = "storage_error"


class StorageTimeoutError(StorageError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    default_detail = "El almacenamiento de documentos no respondió a tiempo."
    default_code = "storage_timeout"


class BlobNotFoundError(StorageError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "El documento almacenado no existe."
    default_code = "blob_not_found"
