from __future__ import annotations

from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from users.permissions import HasRecordsRole, IsAdmin, IsInstitution, IsInstitutionOrAdmin, IsStudent, IsStudentOrAdmin

from .access import Actor
from .serializers import (
    RecordDecisionSerializer,
    RecordResubmitSerializer,
    RecordSubmitSerializer,
    present_record_view,
)
from .services import get_workflow_service
from .throttles import PublicCheckHashRateThrottle


def _actor(request) -> Actor:
    return Actor.from_user(request.user)


def _listing(views) -> Response:
    return Response([present_record_view(view) for view in views])


class RecordSubmitAPIView(APIView):
    permission_classes = [IsStudent]
    parser_classes = (MultiPartParser, FormParser)

    def post(self, request, format=None):
        data = RecordSubmitSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        view = get_workflow_service().submit(
            _actor(request),
            record_type=data.validated_data["record_type"],
            title=data.validated_data["title"],
            document=data.validated_data["document"],
        )
        return Response(present_record_view(view), status=status.HTTP_201_CREATED)


class RecordDetailAPIView(APIView):
    parser_classes = (JSONParser, FormParser, MultiPartParser)

    def get_permissions(self):
        if self.request.method == "PUT":
            return [IsStudent()]
        if self.request.method == "DELETE":
            return [IsStudentOrAdmin()]
        return [HasRecordsRole()]

    def get(self, request, pk: int, format=None):
        view = get_workflow_service().read(_actor(request), pk)
        return Response(present_record_view(view))

    def put(self, request, pk: int, format=None):
        data = RecordResubmitSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        view = get_workflow_service().resubmit(_actor(request), pk, data.validated_data["document"])
        return Response(present_record_view(view))

    def delete(self, request, pk: int, format=None):
        get_workflow_service().delete(_actor(request), pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class RecordDecisionAPIView(APIView):
    permission_classes = [IsInstitution]

    def put(self, request, pk: int, format=None):
        data = RecordDecisionSerializer(data=request.data or {})
        data.is_valid(raise_exception=True)
        view = get_workflow_service().decide(
            _actor(request),
            pk,
            data.validated_data["action"],
            data.validated_data.get("rejection_reason", ""),
        )
        return Response(present_record_view(view))


class MyRecordsAPIView(APIView):
    permission_classes = [IsStudent]

    def get(self, request, format=None):
        return _listing(get_workflow_service().list_for_owner(_actor(request)))


class PendingRecordsAPIView(APIView):
    permission_classes = [IsInstitution]

    def get(self, request, format=None):
        return _listing(get_workflow_service().list_pending(_actor(request)))


class StudentRecordsAPIView(APIView):
    permission_classes = [HasRecordsRole]

    def get(self, request, student_id: int, format=None):
        return _listing(get_workflow_service().list_for_student(_actor(request), student_id))


class InstitutionRecordsAPIView(APIView):
    permission_classes = [IsInstitutionOrAdmin]

    def get(self, request, institution_id: int | None = None, format=None):
        views = get_workflow_service().list_for_issuer(
            _actor(request),
            issuer_id=institution_id,
            status=request.query_params.get("status"),
        )
        return _listing(views)


class AllRecordsAPIView(APIView):
    permission_classes = [IsAdmin]

    def get(self, request, format=None):
        return _listing(get_workflow_service().list_all(_actor(request), request.query_params))


class CheckHashAPIView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = [PublicCheckHashRateThrottle]

    def get(self, request, fingerprint: str, format=None):
        result = get_workflow_service().check_fingerprint(fingerprint, request=request)

        if not result.found:
            return Response(
                {"is_valid": False, "detail": "No se encontró ningún registro con esta huella."},
                status=status.HTTP_404_NOT_FOUND,
            )
        if not result.is_valid:
            return Response({"is_valid": False, "detail": "El registro existe pero no ha sido verificado."})
        return Response({"is_valid": True, "record": result.payload})
