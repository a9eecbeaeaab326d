from rest_framework import generics
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import User
from .serializers import PublicInstitutionSerializer, UserSerializer


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, format=None):
        return Response(UserSerializer(request.user).data)


class PublicInstitutionListView(generics.ListAPIView):
    """Directory of active institutions, used by students when submitting records."""

    authentication_classes = []
    permission_classes = [AllowAny]
    serializer_class = PublicInstitutionSerializer

    def get_queryset(self):
        return User.objects.filter(role=User.ROLE_INSTITUTION, is_active=True).order_by("display_name", "username")
