from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework import status
from .models import User


class UserEndpointsTests(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.institution = User.objects.create_user(
            username="uni",
            email="uni@example.com",
            password="password",
            role=User.ROLE_INSTITUTION,
            display_name="Universidad del Norte",
        )
        self.inactive_institution = User.objects.create_user(
            username="closed",
            email="closed@example.com",
            password="password",
            role=User.ROLE_INSTITUTION,
            is_active=False,
        )
        self.student = User.objects.create_user(
            username="student",
            email="student@example.com",
            password="password",
            role=User.ROLE_STUDENT,
            institution=self.institution,
        )

    def get_token(self, user):
        response = self.client.post(
            "/api/token/", {"username": user.username, "password": "password"}
        )
        return response.data["access"]

    def test_me_requires_authentication(self):
        response = self.client.get("/api/users/me/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_with_bearer_token(self):
        token = self.get_token(self.student)
        self.client.credentials(HTTP_AUTHORIZATION="Bearer " + token)
        response = self.client.get("/api/users/me/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["role"], User.ROLE_STUDENT)
        self.assertEqual(response.data["role_label"], "Estudiante")
        self.assertEqual(response.data["institution"], self.institution.id)
        self.assertNotIn("password", response.data)

    def test_public_institutions_lists_active_institutions_only(self):
        response = self.client.get("/api/public/institutions/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [{"id": self.institution.id, "name": "Universidad del Norte"}])

    def test_public_name_falls_back_to_username(self):
        self.assertEqual(self.inactive_institution.public_name, "closed")
