from rest_framework import permissions
from .models import User


class IsAdmin(permissions.BasePermission):
    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role == User.ROLE_ADMIN


class IsInstitution(permissions.BasePermission):
    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role == User.ROLE_INSTITUTION


class IsInstitutionOrAdmin(permissions.BasePermission):
    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role in [
            User.ROLE_ADMIN,
            User.ROLE_INSTITUTION,
        ]


class IsStudent(permissions.BasePermission):
    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role == User.ROLE_STUDENT


class IsStudentOrAdmin(permissions.BasePermission):
    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role in [
            User.ROLE_ADMIN,
            User.ROLE_STUDENT,
        ]


class HasRecordsRole(permissions.BasePermission):
    """Any authenticated user holding one of the roles known to the records service."""

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role in {
            User.ROLE_ADMIN,
            User.ROLE_INSTITUTION,
            User.ROLE_STUDENT,
            User.ROLE_COMPANY,
        }
