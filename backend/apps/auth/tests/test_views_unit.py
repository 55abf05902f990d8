import unittest
from unittest.mock import Mock, patch

from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIRequestFactory, force_authenticate

from apps.auth.services import InvalidRefreshToken
from apps.auth.views import LogoutView, MeView


class FakeAuthUser:
    is_authenticated = True

    def __init__(self, **attrs):
        self.id = attrs.get("id", 1)
        self.pk = self.id
        self.username = attrs.get("username", "shopper")
        self.email = attrs.get("email", "")
        self.first_name = attrs.get("first_name", "")
        self.last_name = attrs.get("last_name", "")
        self.last_login = None
        self.date_joined = attrs.get("date_joined")


class AuthViewsUnitTests(unittest.TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()

    def test_me_returns_profile(self):
        user = FakeAuthUser(id=5, username="amina", date_joined=timezone.now())
        request = self.factory.get("/api/auth/me/")
        force_authenticate(request, user=user)
        response = MeView.as_view()(request)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["username"], "amina")
        self.assertIsNone(response.data["last_login"])

    def test_logout_delegates_to_service(self):
        user = FakeAuthUser(id=3)
        service = Mock()
        with patch.object(LogoutView, "service", service):
            request = self.factory.post("/api/auth/logout/", {"refresh": "abc"}, format="json")
            force_authenticate(request, user=user)
            response = LogoutView.as_view()(request)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {"detail": "Logged out"})
        _request, token = service.logout.call_args.args
        self.assertEqual(token, "abc")

    def test_logout_error_is_rendered(self):
        service = Mock()
        service.logout.side_effect = InvalidRefreshToken(details={"refresh": None})
        with patch.object(LogoutView, "service", service):
            request = self.factory.post("/api/auth/logout/", {}, format="json")
            force_authenticate(request, user=FakeAuthUser())
            response = LogoutView.as_view()(request)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "VALIDATION_ERROR")
