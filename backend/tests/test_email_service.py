"""
Tests for auth e-mail rendering and delivery. HTTP calls are mocked.
"""

import unittest
from unittest.mock import patch, MagicMock

import requests

from api import email_service
from core import config
from core.errors import UpstreamError, ValidationError


class TestRenderAuthEmail(unittest.TestCase):

    def test_signup_link(self):
        message = email_service.render_auth_email("signup", "tok123", "https://app.example.com/")
        self.assertEqual(message["subject"], "Confirm your email - TranscriptIQ")
        self.assertIn("https://app.example.com/auth/confirm?token=tok123&type=signup", message["html"])

    def test_recovery_link_uses_default_base_url(self):
        with patch.object(config, "APP_BASE_URL", "http://localhost:3000"):
            message = email_service.render_auth_email("recovery", "abc")
        self.assertIn("http://localhost:3000/auth/reset-password?token=abc", message["html"])

    def test_magic_link(self):
        message = email_service.render_auth_email("magic_link", "m1", "https://x.io")
        self.assertIn("type=magiclink", message["html"])
        self.assertIn("expire in 1 hour", message["html"])

    def test_unsupported_type(self):
        with self.assertRaises(ValidationError):
            email_service.render_auth_email("invite", "t")


class TestSendAuthEmail(unittest.TestCase):

    def setUp(self):
        patcher = patch.object(config, "RESEND_API_KEY", "re_test")
        patcher.start()
        self.addCleanup(patcher.stop)

    @patch("api.email_service.requests.post")
    def test_success(self, mock_post):
        mock_post.return_value = MagicMock(ok=True, status_code=200)
        mock_post.return_value.json.return_value = {"id": "msg_1"}

        message_id = email_service.send_auth_email("a@b.com", "signup", "tok")

        self.assertEqual(message_id, "msg_1")
        payload = mock_post.call_args.kwargs["json"]
        self.assertEqual(payload["to"], ["a@b.com"])
        self.assertEqual(payload["subject"], "Confirm your email - TranscriptIQ")
        self.assertEqual(mock_post.call_args.kwargs["headers"]["Authorization"], "Bearer re_test")

    @patch("api.email_service.requests.post")
    def test_provider_error(self, mock_post):
        mock_post.return_value = MagicMock(ok=False, status_code=422, text="invalid from")
        with self.assertRaises(UpstreamError):
            email_service.send_auth_email("a@b.com", "recovery", "tok")

    @patch("api.email_service.requests.post", side_effect=requests.ConnectionError("down"))
    def test_provider_unreachable(self, mock_post):
        with self.assertRaises(UpstreamError):
            email_service.send_auth_email("a@b.com", "recovery", "tok")

    @patch("api.email_service.requests.post")
    def test_missing_email(self, mock_post):
        with self.assertRaises(ValidationError):
            email_service.send_auth_email("", "signup", "tok")
        mock_post.assert_not_called()


if __name__ == "__main__":
    unittest.main()
