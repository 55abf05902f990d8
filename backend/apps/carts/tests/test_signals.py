import types
import unittest
from unittest.mock import Mock, patch

from apps.carts import signals
from apps.carts.dtos import MergeResultDTO
from apps.carts.errors import MergeIncomplete


class LoginMergeSignalTests(unittest.TestCase):
    def setUp(self):
        self.request = types.SimpleNamespace(session={})
        self.user = types.SimpleNamespace(pk=7)
        service_patcher = patch.object(signals, "service", Mock())
        context_patcher = patch.object(signals, "build_cart_context", return_value=Mock())
        self.service = service_patcher.start()
        self.build_context = context_patcher.start()
        self.addCleanup(service_patcher.stop)
        self.addCleanup(context_patcher.stop)

    def test_login_merges_session_cart(self):
        self.service.on_authenticated.return_value = MergeResultDTO(owner_id=7, merged_lines=1)
        signals.merge_cart_on_login(sender=None, request=self.request, user=self.user)
        self.build_context.assert_called_once_with(self.request)
        self.service.on_authenticated.assert_called_once_with(self.build_context.return_value, 7)

    def test_failed_merge_does_not_break_login(self):
        self.service.on_authenticated.side_effect = MergeIncomplete(pending_lines=2)
        signals.merge_cart_on_login(sender=None, request=self.request, user=self.user)
        self.service.on_authenticated.assert_called_once()

    def test_login_without_request_is_ignored(self):
        signals.merge_cart_on_login(sender=None, request=None, user=self.user)
        self.service.on_authenticated.assert_not_called()

    def test_unexpected_errors_propagate(self):
        self.service.on_authenticated.side_effect = RuntimeError("bug")
        with self.assertRaises(RuntimeError):
            signals.merge_cart_on_login(sender=None, request=self.request, user=self.user)

    def test_logout_forgets_account_view(self):
        signals.forget_cart_on_logout(sender=None, request=self.request, user=self.user)
        self.service.on_signed_out.assert_called_once_with(self.build_context.return_value)
