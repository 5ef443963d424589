"""Tests for the SSANginx kopf handler."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import kopf
import pytest
from kubernetes.client.exceptions import ApiException

from ssa_nginx_operator.handlers import ssanginx
from ssa_nginx_operator.handlers.base import RequeueRequested
from ssa_nginx_operator.handlers.ssanginx import SSANginxHandler
from ssa_nginx_operator.reconciler import InvalidDescriptorError, ReconcileResult, Reconciler
from ssa_nginx_operator.utils.context import get_correlation_id

from .conftest import make_descriptor_body


@pytest.fixture
def body():
    return make_descriptor_body()


@pytest.fixture
def fake_reconciler():
    return MagicMock(spec=Reconciler)


@pytest.fixture
def handler(fake_reconciler):
    return SSANginxHandler(reconciler_factory=lambda: fake_reconciler)


def conditions_of(patch_obj):
    return {c["type"]: c for c in patch_obj.status["conditions"]}


class TestSSANginxHandler:
    """Test cases for SSANginxHandler.reconcile."""

    def test_success_marks_ready(self, handler, fake_reconciler, body):
        """Test successful pass marks the resource ready."""
        fake_reconciler.reconcile.return_value = ReconcileResult(
            applied={"configmap": True}, tls_host="a.example.com"
        )
        patch_obj = kopf.Patch()

        handler.reconcile(body, body["metadata"], {}, patch_obj)

        fake_reconciler.reconcile.assert_called_once_with("ns", "test")
        assert conditions_of(patch_obj)["Ready"]["status"] == "True"
        assert patch_obj.status["tlsHost"] == "a.example.com"
        assert patch_obj.status["observedGeneration"] == 1

    def test_requeue_when_step_skipped(self, handler, fake_reconciler, body):
        """Test skipped step requeues and keeps Ready false."""
        fake_reconciler.reconcile.return_value = ReconcileResult(skipped=["deployment"])
        patch_obj = kopf.Patch()

        with pytest.raises(RequeueRequested) as exc_info:
            handler.reconcile(body, body["metadata"], {}, patch_obj)

        assert "deployment" in str(exc_info.value)
        assert conditions_of(patch_obj)["Ready"]["status"] == "False"

    @patch("ssa_nginx_operator.handlers.base.emit_validate_failed")
    def test_invalid_descriptor_is_permanent(self, mock_emit, handler, fake_reconciler, body):
        """Test invalid descriptor stops retries."""
        fake_reconciler.reconcile.side_effect = InvalidDescriptorError(["spec.serviceName is required"])
        patch_obj = kopf.Patch()

        with pytest.raises(kopf.PermanentError):
            handler.reconcile(body, body["metadata"], {}, patch_obj)

        mock_emit.assert_called_once()
        assert conditions_of(patch_obj)["Ready"]["status"] == "False"

    def test_api_failure_sets_apply_failed(self, handler, fake_reconciler, body):
        """Test API failure sets ApplyFailed."""
        fake_reconciler.reconcile.side_effect = ApiException(status=500, reason="Internal Server Error")
        patch_obj = kopf.Patch()

        with pytest.raises(ApiException):
            handler.reconcile(body, body["metadata"], {}, patch_obj)

        assert conditions_of(patch_obj)["ApplyFailed"]["status"] == "True"

    def test_descriptor_gone(self, handler, fake_reconciler, body):
        """Test descriptor deleted before the pass."""
        fake_reconciler.reconcile.return_value = ReconcileResult(found=False)
        patch_obj = kopf.Patch()

        result = handler.reconcile(body, body["metadata"], {}, patch_obj)

        assert result.found is False
        assert "conditions" not in patch_obj.get("status", {})


class TestHandlerRegistration:
    """Test cases for the module level kopf functions."""

    def test_pass_runs_under_correlation_id(self, mock_events, body):
        """Test each pass gets its own correlation ID."""
        seen = []

        def capture(*args):
            seen.append(get_correlation_id())

        with patch.object(ssanginx._handler, "reconcile", side_effect=capture):
            ssanginx.handle_ssanginx(body=body, meta=body["metadata"], status={}, patch=kopf.Patch())

        assert seen and seen[0]
        assert get_correlation_id() is None

    def test_requeue_raises_temporary_error(self, mock_events, body):
        """Test requeue becomes a kopf TemporaryError."""
        with patch.object(ssanginx._handler, "reconcile", side_effect=RequeueRequested("waiting", delay=10)):
            with pytest.raises(kopf.TemporaryError):
                ssanginx.handle_ssanginx(body=body, meta=body["metadata"], status={}, patch=kopf.Patch())

    def test_delete_only_logs(self, body):
        """Test delete handler does not touch children."""
        ssanginx.handle_ssanginx_delete(meta=body["metadata"])
