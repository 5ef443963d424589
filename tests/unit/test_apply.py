"""Tests for the diff-and-apply engine."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from kubernetes.client.exceptions import ApiException

from ssa_nginx_operator.builders import create_config_map_from_descriptor, create_descriptor_from_body
from ssa_nginx_operator.reconciler.apply import apply_if_changed, needs_apply, sync_child
from ssa_nginx_operator.reconciler.kinds import ChildKind

from .conftest import FakeApi, make_descriptor_body


@pytest.fixture
def config_maps(cluster):
    return ChildKind("ConfigMap", FakeApi(cluster, {"config_map": "ConfigMap"}), "config_map")


@pytest.fixture
def desired():
    return create_config_map_from_descriptor(create_descriptor_from_body(make_descriptor_body()))


class TestNeedsApply:
    """Test cases for drift detection."""

    def test_missing_object_needs_apply(self, desired):
        """A child that does not exist yet must be applied."""
        assert needs_apply(None, desired) is True

    def test_unchanged_object_needs_no_apply(self, cluster, config_maps, desired):
        """An object matching its last apply is not drift."""
        config_maps.apply(desired)
        assert needs_apply(cluster.get("ConfigMap", "ns", "nginx"), desired) is False

    def test_foreign_fields_are_not_drift(self, cluster, config_maps, desired):
        """Fields written by other managers are ignored."""
        config_maps.apply(desired)
        live = cluster.get("ConfigMap", "ns", "nginx")
        live["metadata"].setdefault("annotations", {})["other-writer"] = "x"
        live["data"]["extra.txt"] = "added by someone else"
        assert needs_apply(live, desired) is False

    def test_owned_field_change_is_drift(self, cluster, config_maps, desired):
        """A changed field we own triggers an apply."""
        config_maps.apply(desired)
        live = cluster.get("ConfigMap", "ns", "nginx")
        live["data"]["index.html"] = "tampered"
        assert needs_apply(live, desired) is True


class TestSyncChild:
    """Test cases for sync_child and apply_if_changed."""

    def test_first_sync_creates(self, cluster, config_maps, desired):
        """Test first sync creates the child."""
        outcome = sync_child(config_maps, desired)
        assert outcome.applied is True
        assert outcome.skipped is False
        assert cluster.writes == [("apply", "ConfigMap", "nginx")]

    def test_second_sync_is_a_no_op(self, cluster, config_maps, desired):
        """Test repeated sync performs no write."""
        sync_child(config_maps, desired)
        outcome = sync_child(config_maps, desired)
        assert outcome.applied is False
        assert len(cluster.writes) == 1

    def test_changed_data_reapplies(self, cluster, config_maps, desired):
        """Test changed desired data is applied again."""
        sync_child(config_maps, desired)
        desired["data"]["index.html"] = "<html>new</html>"
        assert sync_child(config_maps, desired).applied is True
        assert cluster.get("ConfigMap", "ns", "nginx")["data"]["index.html"] == "<html>new</html>"

    def test_apply_error_propagates(self, cluster, config_maps, desired):
        """Apply failures are raised unchanged."""
        cluster.failures[("patch", "ConfigMap")] = ApiException(status=500, reason="boom")
        with pytest.raises(ApiException) as exc_info:
            sync_child(config_maps, desired)
        assert exc_info.value.status == 500

    def test_apply_if_changed_uses_given_current(self, desired):
        """The supplied live object is used instead of a fresh read."""
        kind = MagicMock(spec=ChildKind)
        kind.kind = "ConfigMap"
        outcome = apply_if_changed(kind, desired, None)
        assert outcome.applied is True
        kind.apply.assert_called_once_with(desired)
