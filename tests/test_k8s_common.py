"""
Tests for k8s_common — kubectl runner and context selection.
"""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from stackhub.core.errors import RequirementError
from stackhub.core.models.parameters import CapturedOutput, Parameter
from stackhub.core.services.k8s_common import _run_kubectl, kubernetes_context, setup_kubernetes
from stackhub.core.services.parameters import lock_parameters

_RUN = "stackhub.core.services.k8s_common._run_kubectl"


def _captured(component: str, value: str):
    out = CapturedOutput(name="dns.domain", component=component, value=value)
    return {out.qname: out}


class TestRunKubectl:
    @patch("stackhub.core.services.k8s_common.subprocess.run")
    def test_prefixes_kubectl(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        _run_kubectl("config", "current-context")
        args = mock_run.call_args
        assert args[0][0] == ["kubectl", "config", "current-context"]
        assert args[1]["timeout"] == 15


class TestKubernetesContext:
    def test_captured_output_wins(self):
        params = lock_parameters([Parameter(name="dns.domain", value="param.example.com")])
        assert kubernetes_context(params, "eks", _captured("eks", "eks.example.com")) == (
            "eks.example.com"
        )

    def test_parameter_fallback(self):
        params = lock_parameters([Parameter(name="dns.domain", value="param.example.com")])
        assert kubernetes_context(params, "eks", {}) == "param.example.com"

    def test_nothing(self):
        assert kubernetes_context((), "eks", {}) == ""


class TestSetupKubernetes:
    def test_sentinel_provider_keeps_context(self):
        with patch(_RUN) as mock_run:
            assert setup_kubernetes((), "*environment*", {}) == ""
        mock_run.assert_not_called()

    def test_use_context(self):
        with patch(_RUN, return_value=MagicMock(returncode=0, stderr="")) as mock_run:
            assert setup_kubernetes((), "eks", _captured("eks", "eks.example.com")) == (
                "eks.example.com"
            )
        mock_run.assert_called_once_with("config", "use-context", "eks.example.com")

    def test_no_context_raises(self):
        with pytest.raises(RequirementError, match="no `dns.domain` output or parameter"):
            setup_kubernetes((), "eks", {})

    def test_unknown_context_raises(self):
        result = MagicMock(returncode=1, stderr="error: no context exists\n")
        with patch(_RUN, return_value=result):
            with pytest.raises(RequirementError, match="no context exists"):
                setup_kubernetes((), "eks", _captured("eks", "eks.example.com"))

    def test_missing_kubectl_raises(self):
        with patch(_RUN, side_effect=FileNotFoundError("kubectl")):
            with pytest.raises(RequirementError, match="Unable to run kubectl"):
                setup_kubernetes((), "eks", _captured("eks", "eks.example.com"))

    def test_timeout_raises(self):
        with patch(_RUN, side_effect=subprocess.TimeoutExpired(cmd="kubectl", timeout=15)):
            with pytest.raises(RequirementError):
                setup_kubernetes((), "eks", _captured("eks", "eks.example.com"))
