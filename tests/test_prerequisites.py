"""
Tests for prerequisite checks — tool probes, versions, cloud logins.
"""

import logging
import re
import subprocess
from unittest.mock import MagicMock, patch

from stackhub.core.context import RunContext
from stackhub.core.services.prerequisites import check_require
from stackhub.core.services.prerequisites.cloud import check_azure, check_gcp
from stackhub.core.services.prerequisites.tool_version import (
    MIN_VERSIONS,
    PROBE_COMMANDS,
    check_tool,
    run_bin,
)
from stackhub.core.services.prerequisites.version_constraint import (
    check_min_version,
    check_version_output,
)

_RUN_BIN = "stackhub.core.services.prerequisites.tool_version.run_bin"
_CLOUD_RUN_BIN = "stackhub.core.services.prerequisites.cloud.run_bin"

KUBECTL_VERSION = 'Client Version: version.Info{Major:"1", Minor:"28", GitVersion:"v1.28.2"}'


# ═══════════════════════════════════════════════════════════════════
#  Version constraints (pure)
# ═══════════════════════════════════════════════════════════════════


class TestCheckMinVersion:
    def test_equal(self):
        assert check_min_version("1.13.5", "1.13.5") is None

    def test_newer_numeric_not_lexical(self):
        assert check_min_version("1.28.2", "1.13.5") is None

    def test_older(self):
        problem = check_min_version("2.9.0", "2.13.1")
        assert problem is not None
        assert "`2.13.1`" in problem

    def test_v_prefix(self):
        assert check_min_version("v1.1.0", "1.1.0") is None

    def test_unparsable_is_accepted(self):
        assert check_min_version("dev-build", "1.0.0") is None


class TestCheckVersionOutput:
    def test_no_output(self):
        assert check_version_output("1.0", re.compile(r"v([\d.]+)"), "") == "no output"

    def test_no_match(self):
        assert check_version_output("1.0", re.compile(r"v([\d.]+)"), "garbage") == (
            "no version string found"
        )

    def test_kubectl_pattern(self):
        minimum, pattern = MIN_VERSIONS["kubectl"]
        assert check_version_output(minimum, pattern, KUBECTL_VERSION) is None


# ═══════════════════════════════════════════════════════════════════
#  Tool probes
# ═══════════════════════════════════════════════════════════════════


class TestRunBin:
    @patch("stackhub.core.services.prerequisites.tool_version.subprocess.run")
    def test_success_combines_output(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="out\n", stderr="err\n")
        output, error = run_bin("helm", "version")
        assert output == "out\nerr\n"
        assert error is None

    @patch("stackhub.core.services.prerequisites.tool_version.subprocess.run")
    def test_nonzero_exit(self, mock_run):
        mock_run.return_value = MagicMock(returncode=2, stdout="", stderr="boom")
        output, error = run_bin("helm", "version")
        assert output == "boom"
        assert "exit status 2" in error

    @patch(
        "stackhub.core.services.prerequisites.tool_version.subprocess.run",
        side_effect=FileNotFoundError,
    )
    def test_missing_binary(self, _mock_run):
        _, error = run_bin("helm", "version")
        assert "executable `helm` not found" in error

    @patch(
        "stackhub.core.services.prerequisites.tool_version.subprocess.run",
        side_effect=subprocess.TimeoutExpired(cmd="helm", timeout=120),
    )
    def test_timeout(self, _mock_run):
        _, error = run_bin("helm", "version")
        assert "timed out" in error


class TestCheckTool:
    def test_probe_command_mapping(self):
        with patch(_RUN_BIN, return_value=(KUBECTL_VERSION, None)) as mock_bin:
            assert check_tool("kubernetes", RunContext()) is None
        mock_bin.assert_called_once_with(*PROBE_COMMANDS["kubernetes"])

    def test_default_probe(self):
        with patch(_RUN_BIN, return_value=("Vault v1.15.0", None)) as mock_bin:
            assert check_tool("vault", RunContext()) is None
        mock_bin.assert_called_once_with("vault", "version")

    def test_failure_is_error(self):
        with patch(_RUN_BIN, return_value=("", "not found")):
            assert check_tool("helm", RunContext()) == "not found"

    def test_old_version_warns_once(self, caplog):
        ctx = RunContext()
        old = 'version.BuildInfo{SemVer:"v2.9.0"}'
        with patch(_RUN_BIN, return_value=(old, None)), caplog.at_level(logging.WARNING):
            assert check_tool("helm", ctx) is None
            assert check_tool("helm", ctx) is None
        assert caplog.text.count("version requirement cannot be satisfied") == 1


class TestCheckRequire:
    def test_unknown_term(self):
        assert check_require("bananas", RunContext()) == (False, None)

    def test_memoized(self):
        ctx = RunContext()
        with patch(_RUN_BIN, return_value=(KUBECTL_VERSION, None)) as mock_bin:
            assert check_require("kubectl", ctx) == (True, None)
            assert check_require("kubectl", ctx) == (True, None)
        assert mock_bin.call_count == 1
        assert "kubectl" in ctx.verified_requirements

    def test_failure_not_memoized(self):
        ctx = RunContext()
        with patch(_RUN_BIN, return_value=("", "not found")):
            assert check_require("helm", ctx) == (True, "not found")
        assert "helm" not in ctx.verified_requirements

    def test_context_uses_injected_checker(self):
        calls = []

        def checker(term, ctx):
            calls.append(term)
            return True, None

        ctx = RunContext(checker=checker)
        assert ctx.check_require("helm") == (True, None)
        assert calls == ["helm"]


# ═══════════════════════════════════════════════════════════════════
#  Cloud logins
# ═══════════════════════════════════════════════════════════════════


class TestCheckAzure:
    def test_logged_in(self):
        with patch(_CLOUD_RUN_BIN, return_value=("table", None)):
            assert check_azure() is None

    def test_other_failure(self):
        with patch(_CLOUD_RUN_BIN, return_value=("network down", "exit status 1")):
            assert check_azure() == "exit status 1"

    def test_login_needs_tenant(self, monkeypatch):
        monkeypatch.delenv("AZURE_TENANT_ID", raising=False)
        with patch(_CLOUD_RUN_BIN, return_value=("Please run 'az login'", "exit status 1")):
            assert "AZURE_TENANT_ID is not set" in check_azure()

    def test_service_principal_login(self, monkeypatch):
        monkeypatch.setenv("AZURE_TENANT_ID", "tenant")
        monkeypatch.setenv("AZURE_CLIENT_ID", "client")
        monkeypatch.setenv("AZURE_CLIENT_SECRET", "secret")
        results = [("Please run 'az login'", "exit status 1"), ("", None)]
        with patch(_CLOUD_RUN_BIN, side_effect=results) as mock_bin:
            assert check_azure() is None
        login = mock_bin.call_args_list[1].args
        assert login[:3] == ("az", "login", "--service-principal")
        assert "secret" in login


class TestCheckGcp:
    def test_credentials_ok(self):
        with patch(_CLOUD_RUN_BIN, return_value=("token", None)):
            assert check_gcp() is None

    def test_login_needs_credentials(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS", raising=False)
        with patch(_CLOUD_RUN_BIN, return_value=("run gcloud auth login", None)):
            assert "GOOGLE_APPLICATION_CREDENTIALS is not set" in check_gcp()

    def test_activates_service_account(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", "/tmp/key.json")
        results = [("run gcloud auth login", None), ("", None)]
        with patch(_CLOUD_RUN_BIN, side_effect=results) as mock_bin:
            assert check_gcp() is None
        assert mock_bin.call_args_list[1].args[-1] == "/tmp/key.json"
