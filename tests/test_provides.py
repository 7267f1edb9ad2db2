"""
Tests for the provides map — platform seeding, merging, validation.
"""

import logging

import pytest

from stackhub.core.context import RunContext
from stackhub.core.errors import ProvideValidationError
from stackhub.core.models.parameters import CapturedOutput
from stackhub.core.services.provides import (
    PROVIDED_BY_ENVIRONMENT,
    PROVIDED_BY_PLATFORM,
    merge_platform_provides,
    merge_provides,
    no_environment_provides,
    parse_requires_tuning,
    sprint_deps,
)


def _domain(component):
    out = CapturedOutput(name="dns.domain", component=component, value=f"{component}.example.com")
    return {out.qname: out}


class TestMergePlatformProvides:
    def test_sentinel_registered(self):
        provides = {}
        merge_platform_provides(provides, ["kubernetes", "vault"])
        assert provides == {
            "kubernetes": [PROVIDED_BY_PLATFORM],
            "vault": [PROVIDED_BY_PLATFORM],
        }


class TestMergeProvides:
    def test_appends_in_order(self, ctx):
        provides = {"ingress": ["nginx"]}
        merge_provides(provides, "traefik", ["ingress"], {}, ctx)
        assert provides["ingress"] == ["nginx", "traefik"]

    def test_idempotent(self, ctx):
        provides = {}
        merge_provides(provides, "nginx", ["ingress"], {}, ctx)
        merge_provides(provides, "nginx", ["ingress"], {}, ctx)
        assert provides["ingress"] == ["nginx"]

    def test_kubernetes_requires_domain_output(self, ctx):
        with pytest.raises(ProvideValidationError, match="dns.domain:eks"):
            merge_provides({}, "eks", ["kubernetes"], {}, ctx)

    def test_kubernetes_with_domain_output(self, ctx):
        provides = {}
        merge_provides(provides, "eks", ["kubernetes"], _domain("eks"), ctx)
        assert provides["kubernetes"] == ["eks"]

    def test_force_turns_validation_into_warning(self, caplog):
        provides = {}
        with caplog.at_level(logging.WARNING):
            merge_provides(provides, "eks", ["kubernetes"], {}, RunContext(force=True))
        assert provides["kubernetes"] == ["eks"]
        assert "no `dns.domain:eks` output found" in caplog.text


class TestNoEnvironmentProvides:
    def test_filters_sentinel(self):
        provides = {
            "kubectl": [PROVIDED_BY_ENVIRONMENT],
            "kubernetes": [PROVIDED_BY_ENVIRONMENT, "eks"],
        }
        assert no_environment_provides(provides) == {"kubernetes": ["eks"]}

    def test_input_untouched(self):
        provides = {"kubectl": [PROVIDED_BY_ENVIRONMENT]}
        no_environment_provides(provides)
        assert provides == {"kubectl": [PROVIDED_BY_ENVIRONMENT]}


class TestParseRequiresTuning:
    def test_component_scoped_and_wildcard(self):
        assert parse_requires_tuning(["vault:app", "vault:db", "tls-ingress"]) == {
            "vault": ["app", "db"],
            "tls-ingress": ["*"],
        }

    def test_malformed_ignored(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert parse_requires_tuning(["vault:", ":app"]) == {}
        assert "malformed" in caplog.text


class TestSprintDeps:
    def test_sorted_table(self):
        text = sprint_deps({"vault": ["a"], "kubernetes": ["b", "c"]})
        assert text == "\tkubernetes => b, c\n\tvault => a"
