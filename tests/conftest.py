"""
Shared test fixtures and configuration.
"""

import textwrap
from pathlib import Path

import pytest

from stackhub.core.context import RunContext


def _tool_checker(known_terms: set[str], failing: dict[str, str] | None = None):
    """Prerequisite checker stub: ``known_terms`` pass, ``failing`` fail."""
    failing = failing or {}

    def check(term: str, ctx: RunContext) -> tuple[bool, str | None]:
        if term in failing:
            return True, failing[term]
        if term in known_terms:
            ctx.verified_requirements.add(term)
            return True, None
        return False, None

    return check


@pytest.fixture
def make_checker():
    """Factory for prerequisite checker stubs."""
    return _tool_checker


@pytest.fixture
def ctx() -> RunContext:
    """Run context whose checker knows no terms (no subprocesses)."""
    return RunContext(checker=_tool_checker(set()))


@pytest.fixture
def write_file():
    """Write a dedented file, creating parent directories."""

    def write(path: Path, content: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content))
        return path

    return write


@pytest.fixture
def stack_dir(tmp_path: Path, write_file) -> Path:
    """A two-component stack: a cluster provider and an app using it."""
    write_file(tmp_path / "hub.yaml", """\
        kind: stack
        meta:
          name: demo
        requires:
          - kubectl
        platform:
          provides:
            - vault
        lifecycle:
          order: [cluster, app]
          requires:
            optional:
              - monitoring:app
        components:
          - name: cluster
          - name: app
            depends: [cluster]
        parameters:
          - name: dns.domain
            value: dev.example.com
          - name: replicas
            component: app
            value: "3"
        outputs:
          - name: dns.domain:cluster
          - name: app.url
            value: https://app.${dns.domain}
    """)
    write_file(tmp_path / "components/cluster/hub-component.yaml", """\
        meta:
          name: cluster
        provides:
          - kubernetes
    """)
    write_file(tmp_path / "components/app/hub-component.yaml", """\
        meta:
          name: app
        requires:
          - kubernetes
          - vault
        parameters:
          - name: image
            value: nginx:1.25
        templates:
          files:
            - values.yaml
    """)
    write_file(tmp_path / "components/app/values.yaml.template", """\
        host: app.${dns.domain}
        image: ${image}
        replicas: ${replicas}
    """)
    return tmp_path
