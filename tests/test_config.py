"""
Tests for configuration loading — hub.yaml and component manifests.
"""

import logging
from pathlib import Path

import pytest

from stackhub.core.config.loader import (
    ConfigError,
    env_force,
    find_stack_file,
    load_component,
    load_components,
    load_stack,
    locate_stack,
)


class TestFindStackFile:
    def test_in_dir(self, stack_dir: Path):
        assert find_stack_file(stack_dir) == (stack_dir / "hub.yaml").resolve()

    def test_walks_up(self, stack_dir: Path):
        nested = stack_dir / "components" / "app"
        assert find_stack_file(nested) == (stack_dir / "hub.yaml").resolve()

    def test_not_found(self, tmp_path: Path):
        assert find_stack_file(tmp_path) is None


class TestLoadStack:
    def test_valid(self, stack_dir: Path):
        stack = load_stack(stack_dir / "hub.yaml")
        assert stack.meta.name == "demo"
        assert stack.requires == ["kubectl"]
        assert stack.platform.provides == ["vault"]
        assert stack.lifecycle.requires.optional == ["monitoring:app"]
        assert [c.name for c in stack.components] == ["cluster", "app"]
        assert stack.get_component("app").depends == ["cluster"]
        assert stack.parameters[1].qname == "replicas:app"

    def test_deployment_order_defaults_to_declaration(self, tmp_path: Path, write_file):
        path = write_file(tmp_path / "hub.yaml", """\
            meta: {name: s}
            components:
              - name: b
              - name: a
        """)
        assert load_stack(path).deployment_order() == ["b", "a"]

    def test_missing(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_stack(tmp_path / "hub.yaml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "hub.yaml"
        path.write_text("meta: [unclosed")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_stack(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "hub.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_stack(path)

    def test_wrong_kind(self, tmp_path: Path, write_file):
        path = write_file(tmp_path / "hub.yaml", """\
            kind: component
            meta: {name: s}
        """)
        with pytest.raises(ConfigError, match="expected `stack`"):
            load_stack(path)

    def test_validation_error(self, tmp_path: Path, write_file):
        path = write_file(tmp_path / "hub.yaml", """\
            components: []
        """)
        with pytest.raises(ConfigError, match="Invalid stack manifest"):
            load_stack(path)


class TestLoadComponent:
    def test_from_directory(self, stack_dir: Path):
        manifest = load_component(stack_dir / "components" / "app")
        assert manifest.name == "app"
        assert manifest.requires == ["kubernetes", "vault"]
        assert manifest.templates.files == ["values.yaml"]
        assert manifest.templates.kind == ""

    def test_components_loaded_with_defaults(self, stack_dir: Path, write_file):
        stack = load_stack(stack_dir / "hub.yaml")
        (stack_dir / "components" / "cluster" / "hub-component.yaml").unlink()
        manifests = load_components(stack, stack_dir)
        assert manifests["cluster"].provides == []
        assert manifests["app"].parameters[0].name == "image"

    def test_name_mismatch_uses_stack_name(self, stack_dir: Path, write_file, caplog):
        write_file(stack_dir / "components" / "cluster" / "hub-component.yaml", """\
            meta: {name: eks}
        """)
        stack = load_stack(stack_dir / "hub.yaml")
        with caplog.at_level(logging.WARNING):
            manifests = load_components(stack, stack_dir)
        assert manifests["cluster"].name == "cluster"
        assert "declares name `eks`" in caplog.text

    def test_custom_source_dir(self, tmp_path: Path, write_file):
        write_file(tmp_path / "hub.yaml", """\
            meta: {name: s}
            components:
              - name: db
                source: {dir: infra/postgres}
        """)
        write_file(tmp_path / "infra/postgres/hub-component.yaml", """\
            meta: {name: db}
            provides: [postgresql]
        """)
        manifests = load_components(load_stack(tmp_path / "hub.yaml"), tmp_path)
        assert manifests["db"].provides == ["postgresql"]


class TestLocateStack:
    def test_explicit(self, tmp_path: Path):
        assert locate_stack(tmp_path / "x.yaml") == tmp_path / "x.yaml"

    def test_none_found(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr("stackhub.core.config.loader.find_stack_file", lambda: None)
        with pytest.raises(ConfigError, match="No hub.yaml found"):
            locate_stack()


class TestEnvForce:
    @pytest.mark.parametrize("value", ["1", "true", "YES", "on"])
    def test_truthy(self, monkeypatch, value):
        monkeypatch.setenv("HUB_FORCE", value)
        assert env_force()

    def test_unset(self, monkeypatch):
        monkeypatch.delenv("HUB_FORCE", raising=False)
        assert not env_force()
