"""
Tests for CLI utility functions.
"""

from argparse import Namespace

import pytest

from reprotokit.cli.utils import (
    create_provisioner,
    find_config_file,
    get_project_root,
    load_project_config,
    provisioning_overrides,
)
from reprotokit.core.exceptions import ConfigError
from reprotokit.releases.github import GithubReleaseClient


def make_args(project_root, **kwargs):
    values = {"project_root": project_root, "config": None}
    values.update(kwargs)
    return Namespace(**values)


class TestFindConfigFile:
    """Test find_config_file()."""

    def test_default_location(self, temp_dir):
        config = temp_dir / "reprotokit.yaml"
        config.write_text("version: 1\n")

        assert find_config_file(make_args(temp_dir)) == config

    def test_no_config(self, temp_dir):
        """Test a missing default config is optional."""
        assert find_config_file(make_args(temp_dir)) is None

    def test_explicit_config(self, temp_dir):
        config = temp_dir / "other.yaml"
        config.write_text("version: 1\n")

        assert find_config_file(make_args(temp_dir, config=config)) == config

    def test_explicit_config_missing(self, temp_dir):
        """Test a missing --config file is an error."""
        with pytest.raises(ConfigError, match="not found"):
            find_config_file(make_args(temp_dir, config=temp_dir / "missing.yaml"))


class TestLoadProjectConfig:
    """Test load_project_config()."""

    def test_file_with_overrides(self, temp_dir):
        """Test command line values replace file values."""
        (temp_dir / "reprotokit.yaml").write_text(
            "version: 1\noutput: gen\ntargets: [io.file]\n"
        )

        config = load_project_config(make_args(temp_dir), {"targets": ["io.cli"]})

        assert config.targets == ["io.cli"]
        assert config.output == temp_dir.absolute() / "gen"

    def test_without_file(self, temp_dir):
        """Test command line options alone can configure a run."""
        config = load_project_config(
            make_args(temp_dir), {"output": "gen", "targets": ["io.demo"]}
        )

        assert config.targets == ["io.demo"]

    def test_without_file_missing_required(self, temp_dir):
        with pytest.raises(ConfigError, match="output"):
            load_project_config(make_args(temp_dir), {})

    def test_without_compile_fields(self, temp_dir):
        config = load_project_config(make_args(temp_dir), {}, require_compile=False)

        assert config.output is None


class TestProvisioning:
    """Test provisioning helpers."""

    def test_provisioning_overrides(self, temp_dir):
        args = make_args(
            temp_dir,
            executable=None,
            artifact="g:a:1.0",
            version_constraint="0.4",
            backend=None,
            download_url=None,
        )

        overrides = provisioning_overrides(args)

        assert overrides["artifact"] == "g:a:1.0"
        assert overrides["version_constraint"] == "0.4"
        assert overrides["backend"] is None

    def test_provisioning_overrides_missing_attributes(self, temp_dir):
        """Test commands without provisioning options yield all None."""
        assert set(provisioning_overrides(make_args(temp_dir)).values()) == {None}

    def test_create_provisioner(self, temp_dir):
        config = load_project_config(
            make_args(temp_dir),
            {"backend": "github", "cache_dir": str(temp_dir / "cache")},
            require_compile=False,
        )

        provisioner = create_provisioner(config)

        assert isinstance(provisioner.release_client, GithubReleaseClient)
        assert provisioner.environment.cache_root == temp_dir.absolute() / "cache"
        assert provisioner.plugins_dir == temp_dir.absolute() / ".reprotokit" / "plugins"

    def test_get_project_root_default(self, temp_dir, monkeypatch):
        monkeypatch.chdir(temp_dir)

        assert get_project_root(Namespace()).resolve() == temp_dir.resolve()
