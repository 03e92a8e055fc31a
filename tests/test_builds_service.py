"""Tests for builds/service.py module.

Tests the full build-decision pipeline with a recording application
factory in place of the layer framework.
"""

import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from maven_buildpack.builds.layers import ApplicationLayer, CacheLayer
from maven_buildpack.builds.models import (
    Binding,
    BuildConfiguration,
    DistributionDescriptor,
)
from maven_buildpack.builds.service import BuildError, MavenBuild
from maven_buildpack.builds.settings import SettingsResolutionError
from maven_buildpack.types import DistributionId

STACK = "test-stack-id"
SETTINGS_HASH = "cc784f356a8efb8e138b99aabe8b1c813a3e921b059c48a0b39b2497a2c478c5"
SECURITY_HASH = "91dff74ef3ab7f5ccb5808b32c30d2ab35b9f699d9a613c05a7f45eb83dd4c3a"

MAVEN = DistributionDescriptor(
    id=DistributionId.MAVEN,
    version="3.9.6",
    stacks=(STACK,),
    cpes=("cpe:2.3:a:apache:maven:3.9.6:*:*:*:*:*:*:*",),
    purl="pkg:generic/apache-maven@3.9.6",
)
MVND = DistributionDescriptor(id=DistributionId.MVND, version="1.0.0", stacks=(STACK,))


class FakeApplicationFactory:
    """Records calls and returns a plain ApplicationLayer."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[dict] = []

    def new_application(self, metadata, arguments, command, cache):
        self.calls.append(
            {
                "metadata": metadata,
                "arguments": arguments,
                "command": command,
                "cache": cache,
            }
        )
        if self.error is not None:
            raise self.error
        return ApplicationLayer(
            command=command, arguments=arguments, metadata=metadata, cache=cache
        )


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Application directory."""
    path = tmp_path / "workspace"
    path.mkdir()
    return path


@pytest.fixture
def layers(tmp_path: Path) -> Path:
    """Layers directory."""
    path = tmp_path / "layers"
    path.mkdir()
    return path


@pytest.fixture
def factory() -> FakeApplicationFactory:
    """Recording application factory."""
    return FakeApplicationFactory()


def make_configuration(workspace: Path, layers: Path, **kwargs) -> BuildConfiguration:
    """Create a BuildConfiguration with both distributions declared."""
    kwargs.setdefault("build_arguments", "test-argument")
    kwargs.setdefault("distributions", (MAVEN, MVND))
    kwargs.setdefault("stack_id", STACK)
    kwargs.setdefault("tty", True)
    return BuildConfiguration(application_path=workspace, layers_path=layers, **kwargs)


def make_binding(tmp_path: Path, security: bool = False) -> Binding:
    """Create a maven binding under <platform>/bindings/some-maven."""
    path = tmp_path / "platform" / "bindings" / "some-maven"
    path.mkdir(parents=True)
    (path / "type").write_text("maven")
    (path / "settings.xml").write_text("maven-settings-content")
    secret = {"settings.xml": "maven-settings-content"}
    if security:
        (path / "settings-security.xml").write_text("maven-settings-security-content")
        secret["settings-security.xml"] = "maven-settings-security-content"
    return Binding(name="some-maven", type="maven", path=path, secret=secret)


class TestMavenBuildCommand:
    """Tests for the executable chosen to run the build."""

    def test_maven_distribution(self, workspace, layers, factory):
        """Without a wrapper the maven distribution should run the build."""
        result = MavenBuild(factory).build(make_configuration(workspace, layers))

        assert result.layer_names == ["maven", "cache", "application"]
        assert factory.calls[0]["command"] == str(layers / "maven" / "bin/mvn")
        assert factory.calls[0]["arguments"] == ["test-argument"]
        assert factory.calls[0]["metadata"] == {}
        assert isinstance(factory.calls[0]["cache"], CacheLayer)
        assert [entry.name for entry in result.bom] == ["maven"]

    def test_wrapper(self, workspace, layers, factory):
        """A wrapper should run the build with no distribution staged."""
        (workspace / "mvnw").write_text("test")

        result = MavenBuild(factory).build(make_configuration(workspace, layers))

        assert result.layer_names == ["cache", "application"]
        assert result.bom == []
        assert factory.calls[0]["command"] == str(workspace / "mvnw")
        assert stat.S_IMODE((workspace / "mvnw").stat().st_mode) == 0o755

    def test_wrapper_crlf(self, workspace, layers, factory):
        """The wrapper should be converted to LF line endings."""
        (workspace / "mvnw").write_bytes(b"test\r\n")

        result = MavenBuild(factory).build(make_configuration(workspace, layers))

        assert (workspace / "mvnw").read_bytes() == b"test\n"
        assert result.wrapper is not None
        assert result.wrapper.converted is True

    @pytest.mark.skipif(not os.path.exists("/dev/null"), reason="needs /dev/null")
    def test_wrapper_special_file(self, workspace, layers, factory):
        """A wrapper that is not a regular file should be used as-is."""
        (workspace / "mvnw").symlink_to("/dev/null")
        mode_before = os.stat("/dev/null").st_mode

        result = MavenBuild(factory).build(make_configuration(workspace, layers))

        assert os.stat("/dev/null").st_mode == mode_before
        assert result.layer_names == ["cache", "application"]
        assert result.wrapper is not None
        assert not result.wrapper.ok

    def test_wrapper_chmod_failure(self, workspace, layers, factory):
        """A failed mode change should not fail the build or alter the mode."""
        wrapper = workspace / "mvnw"
        wrapper.write_bytes(b"test\r\n")
        wrapper.chmod(0o644)

        with patch.object(Path, "chmod", side_effect=PermissionError("denied")):
            result = MavenBuild(factory).build(make_configuration(workspace, layers))

        assert result.layer_names == ["cache", "application"]
        assert factory.calls[0]["command"] == str(wrapper)
        assert wrapper.read_bytes() == b"test\n"
        assert stat.S_IMODE(wrapper.stat().st_mode) == 0o644
        assert result.wrapper is not None
        assert result.wrapper.executable is False

    def test_daemon(self, workspace, layers, factory):
        """Daemon mode should stage and run mvnd."""
        configuration = make_configuration(workspace, layers, daemon_enabled=True)

        result = MavenBuild(factory).build(configuration)

        assert result.layer_names == ["mvnd", "cache", "application"]
        assert factory.calls[0]["command"] == str(layers / "mvnd" / "bin/mvnd")

    def test_pom_file(self, workspace, layers, factory):
        """The POM override should lead the arguments."""
        configuration = make_configuration(
            workspace, layers, pom_file="foo/bar/pom.xml"
        )

        MavenBuild(factory).build(configuration)

        assert factory.calls[0]["arguments"][0:2] == ["--file", "foo/bar/pom.xml"]

    def test_batch_mode_without_tty(self, workspace, layers, factory):
        """Batch mode should be added outside a terminal."""
        configuration = make_configuration(workspace, layers, tty=False)

        MavenBuild(factory).build(configuration)

        assert factory.calls[0]["arguments"] == ["--batch-mode", "test-argument"]


class TestMavenBuildSettings:
    """Tests for settings handling in the build."""

    def test_binding(self, tmp_path, workspace, layers, factory):
        """A maven binding should add --settings and its hash."""
        binding = make_binding(tmp_path)
        configuration = make_configuration(workspace, layers, bindings=(binding,))

        MavenBuild(factory).build(configuration)

        call = factory.calls[0]
        assert call["arguments"] == [
            f"--settings={tmp_path}/platform/bindings/some-maven/settings.xml",
            "test-argument",
        ]
        assert call["metadata"] == {"settings-sha256": SETTINGS_HASH}

    def test_binding_with_security(self, tmp_path, workspace, layers, factory):
        """settings-security.xml should come first in the arguments."""
        binding = make_binding(tmp_path, security=True)
        configuration = make_configuration(workspace, layers, bindings=(binding,))

        MavenBuild(factory).build(configuration)

        call = factory.calls[0]
        bindings_dir = tmp_path / "platform" / "bindings" / "some-maven"
        assert call["arguments"] == [
            f"-Dsettings.security={bindings_dir}/settings-security.xml",
            f"--settings={bindings_dir}/settings.xml",
            "test-argument",
        ]
        assert call["metadata"] == {
            "settings-sha256": SETTINGS_HASH,
            "settings-security-sha256": SECURITY_HASH,
        }

    def test_binding_wins_over_settings_path(
        self, tmp_path, workspace, layers, factory
    ):
        """The binding should shadow the settings path."""
        (workspace / "settings.xml").write_text("other")
        binding = make_binding(tmp_path)
        configuration = make_configuration(
            workspace,
            layers,
            bindings=(binding,),
            settings_path=str(workspace / "settings.xml"),
        )

        MavenBuild(factory).build(configuration)

        assert factory.calls[0]["metadata"] == {"settings-sha256": SETTINGS_HASH}

    def test_settings_path(self, workspace, layers, factory):
        """A settings path should be passed through and hashed."""
        settings_file = workspace / "settings.xml"
        settings_file.write_text("maven-settings-content")
        configuration = make_configuration(
            workspace, layers, settings_path=str(settings_file)
        )

        MavenBuild(factory).build(configuration)

        call = factory.calls[0]
        assert call["arguments"][0] == f"--settings={settings_file}"
        assert call["metadata"] == {"settings-sha256": SETTINGS_HASH}

    def test_unreadable_settings_path(self, workspace, layers, factory):
        """An unreadable settings path should fail without layers."""
        configuration = make_configuration(
            workspace, layers, settings_path=str(workspace / "missing.xml")
        )

        with pytest.raises(SettingsResolutionError):
            MavenBuild(factory).build(configuration)
        assert factory.calls == []


class TestMavenBuildPlan:
    """Tests for plan-driven staging."""

    def test_stage_only(self, workspace, layers, factory):
        """run-build=false should stage maven and the cache only."""
        configuration = make_configuration(
            workspace,
            layers,
            distributions=(MAVEN,),
            run_build=False,
            plan_entry_present=True,
        )

        result = MavenBuild(factory).build(configuration)

        assert result.layer_names == ["maven", "cache"]
        assert result.application is None
        assert factory.calls == []
        assert result.to_dict()["command"] is None

    def test_stage_only_without_plan_entry(self, workspace, layers, factory):
        """A stage-only configuration should stage even without a plan entry."""
        configuration = make_configuration(
            workspace, layers, distributions=(MAVEN,), run_build=False
        )

        result = MavenBuild(factory).build(configuration)

        assert result.layer_names == ["maven", "cache"]
        assert len(result.bom) == 1
        assert factory.calls == []

    def test_stage_only_leaves_wrapper(self, workspace, layers, factory):
        """A stage-only run should not touch the wrapper."""
        (workspace / "mvnw").write_bytes(b"test\r\n")
        configuration = make_configuration(
            workspace,
            layers,
            distributions=(MAVEN,),
            run_build=False,
            plan_entry_present=True,
        )

        result = MavenBuild(factory).build(configuration)

        assert result.wrapper is None
        assert (workspace / "mvnw").read_bytes() == b"test\r\n"

    def test_plan_with_daemon(self, workspace, layers, factory):
        """A plan entry should stage both distributions and run mvnd."""
        configuration = make_configuration(
            workspace,
            layers,
            daemon_enabled=True,
            plan_entry_present=True,
            command="mvnd",
        )

        result = MavenBuild(factory).build(configuration)

        assert result.layer_names == ["maven", "mvnd", "cache", "application"]
        assert len(result.bom) == 2
        assert factory.calls[0]["command"] == str(layers / "mvnd" / "bin/mvnd")


class TestMavenBuildBom:
    """Tests for BOM entries."""

    def test_sbom_fields(self, workspace, layers, factory):
        """API 0.7 should include CPEs and PURL."""
        result = MavenBuild(factory).build(make_configuration(workspace, layers))
        assert result.bom[0].metadata["purl"] == MAVEN.purl

    def test_older_api(self, workspace, layers, factory):
        """Older APIs should omit CPEs and PURL."""
        configuration = make_configuration(workspace, layers, api="0.6")
        result = MavenBuild(factory).build(configuration)
        assert "purl" not in result.bom[0].metadata
        assert "cpes" not in result.bom[0].metadata


class TestMavenBuildErrors:
    """Tests for error propagation."""

    def test_factory_os_error(self, workspace, layers):
        """An OSError from the factory should become a BuildError."""
        factory = FakeApplicationFactory(error=OSError("disk full"))

        with pytest.raises(BuildError) as exc_info:
            MavenBuild(factory).build(make_configuration(workspace, layers))
        assert exc_info.value.code == "layer_error"

    def test_result_to_dict(self, workspace, layers, factory):
        """to_dict should expose command and arguments."""
        result = MavenBuild(factory).build(make_configuration(workspace, layers))
        data = result.to_dict()

        assert [layer["name"] for layer in data["layers"]] == [
            "maven",
            "cache",
            "application",
        ]
        assert data["command"] == str(layers / "maven" / "bin/mvn")
        assert data["arguments"] == ["test-argument"]
        assert data["bom"][0]["name"] == "maven"
