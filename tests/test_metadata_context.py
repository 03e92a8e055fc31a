"""Tests for metadata/context.py module."""

from pathlib import Path

from maven_buildpack.builds.models import Binding
from maven_buildpack.config import Settings
from maven_buildpack.metadata.context import (
    create_build_configuration,
    settings_for_buildpack,
)
from maven_buildpack.metadata.schema import BuildpackSchema, BuildPlanSchema
from maven_buildpack.types import DistributionId


class TestSettingsForBuildpack:
    """Tests for settings_for_buildpack function."""

    def test_buildpack_defaults(self, buildpack_document):
        """Buildpack configuration defaults should apply."""
        buildpack = BuildpackSchema.model_validate(buildpack_document)
        settings = settings_for_buildpack(buildpack)
        assert settings.build_arguments == "test-argument"

    def test_env_overrides_buildpack(self, buildpack_document, monkeypatch):
        """Environment should win over buildpack defaults."""
        monkeypatch.setenv("BP_MAVEN_BUILD_ARGUMENTS", "from-env")
        buildpack = BuildpackSchema.model_validate(buildpack_document)
        settings = settings_for_buildpack(buildpack)
        assert settings.build_arguments == "from-env"


class TestCreateBuildConfiguration:
    """Tests for create_build_configuration function."""

    def test_without_plan(self, tmp_path, buildpack_document):
        """Without a plan the build should run immediately."""
        buildpack = BuildpackSchema.model_validate(buildpack_document)

        configuration = create_build_configuration(
            application_path=tmp_path / "workspace",
            layers_path=tmp_path / "layers",
            buildpack=buildpack,
            stack_id="test-stack-id",
        )

        assert configuration.run_build is True
        assert configuration.plan_entry_present is False
        assert configuration.build_arguments == "test-argument"
        assert configuration.stack_id == "test-stack-id"
        assert configuration.api == "0.7"
        assert [d.id for d in configuration.distributions] == [
            DistributionId.MAVEN,
            DistributionId.MVND,
        ]

    def test_with_plan(self, tmp_path, buildpack_document):
        """The maven plan entry should drive run-build and command."""
        buildpack = BuildpackSchema.model_validate(buildpack_document)
        plan = BuildPlanSchema.model_validate(
            {
                "entries": [
                    {
                        "name": "maven",
                        "metadata": {"run-build": False, "command": "mvnd"},
                    }
                ]
            }
        )

        configuration = create_build_configuration(
            application_path=tmp_path,
            layers_path=tmp_path / "layers",
            buildpack=buildpack,
            plan=plan,
        )

        assert configuration.run_build is False
        assert configuration.plan_entry_present is True
        assert configuration.command == "mvnd"

    def test_explicit_settings(self, tmp_path):
        """Explicit settings should be used as given."""
        settings = Settings(
            build_arguments="clean package",
            pom_file="foo/bar/pom.xml",
            daemon_enabled=True,
            version="3.8",
        )

        configuration = create_build_configuration(
            application_path=tmp_path,
            layers_path=tmp_path / "layers",
            buildpack=BuildpackSchema(),
            settings=settings,
            tty=True,
        )

        assert configuration.build_arguments == "clean package"
        assert configuration.pom_file == "foo/bar/pom.xml"
        assert configuration.daemon_enabled is True
        assert configuration.version_constraint == "3.8"
        assert configuration.tty is True

    def test_keeps_only_maven_bindings(self, tmp_path):
        """Bindings of other types should be dropped."""
        bindings = [
            Binding(name="db", type="postgresql", path=Path("/b/db")),
            Binding(name="some-maven", type="maven", path=Path("/b/some-maven")),
        ]

        configuration = create_build_configuration(
            application_path=tmp_path,
            layers_path=tmp_path / "layers",
            buildpack=BuildpackSchema(),
            bindings=bindings,
        )

        assert [b.name for b in configuration.bindings] == ["some-maven"]
