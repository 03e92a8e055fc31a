"""Shared fixtures for maven_buildpack tests."""

import os

import pytest

from maven_buildpack.types import DistributionId


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove buildpack variables inherited from the calling shell."""
    for name in list(os.environ):
        if name.upper().startswith("BP_MAVEN_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("BP_LOG_LEVEL", raising=False)
    monkeypatch.delenv("SERVICE_BINDING_ROOT", raising=False)
    monkeypatch.delenv("CNB_STACK_ID", raising=False)


@pytest.fixture
def buildpack_document() -> dict:
    """buildpack.toml contents declaring both distributions."""
    return {
        "api": "0.7",
        "metadata": {
            "configurations": [
                {"name": "BP_MAVEN_BUILD_ARGUMENTS", "default": "test-argument"},
                {"name": "BP_MAVEN_POM_FILE", "default": ""},
            ],
            "dependencies": [
                {
                    "id": DistributionId.MAVEN.value,
                    "version": "3.9.6",
                    "name": "Apache Maven",
                    "uri": "https://example.com/maven-3.9.6.tar.gz",
                    "sha256": "a" * 64,
                    "stacks": ["test-stack-id"],
                    "cpes": ["cpe:2.3:a:apache:maven:3.9.6:*:*:*:*:*:*:*"],
                    "purl": "pkg:generic/apache-maven@3.9.6",
                },
                {
                    "id": DistributionId.MVND.value,
                    "version": "1.0.0",
                    "name": "Maven Daemon",
                    "uri": "https://example.com/mvnd-1.0.0.zip",
                    "sha256": "b" * 64,
                    "stacks": ["test-stack-id"],
                },
            ],
        },
    }
