"""Unit tests for data models."""

import pytest
from pydantic import ValidationError

from eb_deploy.config import Settings
from eb_deploy.models.config import DeployConfig, DeployCredentials
from eb_deploy.models.deployment import (
    ArtifactDescriptor,
    DeployOutcome,
    DeployRequest,
    DeployStatus,
    DeployTarget,
    StageStatus,
)
from tests.conftest import COMMIT_HASH, DEPLOY_CONFIG, DEPLOY_CREDENTIALS


class TestArtifactDescriptor:
    """Tests for ArtifactDescriptor."""

    def test_for_commit(self):
        """Test key and label derivation."""
        artifact = ArtifactDescriptor.for_commit("testapp-web", COMMIT_HASH)

        assert artifact.commit_hash == COMMIT_HASH
        assert artifact.version_label == f"app-{COMMIT_HASH}"
        assert artifact.s3_key == f"testapp-web/app-{COMMIT_HASH}.zip"

    def test_for_commit_is_pure(self):
        """Test the same inputs always give the same descriptor."""
        first = ArtifactDescriptor.for_commit("testapp-web", COMMIT_HASH)
        second = ArtifactDescriptor.for_commit("testapp-web", COMMIT_HASH)

        assert first == second
        assert first.s3_key == second.s3_key
        assert first.version_label == second.version_label

    def test_for_commit_differs_per_application(self):
        """Test the key is namespaced by application."""
        web = ArtifactDescriptor.for_commit("testapp-web", COMMIT_HASH)
        api = ArtifactDescriptor.for_commit("testapp-api", COMMIT_HASH)

        assert web.version_label == api.version_label
        assert web.s3_key != api.s3_key


class TestDeployTarget:
    """Tests for DeployTarget."""

    def test_dashboard_url(self, target: DeployTarget):
        """Test the console link points at the environment."""
        assert target.dashboard_url == (
            "https://console.aws.amazon.com/elasticbeanstalk/home?region=us-east-1"
            "#/environment/dashboard?applicationName=testapp-web&environmentId=e-adsfnk32"
        )

    def test_target_is_immutable(self, target: DeployTarget):
        """Test targets cannot be changed after construction."""
        with pytest.raises(ValidationError):
            target.commit_hash = COMMIT_HASH


class TestDeployRequest:
    """Tests for DeployRequest."""

    def test_defaults(self):
        request = DeployRequest(app_names=["web"], env_name="production")

        assert request.commit_hash is None
        assert request.run_pre_hook is False

    def test_requires_an_application(self):
        with pytest.raises(ValidationError):
            DeployRequest(app_names=[], env_name="production")


class TestConfigModels:
    """Tests for the JSON configuration models."""

    def test_parse_camel_case_config(self):
        """Test deployConfig.json keys map to model fields."""
        config = DeployConfig.model_validate(DEPLOY_CONFIG)

        assert config.region == "us-east-1"
        assert config.s3_bucket == "my-bucket"
        assert [app.name for app in config.eb_applications] == ["web", "web-with-tag"]

        web = config.eb_applications[0]
        assert web.eb_application_name == "testapp-web"
        assert web.eb_environments[0].eb_environment_id == "e-prod1234"
        assert web.eb_environments[0].git_branch == "master"

    def test_git_branch_is_optional(self):
        config = DeployConfig.model_validate(DEPLOY_CONFIG)

        env = config.eb_applications[1].eb_environments[0]
        assert env.git_branch is None

    def test_parse_credentials(self):
        credentials = DeployCredentials.model_validate(DEPLOY_CREDENTIALS)

        assert credentials.aws_credentials.access_key_id == "AKIAEXAMPLEEXAMPLE"
        assert credentials.aws_credentials.secret_access_key == "example-secret-access-key"

    def test_missing_field_fails(self):
        with pytest.raises(ValidationError):
            DeployConfig.model_validate({"region": "us-east-1"})


class TestDeployOutcome:
    """Tests for DeployOutcome stage tracking."""

    def test_stage_timing(self):
        outcome = DeployOutcome(app_name="web", env_name="staging")

        outcome.update_stage("upload", StageStatus.IN_PROGRESS)
        assert outcome.current_stage == "upload"
        assert outcome.stages["upload"].started_at is not None

        outcome.update_stage("upload", StageStatus.COMPLETED, metadata={"s3_key": "k"})
        stage = outcome.stages["upload"]
        assert stage.status == StageStatus.COMPLETED
        assert stage.duration_ms is not None
        assert stage.metadata == {"s3_key": "k"}

    def test_failed_stage_fails_outcome(self):
        outcome = DeployOutcome(
            app_name="web", env_name="staging", status=DeployStatus.IN_PROGRESS
        )

        outcome.update_stage("create_version", StageStatus.IN_PROGRESS)
        outcome.update_stage("create_version", StageStatus.FAILED, error="boom")

        assert outcome.status == DeployStatus.FAILED
        assert outcome.error == "boom"
        assert outcome.error_stage == "create_version"
        assert outcome.succeeded is False


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("EB_DEPLOY_READINESS_STRATEGY", raising=False)
        monkeypatch.delenv("EB_DEPLOY_SETTLE_SECONDS", raising=False)

        settings = Settings(_env_file=None)

        assert settings.settle_seconds == 10.0
        assert settings.template_name == "Dockerrun.aws.json"
        assert settings.tag_placeholder == "{{TAG}}"
        assert settings.polls_for_readiness is False

    def test_environment_prefix(self, monkeypatch):
        monkeypatch.setenv("EB_DEPLOY_READINESS_STRATEGY", "poll")
        monkeypatch.setenv("EB_DEPLOY_POLL_TIMEOUT_SECONDS", "42")

        settings = Settings(_env_file=None)

        assert settings.polls_for_readiness is True
        assert settings.poll_timeout_seconds == 42

    def test_negative_settle_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, settle_seconds=-1)
