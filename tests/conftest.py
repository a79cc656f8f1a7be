"""Pytest configuration and fixtures."""

import json
import shutil
import subprocess
from pathlib import Path

import pytest

from eb_deploy.config import Settings
from eb_deploy.models.config import DeployFolders
from eb_deploy.models.deployment import DeployTarget

COMMIT_HASH = "ab5e9e3a4959bc91adfa3028b09226e47331504d"

DOCKERRUN_TEMPLATE = """{
  "AWSEBDockerrunVersion": "1",
  "Image": {
    "Name": "testapp/web{{TAG}}",
    "Update": "true"
  },
  "Ports": [
    {
      "ContainerPort": "8080"
    }
  ]
}
"""

DEPLOY_CREDENTIALS = {
    "awsCredentials": {
        "accessKeyId": "AKIAEXAMPLEEXAMPLE",
        "secretAccessKey": "example-secret-access-key",
    }
}

DEPLOY_CONFIG = {
    "region": "us-east-1",
    "s3Bucket": "my-bucket",
    "ebApplications": [
        {
            "name": "web",
            "ebApplicationName": "testapp-web",
            "ebEnvironments": [
                {
                    "name": "production",
                    "ebEnvironmentName": "testapp-web-production",
                    "ebEnvironmentId": "e-prod1234",
                    "gitBranch": "master",
                },
                {
                    "name": "staging",
                    "ebEnvironmentName": "testapp-web-staging",
                    "ebEnvironmentId": "e-stag1234",
                    "gitBranch": "master",
                },
            ],
        },
        {
            "name": "web-with-tag",
            "ebApplicationName": "testapp-web-with-tag",
            "ebEnvironments": [
                {
                    "name": "production",
                    "ebEnvironmentName": "testapp-web-with-tag-production",
                    "ebEnvironmentId": "e-prod5678",
                },
                {
                    "name": "staging",
                    "ebEnvironmentName": "testapp-web-with-tag-staging",
                    "ebEnvironmentId": "e-stag5678",
                    "gitBranch": "master",
                },
            ],
        },
    ],
}


def run_git(repo: Path, *args: str) -> str:
    """Run a git command in ``repo`` and return its stdout."""
    result = subprocess.run(
        [
            "git",
            "-c", "user.name=John Doe",
            "-c", "user.email=john.doe@example.com",
            "-c", "commit.gpgsign=false",
            *args,
        ],
        cwd=repo,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout.strip()


@pytest.fixture
def settings() -> Settings:
    """Settings without any settle delay."""
    return Settings(settle_seconds=0, readiness_strategy="fixed", pre_hook=None)


@pytest.fixture
def apps_dir(tmp_path: Path) -> Path:
    """Template folders for the configured applications."""
    apps = tmp_path / "apps"
    for app_name in ("web", "web-with-tag"):
        app_dir = apps / app_name
        app_dir.mkdir(parents=True)
        (app_dir / "Dockerrun.aws.json").write_text(DOCKERRUN_TEMPLATE)
    return apps


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Config folder holding deployCredentials.json and deployConfig.json."""
    config = tmp_path / "config"
    config.mkdir()
    (config / "deployCredentials.json").write_text(json.dumps(DEPLOY_CREDENTIALS))
    (config / "deployConfig.json").write_text(json.dumps(DEPLOY_CONFIG))
    return config


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """A throwaway git repository with one commit on master."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")

    repo = tmp_path / "repo"
    repo.mkdir()
    run_git(repo, "init", "--quiet")
    run_git(repo, "symbolic-ref", "HEAD", "refs/heads/master")
    (repo / "README.txt").write_text("deploy me\n")
    run_git(repo, "add", "README.txt")
    run_git(repo, "commit", "--quiet", "-m", "Initial commit")
    return repo


@pytest.fixture
def folders(config_dir: Path, apps_dir: Path, tmp_path: Path) -> DeployFolders:
    """Deploy folders; the git root has no repository unless git_repo is used."""
    return DeployFolders(
        config=str(config_dir),
        apps=str(apps_dir),
        git_root=str(tmp_path / "repo"),
    )


@pytest.fixture
def target() -> DeployTarget:
    """A target deploying web-with-tag to staging from master."""
    return DeployTarget(
        region="us-east-1",
        s3_bucket="my-bucket",
        app_name="web-with-tag",
        eb_application_name="testapp-web",
        env_name="staging",
        eb_environment_name="testapp-web-staging",
        eb_environment_id="e-adsfnk32",
        git_branch="master",
    )
