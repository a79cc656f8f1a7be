"""Builds a DeployService from the config folder.

The config folder holds ``deployCredentials.json`` and ``deployConfig.json``.
"""

import importlib
import json
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from eb_deploy.config import Settings, settings as default_settings
from eb_deploy.core.exceptions import ConfigurationError
from eb_deploy.models.config import DeployConfig, DeployCredentials, DeployFolders
from eb_deploy.services.deploy import DeployService, PreDeployHook
from eb_deploy.utils.logging import get_logger

CREDENTIALS_FILE = "deployCredentials.json"
CONFIG_FILE = "deployConfig.json"

ModelT = TypeVar("ModelT", bound=BaseModel)

logger = get_logger(__name__)


def _load_json_model(path: Path, model: type[ModelT]) -> ModelT:
    if not path.is_file():
        raise ConfigurationError(
            f"Invalid configuration: {path} not found",
            {"path": str(path)},
        )

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid configuration: {path} is not valid JSON: {e}",
            {"path": str(path)},
        ) from e

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {path} failed validation: {e}",
            {"path": str(path), "errors": e.errors(include_url=False)},
        ) from e


def load_deploy_credentials(config_dir: str | Path) -> DeployCredentials:
    """Load and validate deployCredentials.json."""
    return _load_json_model(Path(config_dir) / CREDENTIALS_FILE, DeployCredentials)


def load_deploy_config(config_dir: str | Path) -> DeployConfig:
    """Load and validate deployConfig.json."""
    return _load_json_model(Path(config_dir) / CONFIG_FILE, DeployConfig)


def default_folders(settings: Settings | None = None) -> DeployFolders:
    """Deploy folders taken from settings."""
    settings = settings or default_settings
    return DeployFolders(
        config=settings.config_dir,
        apps=settings.apps_dir,
        git_root=settings.git_root,
    )


def load_pre_hook(path: str) -> PreDeployHook:
    """Import a pre-deploy hook given as ``package.module:function``."""
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigurationError(
            f"Invalid pre-deploy hook {path} - Must be in format module:function",
            {"pre_hook": path},
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(
            f"Unable to import pre-deploy hook module {module_name}: {e}",
            {"pre_hook": path},
        ) from e

    hook = getattr(module, attr, None)
    if not callable(hook):
        raise ConfigurationError(
            f"Pre-deploy hook {path} is not a callable",
            {"pre_hook": path},
        )
    return hook


def create_deploy_service(
    folders: DeployFolders | None = None,
    pre_hook: PreDeployHook | None = None,
    settings: Settings | None = None,
) -> DeployService:
    """Create a DeployService from the config folder.

    Args:
        folders: Config, apps and git root folders; defaults come from settings
        pre_hook: Hook run before deploying when the request asks for it.
            Falls back to the hook named in settings.
        settings: Settings override

    Raises:
        ConfigurationError: If a config file is missing or invalid
    """
    settings = settings or default_settings
    folders = folders or default_folders(settings)

    credentials = load_deploy_credentials(folders.config)
    config = load_deploy_config(folders.config)

    if pre_hook is None and settings.pre_hook:
        pre_hook = load_pre_hook(settings.pre_hook)

    logger.debug(
        "deploy_service.created",
        config_dir=folders.config,
        applications=[app.name for app in config.eb_applications],
    )
    return DeployService(credentials, config, folders, pre_hook=pre_hook, settings=settings)
