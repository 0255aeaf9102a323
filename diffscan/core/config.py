"""
Configuration
=============
Loads environment variables from .env file using python-dotenv, and the
repository scan config from the checked-out workspace.

Environment Variables:
    NIGHTFALL_API_KEY        — Nightfall API key used for /scan requests
    NIGHTFALL_GITHUB_TOKEN   — GitHub token for check runs and PR comments
    NIGHTFALL_API_URL        — Override for the Nightfall scan endpoint
    GITHUB_API_URL           — Override for the GitHub REST base URL
    GITHUB_ACTIONS           — "true" when running inside GitHub Actions
    GITHUB_WORKSPACE         — Checked-out repository root
    GITHUB_EVENT_PATH        — Webhook event JSON written by GitHub Actions
    CIRCLECI                 — "true" when running inside CircleCI
    CIRCLE_PROJECT_USERNAME  — Repository owner (CircleCI)
    CIRCLE_PROJECT_REPONAME  — Repository name (CircleCI)
    CIRCLE_SHA1              — Commit under test (CircleCI)
    CIRCLE_PULL_REQUEST      — Pull request URL (CircleCI)
    EVENT_BEFORE             — Commit the previous run checked (CircleCI)

Repository Config:
    .nightfalldlp/config.json at the workspace root. Parsed with
    yaml.safe_load, so both JSON and YAML spellings are accepted.
"""
import os
import logging

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from diffscan.core.constants import CONFIG_FILE_NAME
from diffscan.core.errors import ConfigError
from diffscan.models.scan_config import ScanConfig

load_dotenv()

logger = logging.getLogger(__name__)

NIGHTFALL_API_KEY = os.getenv("NIGHTFALL_API_KEY")
NIGHTFALL_GITHUB_TOKEN = os.getenv("NIGHTFALL_GITHUB_TOKEN")
NIGHTFALL_API_URL = os.getenv("NIGHTFALL_API_URL", "https://api.nightfall.ai/v3/scan")
GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")

# Seconds before an individual HTTP call gives up
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", 30))


def require_env(name: str) -> str:
    """Return an environment variable or raise ConfigError naming it."""
    value = os.getenv(name)
    if not value:
        logger.error("Environment variable %s cannot be found", name)
        raise ConfigError(f"missing env var {name}")
    return value


def load_scan_config(workspace_path: str, file_name: str = CONFIG_FILE_NAME) -> ScanConfig:
    """
    Read and validate the repository scan config.

    Parameters
    ----------
    workspace_path : str
        Repository root containing the config file.
    file_name : str
        Path of the config file relative to the workspace.

    Returns
    -------
    ScanConfig
        Validated config with at least one detector.
    """
    path = os.path.join(workspace_path, file_name)
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(
            f"Nightfall config file not found at {file_name}; add one to the root "
            "of your repository with at least one detector enabled"
        ) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Nightfall config file {file_name} is not valid JSON/YAML: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Nightfall config file {file_name} must contain an object")

    try:
        config = ScanConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid Nightfall config file {file_name}: {e}") from e

    logger.debug(
        "Loaded %d detectors, concurrency=%d, %d token exclusions",
        len(config.detectors), config.max_concurrency, len(config.token_exclusion_list),
    )
    return config
