"""Configuration loading for jobdispatch."""

from __future__ import annotations

import os
import re
from pathlib import Path

import yaml
from loguru import logger
from pydantic import ValidationError

from jobdispatch.models import DispatchConfig, JobSpec

# Default paths
DEFAULT_CONFIG_DIR = Path.home() / ".jobdispatch"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "jobdispatch.yaml"


class ConfigError(Exception):
    """Configuration error."""

    pass


def expand_env_vars(value: str) -> str:
    """Expand environment variables in a string.

    Supports:
    - ${env:VAR_NAME} - environment variable
    - $VAR_NAME or ${VAR_NAME} - standard env var expansion
    """
    def replace_env(match: re.Match[str]) -> str:
        return os.environ.get(match.group(1), "")

    value = re.sub(r"\$\{env:([^}]+)\}", replace_env, value)
    return os.path.expandvars(value)


def expand_path(path: str) -> Path:
    """Expand a path with ~ and environment variables."""
    return Path(expand_env_vars(os.path.expanduser(path)))


def load_yaml_file(path: Path) -> dict:
    """Load a YAML file that must hold a mapping."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Invalid file {path}: expected a mapping, got {type(data).__name__}")
    return data


def load_config(config_path: Path | None = None) -> DispatchConfig:
    """Load the dispatch settings, falling back to defaults if the file is missing."""
    path = config_path or DEFAULT_CONFIG_FILE

    if not path.exists():
        logger.debug(f"Config file not found at {path}, using defaults")
        return DispatchConfig()

    data = load_yaml_file(path)

    try:
        config = DispatchConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e

    logger.debug(f"Loaded config from {path}")
    return config


def load_jobs(jobs_path: Path) -> list[JobSpec]:
    """Load job definitions from a YAML file.

    The file maps job names to executable paths, either at the top level or
    under a ``jobs`` key:

        jobs:
          backup: ~/bin/backup.sh
          report: ${env:TOOLS}/report
    """
    if not jobs_path.exists():
        raise ConfigError(f"Jobs file not found: {jobs_path}")

    data = load_yaml_file(jobs_path)
    jobs_dict = data.get("jobs", data)
    if not isinstance(jobs_dict, dict):
        raise ConfigError(f"Invalid jobs structure in {jobs_path}")

    specs = []
    for name, path in jobs_dict.items():
        if not isinstance(path, str):
            raise ConfigError(f"Job '{name}' in {jobs_path}: path must be a string")
        specs.append(JobSpec(name=str(name), path=expand_path(path)))

    logger.debug(f"Loaded {len(specs)} jobs from {jobs_path}")
    return specs
