"""Environment-sourced configuration for the MCP repository server."""

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import dotenv_values, load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .error_handling import ConfigurationError

logger = logging.getLogger(__name__)

# Common placeholder values that should be overridden
GITHUB_TOKEN_PLACEHOLDERS = ["", "YOUR_TOKEN_HERE", "REPLACE_ME", "TODO", "CHANGEME"]

REQUIRED_GITHUB_KEYS = ("GITHUB_TOKEN", "GITHUB_REPO_OWNER")
TWITTER_KEYS = (
    "TWITTER_API_KEY",
    "TWITTER_API_SECRET",
    "TWITTER_ACCESS_TOKEN",
    "TWITTER_ACCESS_SECRET",
)


def should_override_github_token(token: str | None) -> bool:
    """Check if a GitHub token should be overridden by a value from a .env file."""
    if token is None:
        return True
    return token.strip() in GITHUB_TOKEN_PLACEHOLDERS


def _load_env_file(env_file: Path) -> None:
    github_token_before = os.getenv("GITHUB_TOKEN")
    load_dotenv(env_file, override=False)  # Don't override existing env vars

    # An MCP client may export GITHUB_TOKEN="" which would otherwise win
    if should_override_github_token(github_token_before):
        env_values = dotenv_values(env_file)
        token = env_values.get("GITHUB_TOKEN")
        if token and not should_override_github_token(token):
            os.environ["GITHUB_TOKEN"] = token


def load_environment_variables(env_file: Path | None = None) -> list[str]:
    """Load environment variables from .env files with proper precedence.

    Order of precedence:
    1. System environment variables
    2. Project-specific .env file (current working directory)
    3. Explicit env file passed on the command line

    Empty, whitespace-only and placeholder GITHUB_TOKEN values are replaced
    by a real token from the first file that has one.

    Returns:
        The list of files that were loaded.
    """
    loaded_files = []
    candidates = [Path.cwd() / ".env"]
    if env_file is not None:
        candidates.append(env_file)

    for candidate in candidates:
        if not candidate.exists() or str(candidate) in loaded_files:
            continue
        try:
            _load_env_file(candidate)
        except OSError as e:
            logger.warning(f"Failed to load .env file {candidate}: {e}")
            continue
        loaded_files.append(str(candidate))
        logger.info(f"Loaded environment variables from {candidate}")

    if not loaded_files:
        logger.debug("No .env files found, using process environment only")
    return loaded_files


class TwitterCredentials(BaseModel):
    """OAuth 1.0a user-context credential set for the social platform."""

    api_key: str
    api_secret: str
    access_token: str
    access_secret: str


class ServerConfig(BaseModel):
    """Validated process-wide configuration."""

    github_token: str = Field(min_length=1)
    repo_owner: str = Field(min_length=1)
    github_api_url: str = "https://api.github.com"
    host: str = "127.0.0.1"
    port: int = Field(default=3001, ge=1, le=65535)
    log_level: str = "INFO"
    twitter: Optional[TwitterCredentials] = None
    twitter_api_url: str = "https://api.twitter.com"

    @property
    def social_enabled(self) -> bool:
        return self.twitter is not None


def _present(environ: Mapping[str, str], key: str) -> Optional[str]:
    value = environ.get(key)
    if value is None or not value.strip():
        return None
    return value.strip()


def load_config(environ: Optional[Mapping[str, str]] = None) -> ServerConfig:
    """
    Build the ServerConfig from the environment.

    Raises:
        ConfigurationError: listing every missing or invalid key.
    """
    env = os.environ if environ is None else environ

    missing = [key for key in REQUIRED_GITHUB_KEYS if _present(env, key) is None]
    if _present(env, "GITHUB_TOKEN") in GITHUB_TOKEN_PLACEHOLDERS[1:]:
        missing.append("GITHUB_TOKEN")

    twitter_values = {key: _present(env, key) for key in TWITTER_KEYS}
    twitter_given = [key for key, value in twitter_values.items() if value is not None]
    if twitter_given and len(twitter_given) != len(TWITTER_KEYS):
        missing.extend(key for key, value in twitter_values.items() if value is None)

    if missing:
        missing = list(dict.fromkeys(missing))
        raise ConfigurationError(
            f"Missing environment variables: {', '.join(missing)}", keys=missing
        )

    twitter = None
    if twitter_given:
        twitter = TwitterCredentials(
            api_key=twitter_values["TWITTER_API_KEY"],
            api_secret=twitter_values["TWITTER_API_SECRET"],
            access_token=twitter_values["TWITTER_ACCESS_TOKEN"],
            access_secret=twitter_values["TWITTER_ACCESS_SECRET"],
        )

    overrides = {
        "github_api_url": _present(env, "GITHUB_API_URL"),
        "host": _present(env, "HOST"),
        "port": _present(env, "PORT"),
        "log_level": _present(env, "LOG_LEVEL"),
        "twitter_api_url": _present(env, "TWITTER_API_URL"),
    }

    try:
        config = ServerConfig(
            github_token=_present(env, "GITHUB_TOKEN"),
            repo_owner=_present(env, "GITHUB_REPO_OWNER"),
            twitter=twitter,
            **{key: value for key, value in overrides.items() if value is not None},
        )
    except ValidationError as e:
        keys = [str(error["loc"][0]).upper() for error in e.errors() if error["loc"]]
        raise ConfigurationError(
            f"Invalid configuration: {', '.join(keys) or e}", keys=keys
        ) from e

    if not config.social_enabled:
        logger.warning("Twitter credentials not configured, createPost is disabled")
    return config
