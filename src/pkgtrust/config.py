"""Process configuration for trust scoring."""

import os

from pydantic import BaseModel, Field

from pkgtrust.exceptions import ConfigurationError


class Settings(BaseModel):
    """Explicit configuration passed to the fetchers and the pipeline.

    Values normally come from the environment (optionally via a .env file
    loaded by the CLI). Construct directly in tests.
    """

    github_token: str | None = None
    log_level: int = Field(default=0, ge=0, le=2)  # 0 = silent, 1 = info, 2 = debug
    log_file: str | None = None
    http_timeout: float = Field(default=30.0, gt=0)
    min_metric_score: float = Field(default=0.0, ge=0.0, le=1.0)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Returns:
            Settings populated from GITHUB_TOKEN, LOG_LEVEL, LOG_FILE,
            PKGTRUST_HTTP_TIMEOUT and PKGTRUST_MIN_METRIC_SCORE.

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed.
        """
        env = os.environ if environ is None else environ

        try:
            log_level = int(env.get("LOG_LEVEL") or 0)
            http_timeout = float(env.get("PKGTRUST_HTTP_TIMEOUT") or 30.0)
            min_metric_score = float(env.get("PKGTRUST_MIN_METRIC_SCORE") or 0.0)
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        return cls(
            github_token=env.get("GITHUB_TOKEN") or None,
            # Out-of-range levels clamp instead of failing startup
            log_level=min(max(log_level, 0), 2),
            log_file=env.get("LOG_FILE") or None,
            http_timeout=http_timeout,
            min_metric_score=min_metric_score,
        )
