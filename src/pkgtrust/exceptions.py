"""Exceptions raised while scoring a package."""


class TrustScoreError(Exception):
    """Base class for failures that abort a scoring run."""


class ConfigurationError(TrustScoreError):
    """Raised when process configuration is unusable."""


class MissingCredentialError(ConfigurationError):
    """Raised when no GitHub access token is configured."""

    def __init__(self) -> None:
        super().__init__("GITHUB_TOKEN is not set in the environment")


class RepositoryNotFoundError(TrustScoreError):
    """Raised when a reference does not lead to a source repository."""

    def __init__(self, reference: str, reason: str = "No repository URL found") -> None:
        self.reference = reference
        self.reason = reason
        super().__init__(f"{reason}: {reference}")


class InvalidRepositoryError(TrustScoreError):
    """Raised when a URL is not a usable GitHub repository path."""

    def __init__(self, url: str, reason: str = "Invalid GitHub repository path") -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url}")


class UpstreamFetchError(TrustScoreError):
    """Raised when a required upstream fetch fails."""

    def __init__(self, resource: str, detail: str) -> None:
        self.resource = resource
        self.detail = detail
        super().__init__(f"Error fetching {resource}: {detail}")
