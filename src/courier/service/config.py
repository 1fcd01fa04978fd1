"""Request service configuration."""

from __future__ import annotations

from dataclasses import dataclass

from courier.auth.models.errors import ConfigurationError


@dataclass(frozen=True)
class ServiceConfig:
    """Configuration for HTTPService."""

    timeout: int = 10  # seconds

    @classmethod
    def default(cls) -> ServiceConfig:
        return cls()

    def validate(self) -> None:
        """Check the configuration before any client is built.

        Raises:
            ConfigurationError: If the timeout is missing or not positive
        """
        if (
            not isinstance(self.timeout, int)
            or isinstance(self.timeout, bool)
            or self.timeout <= 0
        ):
            raise ConfigurationError(
                f"missing timeout value in the configuration: {self.timeout!r}"
            )
