"""Container registry authentication."""

from __future__ import annotations

import dataclasses
import sys

from .commands import CommandRunner, PlumbumRunner
from .environment import CredentialProvider, EnvironmentCredentialProvider
from .errors import AuthError

__all__ = ["RegistryAuthenticator"]


@dataclasses.dataclass(slots=True)
class RegistryAuthenticator:
    """Log the container tool into ``registry`` with a piped token.

    The session is stored by the container tool itself, so a later
    ``push-image`` invocation reuses it.

    Examples
    --------
    >>> from exporter_release.environment import StaticCredentialProvider
    >>> auth = RegistryAuthenticator(  # doctest: +SKIP
    ...     credentials=StaticCredentialProvider("octocat", "s3cret"),
    ... )
    >>> auth.authenticate()  # doctest: +SKIP
    """

    registry: str = "ghcr.io"
    docker: str = "docker"
    credentials: CredentialProvider = dataclasses.field(
        default_factory=EnvironmentCredentialProvider
    )
    runner: CommandRunner = dataclasses.field(default_factory=PlumbumRunner)

    def authenticate(self) -> None:
        """Run ``docker login`` with the provider's credentials.

        Raises
        ------
        AuthError
            If the username or token is empty, or the registry rejects the
            login. No login is attempted when a credential is missing.
        """
        credential = self.credentials.get_credential()
        if missing := credential.missing:
            labels = [self._describe(part) for part in missing]
            message = f"Missing registry credential(s): {', '.join(labels)}"
            raise AuthError(message)

        print(f"Logging into {self.registry} as {credential.username}", file=sys.stderr)
        result = self.runner.run(
            [
                self.docker,
                "login",
                self.registry,
                "-u",
                credential.username,
                "--password-stdin",
            ],
            stdin=credential.token,
        )
        if not result.ok:
            detail = result.stderr.strip() or f"exit {result.returncode}"
            message = f"Login to {self.registry} was rejected: {detail}"
            raise AuthError(message)

    def _describe(self, part: str) -> str:
        describe = getattr(self.credentials, "describe", None)
        return describe(part) if describe is not None else part
