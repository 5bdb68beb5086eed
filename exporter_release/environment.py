"""Environment helpers and registry credential providers."""

from __future__ import annotations

import dataclasses
import os
import typing as typ

__all__ = [
    "USER_ENV",
    "TOKEN_ENV",
    "Credential",
    "CredentialProvider",
    "EnvironmentCredentialProvider",
    "StaticCredentialProvider",
    "env_value",
]

USER_ENV = "GITHUB_USER"
TOKEN_ENV = "CR_PAT"


def env_value(name: str, environ: typ.Mapping[str, str] | None = None) -> str:
    """Return the stripped value of ``name`` or an empty string when unset.

    Parameters
    ----------
    name:
        Name of the environment variable to fetch.
    environ:
        Mapping consulted instead of :data:`os.environ` when provided.
    """
    source = os.environ if environ is None else environ
    return (source.get(name) or "").strip()


@dataclasses.dataclass(frozen=True, slots=True)
class Credential:
    """Username and secret token used for a single registry login."""

    username: str
    token: str = dataclasses.field(repr=False)

    @property
    def missing(self) -> tuple[str, ...]:
        """Names of the empty credential parts."""
        return tuple(
            label
            for label, value in (("username", self.username), ("token", self.token))
            if not value
        )


class CredentialProvider(typ.Protocol):
    """Source of registry credentials."""

    def get_credential(self) -> Credential:
        """Return the credential pair for the next login attempt."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class EnvironmentCredentialProvider:
    """Read credentials from ``GITHUB_USER`` and ``CR_PAT``.

    Examples
    --------
    >>> provider = EnvironmentCredentialProvider(
    ...     environ={"GITHUB_USER": "octocat", "CR_PAT": "s3cret"}
    ... )
    >>> provider.get_credential().username
    'octocat'
    """

    environ: typ.Mapping[str, str] | None = None
    user_var: str = USER_ENV
    token_var: str = TOKEN_ENV

    def get_credential(self) -> Credential:
        return Credential(
            username=env_value(self.user_var, self.environ),
            token=env_value(self.token_var, self.environ),
        )

    def describe(self, part: str) -> str:
        """Return the environment variable backing ``part``."""
        return self.user_var if part == "username" else self.token_var


@dataclasses.dataclass(frozen=True, slots=True)
class StaticCredentialProvider:
    """Serve a fixed credential pair."""

    username: str
    token: str = dataclasses.field(repr=False)

    def get_credential(self) -> Credential:
        return Credential(username=self.username, token=self.token)
