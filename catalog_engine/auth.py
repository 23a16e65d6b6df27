"""
Access gate for catalog mutations.

Bearer tokens are issued by an external identity provider; the gate only
asks the provider whether a token is good and who it belongs to.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx
from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from .conf import catalog_settings
from .exceptions import Unauthorized

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as reported by the identity provider."""

    user_id: str
    email: str = ""
    claims: dict[str, Any] = field(default_factory=dict, compare=False)


class IdentityRejected(Exception):
    """The identity provider refused a token."""


class IdentityProvider(Protocol):
    def verify(self, token: str) -> Identity: ...


class HttpIdentityProvider:
    """
    Verify tokens against a GoTrue-style ``/auth/v1/user`` endpoint.

    One synchronous request per token, no retries. Transport failures are
    reported as rejections so the gate fails closed.
    """

    def __init__(
        self,
        url: str,
        api_key: str = "",
        timeout: float = 5.0,
        client: httpx.Client | None = None,
    ):
        self.url = url
        self.api_key = api_key
        self.client = client or httpx.Client(timeout=timeout)

    def verify(self, token: str) -> Identity:
        headers = {"Authorization": f"Bearer {token}"}
        if self.api_key:
            headers["apikey"] = self.api_key

        try:
            response = self.client.get(self.url, headers=headers)
        except httpx.HTTPError as exc:
            raise IdentityRejected(f"Identity provider unreachable: {exc}") from exc

        if response.status_code != 200:
            raise IdentityRejected(f"Identity provider answered {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise IdentityRejected("Identity provider returned invalid JSON") from exc

        if not isinstance(data, dict) or not data.get("id"):
            raise IdentityRejected("Identity provider returned no user id")

        return Identity(user_id=str(data["id"]), email=data.get("email") or "", claims=data)

    def close(self) -> None:
        self.client.close()


class StaticTokenIdentityProvider:
    """Map fixed tokens to user ids. Meant for service tokens and local development."""

    def __init__(self, tokens: dict[str, str]):
        self.tokens = dict(tokens)

    def verify(self, token: str) -> Identity:
        try:
            return Identity(user_id=self.tokens[token])
        except KeyError:
            raise IdentityRejected("Unknown token") from None


def build_identity_provider() -> IdentityProvider:
    """Instantiate the provider named by the IDENTITY_PROVIDER setting."""
    provider_class = import_string(catalog_settings.IDENTITY_PROVIDER)
    try:
        return provider_class(**catalog_settings.IDENTITY_PROVIDER_OPTIONS)
    except TypeError as exc:
        raise ImproperlyConfigured(
            f"IDENTITY_PROVIDER_OPTIONS do not fit {catalog_settings.IDENTITY_PROVIDER}: {exc}"
        ) from exc


def parse_credential(credential: str | None) -> str:
    """
    Extract the token from an ``Authorization`` header value.

    A bare token (no scheme) is accepted as well; a lone ``Bearer`` is not.
    """
    if not credential or not credential.strip():
        raise Unauthorized("Missing credential")

    parts = credential.split()
    if len(parts) == 1 and parts[0].lower() != "bearer":
        return parts[0]
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    raise Unauthorized("Malformed credential")


class AccessGate:
    """
    Authenticated-or-not check in front of every catalog mutation.

    Without an explicit provider, the one named in settings is built on the
    first ``authorize`` call, so reads never depend on its configuration.
    """

    def __init__(self, provider: IdentityProvider | None = None):
        self._provider = provider

    @property
    def provider(self) -> IdentityProvider:
        if self._provider is None:
            self._provider = build_identity_provider()
        return self._provider

    def close(self) -> None:
        """Close the provider if one was built and holds connections."""
        close_provider = getattr(self._provider, "close", None)
        if close_provider is not None:
            close_provider()

    def authorize(self, credential: str | None) -> Identity:
        """
        Return the caller's identity.

        Raises:
            Unauthorized: credential absent, malformed or rejected.
            ImproperlyConfigured: the configured provider cannot be built.
        """
        token = parse_credential(credential)
        try:
            identity = self.provider.verify(token)
        except IdentityRejected as exc:
            logger.info("Rejected credential: %s", exc)
            raise Unauthorized("Invalid credential") from exc
        return identity
