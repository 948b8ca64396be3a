"""Credential check for the externally triggered cleanup endpoint.

The implementation is chosen once at startup from configuration, so an
unset secret means the endpoint is off rather than open.
"""

import hmac
from abc import ABC, abstractmethod

from clientportal.errors import AuthenticationError, NotConfiguredError
from clientportal.messages import Locale, message


class CronAuthorizer(ABC):
    @abstractmethod
    def authorize(self, presented: str | None) -> None:
        """Raise unless ``presented`` is the configured cron secret."""


class SecretCronAuthorizer(CronAuthorizer):
    def __init__(self, secret: str, locale: Locale = "en") -> None:
        if not secret:
            raise ValueError("Cron secret must not be empty")
        self._secret = secret.encode("utf-8")
        self._locale: Locale = locale

    def authorize(self, presented: str | None) -> None:
        if presented is None or not hmac.compare_digest(presented.encode("utf-8"), self._secret):
            raise AuthenticationError(message("cron_unauthorized", self._locale))


class DisabledCronAuthorizer(CronAuthorizer):
    def __init__(self, locale: Locale = "en") -> None:
        self._locale: Locale = locale

    def authorize(self, presented: str | None) -> None:
        raise NotConfiguredError(message("cron_disabled", self._locale))


def create_cron_authorizer(secret: str | None, locale: Locale = "en") -> CronAuthorizer:
    if secret:
        return SecretCronAuthorizer(secret, locale)
    return DisabledCronAuthorizer(locale)
