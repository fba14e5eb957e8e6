"""
Generation of logins that no existing profile uses.
"""

import logging

from cms_anonymize.anonymizers.faker_provider import FakeDataProvider
from cms_anonymize.errors import LoginExhaustedError
from cms_anonymize.store.base_store import DataStore
from cms_anonymize.utils import sanitize_login, strimwidth

logger = logging.getLogger(__name__)

MAX_LOGIN_ATTEMPTS = 30
LOGIN_MAX_LENGTH = 60
SLUG_MAX_LENGTH = 50
SUFFIX_PATTERN = '#####'


def login_slug(login: str) -> str:
    """Normalized slug stored next to a login."""
    return strimwidth(sanitize_login(login), SLUG_MAX_LENGTH)


class UniqueLoginGuarantor:
    """
    Finds a login that is free in the whole identity space.

    The candidate is tried first. After a collision the next candidate is
    alternately a fresh provider username and the previous candidate with a
    numeric suffix. Running out of attempts is fatal: writing a duplicate
    login would break identity uniqueness.
    """

    def __init__(self, store: DataStore, provider: FakeDataProvider, max_attempts: int = MAX_LOGIN_ATTEMPTS):
        self.store = store
        self.provider = provider
        self.max_attempts = max_attempts

    def is_taken(self, login: str) -> bool:
        if not login:
            return True
        return self.store.login_exists(login) or self.store.slug_exists(login_slug(login))

    def ensure_unique(self, candidate: str) -> str:
        """
        Return a login guaranteed not to collide with an existing one.

        Args:
            candidate: Preferred login

        Returns:
            Unused login, at most 60 characters

        Raises:
            LoginExhaustedError: If every attempt collided
        """
        candidate = strimwidth(sanitize_login(candidate or ""), LOGIN_MAX_LENGTH)

        for attempt in range(1, self.max_attempts + 1):
            if not self.is_taken(candidate):
                return candidate

            logger.debug("Login '%s' is taken (attempt %d)", candidate, attempt)
            if attempt % 2 == 1 or not candidate:
                candidate = self._fresh_login()
            else:
                base = strimwidth(candidate, LOGIN_MAX_LENGTH - len(SUFFIX_PATTERN))
                candidate = base + self.provider.numerify(SUFFIX_PATTERN)

        raise LoginExhaustedError(self.max_attempts)

    def _fresh_login(self) -> str:
        return strimwidth(sanitize_login(self.provider.user_name()), LOGIN_MAX_LENGTH)
