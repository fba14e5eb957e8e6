"""
Resolution of user identifiers (IDs, logins, emails) to profile IDs.
"""

import logging
from typing import List, Optional

from cms_anonymize.errors import ProfileNotFoundError
from cms_anonymize.models import ANONYMOUS_OWNER_ID, Identifiers, RunResult, Site
from cms_anonymize.store.base_store import DataStore
from cms_anonymize.utils import is_numeric, parse_list

logger = logging.getLogger(__name__)


class IdentityResolver:
    """
    Converts ``--keep`` / ``--users`` style identifiers to profile IDs.

    A token made of digits is an ID, a token containing ``@`` is an email
    and anything else is a login. Emails and logins are looked up within the
    explicit site when there is one, across every site otherwise.
    """

    def __init__(self, store: DataStore, skip_not_found: bool = False, result: Optional[RunResult] = None):
        """
        Initialize the resolver.

        Args:
            store: Datastore to look profiles up in
            skip_not_found: Warn and drop unknown identifiers instead of failing
            result: Run result receiving the warnings
        """
        self.store = store
        self.skip_not_found = skip_not_found
        self.result = result

    def resolve(self, identifiers: Identifiers, site: Optional[Site] = None, allow_anonymous: bool = False) -> List[int]:
        """
        Resolve identifiers to profile IDs.

        Args:
            identifiers: Comma separated string or sequence of tokens
            site: Explicit site of the run, None when the run spans every site
            allow_anonymous: Accept ``0`` as the anonymous-author owner ID

        Returns:
            Deduplicated profile IDs, in the order first seen

        Raises:
            ProfileNotFoundError: If a token does not resolve and skipping is off
        """
        profile_ids: List[int] = []
        for token in parse_list(identifiers):
            profile_id = self.resolve_token(token, site, allow_anonymous)
            if profile_id is not None and profile_id not in profile_ids:
                profile_ids.append(profile_id)
        return profile_ids

    def resolve_token(self, token: str, site: Optional[Site] = None, allow_anonymous: bool = False) -> Optional[int]:
        if is_numeric(token):
            profile_id = int(token)
            if allow_anonymous and profile_id == ANONYMOUS_OWNER_ID:
                return ANONYMOUS_OWNER_ID
            kind = 'user ID'
            profile = self.store.get_profile(profile_id)
        elif '@' in token:
            kind = 'user email'
            profile = self.store.find_profile('email', token, site)
        else:
            kind = 'username'
            profile = self.store.find_profile('login', token, site)

        if profile is not None:
            return profile.id
        return self._not_found(kind, token)

    def _not_found(self, kind: str, token: str) -> None:
        if not self.skip_not_found:
            raise ProfileNotFoundError(kind, token)

        message = f"The {kind} '{token}' doesn't seem to exist. Skipping..."
        logger.warning(message)
        if self.result is not None:
            self.result.add_warning(message)
        return None
