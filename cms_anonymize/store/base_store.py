"""
Datastore interface used by the anonymization pipeline.

The pipeline never talks to a storage engine directly. Every read and write
goes through a DataStore and takes an explicit Site handle, so there is no
ambient "current site" to switch and restore.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from cms_anonymize.models import Annotation, Profile, Site
from cms_anonymize.utils import calculate_hash


class DataStore(ABC):
    """
    Abstract base class for profile/annotation stores.

    Implementations must return copies of records from read methods: callers
    keep the originals around (for hooks and audit) while writing changes.
    """

    def __init__(self, password_salt: str = ""):
        """
        Initialize the store.

        Args:
            password_salt: Salt used by hash_password()
        """
        self.password_salt = password_salt

    # Sites

    @abstractmethod
    def supports_sites(self) -> bool:
        """Return True if the store is partitioned into several sites."""

    @abstractmethod
    def list_sites(self) -> List[Site]:
        """Return every site, ordered by ID."""

    @abstractmethod
    def get_site(self, site_id: int) -> Optional[Site]:
        """Return the site with this ID, or None."""

    # Profiles

    @abstractmethod
    def get_profile(self, profile_id: int) -> Optional[Profile]:
        """Return a copy of the profile with this ID, or None."""

    @abstractmethod
    def find_profile(self, field: str, value: str, site: Optional[Site] = None) -> Optional[Profile]:
        """
        Find a profile by ``login`` or ``email``.

        Args:
            field: "login" or "email"
            value: Value to match
            site: Restrict the lookup to members of this site; None searches every site

        Returns:
            Copy of the matching profile, or None
        """

    @abstractmethod
    def list_profiles(self, site: Site) -> List[Profile]:
        """Return copies of every profile of a site, ordered by ID."""

    @abstractmethod
    def login_exists(self, login: str) -> bool:
        """Return True if any profile, on any site, uses this login."""

    @abstractmethod
    def slug_exists(self, slug: str) -> bool:
        """Return True if any profile, on any site, uses this login slug."""

    @abstractmethod
    def update_profile(self, site: Site, profile_id: int, changes: Dict[str, Any]) -> None:
        """
        Write profile changes.

        Top-level keys are primary record fields; ``changes['meta']`` holds
        auxiliary attributes. The login is NOT written by this call, see
        set_profile_login().
        """

    @abstractmethod
    def set_profile_login(self, profile_id: int, login: str) -> None:
        """Rewrite the login of a profile."""

    # Annotations

    @abstractmethod
    def list_annotations(self, site: Site) -> List[Annotation]:
        """Return copies of every annotation of a site, any status, ordered by ID."""

    @abstractmethod
    def update_annotation(self, site: Site, annotation_id: int, changes: Dict[str, Any]) -> None:
        """Write annotation changes (``changes['meta']`` holds auxiliary attributes)."""

    # Schema

    def contact_methods(self) -> List[str]:
        """Meta keys recognized as contact methods (e.g. twitter, facebook)."""
        return []

    def reserved_profile_keys(self) -> List[str]:
        """Store-specific keys that belong to the primary profile record."""
        return []

    def hash_password(self, password: str) -> str:
        return "$sha256$" + calculate_hash(password, algorithm="sha256", salt=self.password_salt)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """
        Group several writes so that they apply together.

        The default implementation provides no isolation; stores with
        transactions should override it.
        """
        yield

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(sites={len(self.list_sites())})"
