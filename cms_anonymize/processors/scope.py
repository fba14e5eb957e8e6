"""
Scope and target enumeration.

ScopeEnumerator decides which sites a run covers; TargetEnumerator lists the
profiles or comments of those sites that the run rewrites.
"""

from typing import Any, Collection, List, Optional, Tuple

from cms_anonymize.errors import SiteNotFoundError, ValidationError
from cms_anonymize.models import ANONYMOUS_OWNER_ID, Annotation, ExclusionSet, Profile, Site
from cms_anonymize.store.base_store import DataStore
from cms_anonymize.utils import is_empty, is_numeric


class ScopeEnumerator:
    """Validates the ``--site`` option and lists the sites of a run."""

    def __init__(self, store: DataStore):
        self.store = store

    def validate_site_id(self, site_id: Any) -> Optional[Site]:
        """
        Validate an explicit site ID.

        Args:
            site_id: Raw ``--site`` value (None or empty for every site)

        Returns:
            The matching Site, or None when no site was given

        Raises:
            ValidationError: On a single-site store or a non-numeric value
            SiteNotFoundError: If no site has this ID
        """
        if is_empty(site_id):
            return None

        if not self.store.supports_sites():
            raise ValidationError(
                "The '--site=<id>' option is only valid for multisite installs. Aborting..."
            )

        if not is_numeric(site_id):
            raise ValidationError(
                f"The '--site=<id>' value must be a number, but it is currently set to '{site_id}'. Aborting..."
            )

        site = self.store.get_site(int(site_id))
        if site is None:
            raise SiteNotFoundError(site_id)
        return site

    def sites(self, explicit_site: Optional[Site] = None) -> List[Site]:
        """Return the explicit site alone, or every site of the store."""
        if explicit_site is not None:
            return [explicit_site]
        return self.store.list_sites()


class TargetEnumerator:
    """Lists the records a run rewrites, site by site."""

    def __init__(self, store: DataStore):
        self.store = store

    def profiles(self, sites: List[Site], exclusions: ExclusionSet) -> List[Tuple[Site, Profile]]:
        """
        List the profiles to rewrite.

        A profile that belongs to several sites is listed once, through the
        first site it was found in.

        Args:
            sites: Sites of the run
            exclusions: IDs and roles to skip

        Returns:
            (site, profile) pairs, ordered by site then profile ID
        """
        seen = set()
        targets = []
        for site in sites:
            for profile in self.store.list_profiles(site):
                if profile.id in seen or exclusions.excludes(profile):
                    continue
                seen.add(profile.id)
                targets.append((site, profile))
        return targets

    def annotations(
        self,
        sites: List[Site],
        owner_ids: Optional[Collection[int]] = None
    ) -> List[Tuple[Site, Annotation]]:
        """
        List the comments to rewrite, whatever their moderation status.

        Args:
            sites: Sites of the run
            owner_ids: Restrict to comments owned by these profiles; include 0
                for comments without an owner. None means no restriction.

        Returns:
            (site, annotation) pairs, ordered by site then comment ID
        """
        targets = []
        for site in sites:
            for annotation in self.store.list_annotations(site):
                if owner_ids is not None and (annotation.owner_id or ANONYMOUS_OWNER_ID) not in owner_ids:
                    continue
                targets.append((site, annotation))
        return targets
