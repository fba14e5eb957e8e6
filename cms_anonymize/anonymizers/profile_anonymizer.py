"""
Profile anonymizer - replaces a user profile's PII with fake data.

A full bundle of fake values is generated for every profile, then merged
into the pending changes according to the field policy: only fields the
profile has are eligible, empty fields may be skipped, and each field is
routed either to the primary record or to the auxiliary attributes.
"""

from typing import Any, Dict

from cms_anonymize.anonymizers.base_anonymizer import BaseAnonymizer
from cms_anonymize.anonymizers.faker_provider import FakeDataProvider
from cms_anonymize.anonymizers.unique_login import UniqueLoginGuarantor, login_slug
from cms_anonymize.models import Profile, RecordType, Site
from cms_anonymize.store.base_store import DataStore


class ProfileAnonymizer(BaseAnonymizer):
    """
    Anonymizer for user profiles.

    Examples:
        - login "jsmith" -> "doe.john"
        - email "jsmith@corp.com" -> "doe.john@example.org"
        - meta "twitter" -> "john_04817"
    """

    def __init__(self, provider: FakeDataProvider, store: DataStore, ignore_empty_fields: bool = False):
        super().__init__(provider, store, ignore_empty_fields)
        self.guarantor = UniqueLoginGuarantor(store, provider)
        self.core_fields = set(Profile.CORE_FIELDS) | set(store.reserved_profile_keys())

    def get_record_type(self) -> RecordType:
        return RecordType.PROFILE

    def fake_bundle(self) -> Dict[str, Any]:
        """
        Generate a complete set of fake profile values.

        Returns:
            Field name -> fake value, core and auxiliary fields mixed
        """
        provider = self.provider
        first_name = provider.first_name()
        last_name = provider.last_name()

        login = provider.local_part(f"{last_name}.{first_name}")
        login = self.guarantor.ensure_unique(login)

        bundle = {
            'password': self.store.hash_password(provider.password()),
            'slug': login_slug(login),
            'email': provider.email_address(login),
            'url': provider.url(),
            'display_name': f"{first_name} {last_name}",
            'login': login,
            'registered': provider.registered(),
            'nickname': login,
            'first_name': first_name,
            'last_name': last_name,
            'description': provider.description(),
        }

        for contact_method in self.store.contact_methods():
            bundle[contact_method] = provider.contact_handle(first_name)

        for field_name, selector in provider.context.custom_fields.items():
            bundle[field_name] = provider.custom_field(field_name, selector)

        return bundle

    def anonymize(self, record: Profile, site: Site) -> Dict[str, Any]:
        """
        Build the pending changes for one profile.

        Args:
            record: Original profile
            site: Site the profile is processed through

        Returns:
            Pending changes; ``login`` is present when the login must change
        """
        pending: Dict[str, Any] = {'id': record.id, 'meta': {}}

        for key, value in self.fake_bundle().items():
            if not record.has_field(key):
                continue
            if not self.should_replace(record.get_field(key)):
                continue

            if key in self.core_fields:
                pending[key] = value
            else:
                pending['meta'][key] = value

        return pending
