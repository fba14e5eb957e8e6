"""
Unit tests for anonymizers.

This module tests the profile and comment anonymizers in isolation (no
writes).
"""

import pytest

from cms_anonymize.anonymizers.annotation_anonymizer import AnnotationAnonymizer
from cms_anonymize.anonymizers.faker_provider import FakeDataProvider
from cms_anonymize.anonymizers.profile_anonymizer import ProfileAnonymizer
from cms_anonymize.models import (
    Annotation, AnnotationRunOptions, GenerationContext, Profile, RecordType,
)
from cms_anonymize.store.memory_store import MemoryStore


def provider_for(seed=1, **kwargs):
    return FakeDataProvider(GenerationContext(seed=seed, **kwargs))


class TestProfileAnonymizer:
    """Test profile anonymization."""

    def test_core_fields_rewritten(self, single_site_store):
        anonymizer = ProfileAnonymizer(provider_for(), single_site_store)
        profile = single_site_store.get_profile(2)
        site = single_site_store.list_sites()[0]

        pending = anonymizer.anonymize(profile, site)

        assert pending['id'] == 2
        assert pending['login'] != 'jsmith'
        assert pending['email'].startswith(pending['login'] + '@')
        assert pending['password'].startswith('$sha256$')
        assert pending['display_name'] == \
            f"{pending['meta']['first_name']} {pending['meta']['last_name']}"
        assert pending['meta']['nickname'] == pending['login']

    def test_only_existing_meta_rewritten(self, single_site_store):
        """Profile 2 has no contact method value, profile 1 does."""
        anonymizer = ProfileAnonymizer(provider_for(), single_site_store)
        site = single_site_store.list_sites()[0]

        pending_2 = anonymizer.anonymize(single_site_store.get_profile(2), site)
        pending_1 = anonymizer.anonymize(single_site_store.get_profile(1), site)

        assert 'twitter' not in pending_2['meta']
        assert pending_1['meta']['twitter'].startswith(pending_1['meta']['first_name'][:1].lower())

    def test_ignore_empty_fields(self, single_site_store):
        site = single_site_store.list_sites()[0]
        profile = single_site_store.get_profile(1)

        kept = ProfileAnonymizer(provider_for(), single_site_store, ignore_empty_fields=True)
        pending = kept.anonymize(profile, site)
        assert 'description' not in pending['meta']
        assert 'url' not in pending

        rewritten = ProfileAnonymizer(provider_for(), single_site_store)
        pending = rewritten.anonymize(profile, site)
        assert 'description' in pending['meta']
        assert 'url' in pending

    def test_custom_fields(self):
        store = MemoryStore(
            profiles=[Profile(id=1, login='a', meta={'phone': '555-0100', 'bio': 'Hi'})],
        )
        provider = provider_for(custom_fields={'phone': 'phoneNumber', 'bio': None, 'city': 'city'})
        anonymizer = ProfileAnonymizer(provider, store)

        pending = anonymizer.anonymize(store.get_profile(1), store.list_sites()[0])

        assert pending['meta']['phone'] != '555-0100'
        assert pending['meta']['bio'] != 'Hi'
        assert 'city' not in pending['meta']

    def test_reserved_keys_routed_to_primary_record(self):
        store = MemoryStore(
            profiles=[Profile(id=1, login='a', meta={'spam_score': 'high'})],
            reserved_profile_keys=['spam_score'],
        )
        provider = provider_for(custom_fields={'spam_score': 'word'})
        anonymizer = ProfileAnonymizer(provider, store)

        pending = anonymizer.anonymize(store.get_profile(1), store.list_sites()[0])

        assert 'spam_score' in pending
        assert 'spam_score' not in pending['meta']

    def test_audit_entry(self, single_site_store):
        anonymizer = ProfileAnonymizer(provider_for(), single_site_store)
        site = single_site_store.list_sites()[0]
        pending = anonymizer.anonymize(single_site_store.get_profile(3), site)

        entry = anonymizer.audit_entry(3, site, pending)

        assert entry.record_type == RecordType.PROFILE.value
        assert 'login' in entry.fields
        assert 'meta.first_name' in entry.fields
        assert 'id' not in entry.fields


class TestAnnotationAnonymizer:
    """Test comment anonymization."""

    def anonymize(self, store, annotation_id, **options):
        anonymizer = AnnotationAnonymizer(provider_for(), store, AnnotationRunOptions(**options))
        return anonymizer.anonymize(store.annotations[annotation_id], store.list_sites()[0])

    def test_all_fields(self, single_site_store):
        pending = self.anonymize(single_site_store, 2)

        for key in Annotation.AUTHOR_FIELDS + ('body',):
            assert key in pending
        assert pending['author_name'] != 'Visitor'
        assert pending['body'] != 'Buy cheap stuff'

    def test_only_author_fields(self, single_site_store):
        pending = self.anonymize(single_site_store, 1, only_author_fields=True)

        assert 'author_name' in pending
        assert 'body' not in pending

    def test_except_author_fields_wins(self, single_site_store):
        pending = self.anonymize(
            single_site_store, 1, only_author_fields=True, except_author_fields=True
        )

        assert 'body' in pending
        for key in Annotation.AUTHOR_FIELDS:
            assert key not in pending

    def test_use_existing_profile_data(self, single_site_store):
        pending = self.anonymize(single_site_store, 3, use_existing_profile_data=True)

        assert pending['author_name'] == 'Mary Jones'
        assert pending['author_email'] == 'mary@corp.com'
        assert pending['author_url'] == 'http://mary.example'
        assert pending['author_ip'] != '10.0.0.3'

    def test_anonymous_author_generated(self, single_site_store):
        pending = self.anonymize(single_site_store, 2, use_existing_profile_data=True)
        assert pending['author_email'] != 'visitor@mail.com'

    def test_dangling_owner_generated(self):
        store = MemoryStore(annotations=[
            Annotation(id=1, site_id=1, owner_id=99, author_name='Gone', author_email='gone@x.test'),
        ])
        pending = self.anonymize(store, 1, use_existing_profile_data=True)

        assert pending['author_name'] and pending['author_name'] != 'Gone'
        assert '@' in pending['author_email']

    def test_ignore_empty_fields(self, single_site_store):
        """Comment 1 has no author URL."""
        pending = self.anonymize(single_site_store, 1, ignore_empty_fields=True)

        assert 'author_url' not in pending
        assert 'author_name' in pending

    def test_custom_fields_only_when_present(self, single_site_store):
        anonymizer = AnnotationAnonymizer(
            provider_for(custom_fields={'rating': 'word', 'mood': None}),
            single_site_store,
            AnnotationRunOptions(),
        )
        site = single_site_store.list_sites()[0]

        with_rating = anonymizer.anonymize(single_site_store.annotations[3], site)
        without = anonymizer.anonymize(single_site_store.annotations[1], site)

        assert 'rating' in with_rating['meta']
        assert 'mood' not in with_rating['meta']
        assert without['meta'] == {}


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
