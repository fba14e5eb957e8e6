"""
Annotation anonymizer - replaces comment author details and content.

Author fields are either copied from the owning profile (when the run asks
for existing profile data and the owner still exists) or freshly generated.
Content (body and configured custom fields) is always generated.
"""

import logging
from typing import Any, Dict

from cms_anonymize.anonymizers.base_anonymizer import BaseAnonymizer
from cms_anonymize.anonymizers.faker_provider import FakeDataProvider
from cms_anonymize.models import Annotation, AnnotationRunOptions, RecordType, Site
from cms_anonymize.store.base_store import DataStore

logger = logging.getLogger(__name__)


class AnnotationAnonymizer(BaseAnonymizer):
    """Anonymizer for comments."""

    def __init__(self, provider: FakeDataProvider, store: DataStore, options: AnnotationRunOptions):
        """
        Initialize the annotation anonymizer.

        Args:
            provider: Fake data provider of the current run
            store: Datastore, used to look up owning profiles
            options: Run options (field groups, existing profile data, ignore-empty)
        """
        super().__init__(provider, store, options.ignore_empty_fields)
        self.options = options

    def get_record_type(self) -> RecordType:
        return RecordType.ANNOTATION

    def author_values(self, annotation: Annotation) -> Dict[str, Any]:
        """
        Compute the five author fields of an annotation.

        Args:
            annotation: Original annotation

        Returns:
            Author field name -> new value
        """
        owner = None
        if self.options.use_existing_profile_data and not annotation.is_anonymous:
            owner = self.store.get_profile(annotation.owner_id)
            if owner is None:
                logger.debug(
                    "Comment %s refers to missing user %s, generating author data",
                    annotation.id, annotation.owner_id,
                )

        if owner is not None:
            name = owner.display_name or owner.login
            email = owner.email
            url = owner.url or ""
        else:
            name = self.provider.name()
            email = self.provider.email_address(self.provider.local_part(name))
            url = self.provider.url()

        return {
            'author_name': name,
            'author_email': email,
            'author_url': url,
            'author_ip': self.provider.ipv4(),
            'agent': self.provider.user_agent(),
        }

    def content_values(self, annotation: Annotation) -> Dict[str, Any]:
        """Body plus every configured custom field the annotation carries."""
        values = {'body': self.provider.body()}
        for field_name, selector in self.provider.context.custom_fields.items():
            if field_name in annotation.meta:
                values[field_name] = self.provider.custom_field(field_name, selector)
        return values

    def anonymize(self, record: Annotation, site: Site) -> Dict[str, Any]:
        pending: Dict[str, Any] = {'id': record.id, 'meta': {}}

        values: Dict[str, Any] = {}
        if self.options.rewrite_author:
            values.update(self.author_values(record))
        if self.options.rewrite_content:
            values.update(self.content_values(record))

        for key, value in values.items():
            if not self.should_replace(record.get_field(key)):
                continue
            if key in Annotation.AUTHOR_FIELDS or key == 'body':
                pending[key] = value
            else:
                pending['meta'][key] = value

        return pending
