"""
Base anonymizer class for record anonymization.

This module defines the abstract base class that the profile and annotation
anonymizers implement.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from cms_anonymize.anonymizers.faker_provider import FakeDataProvider
from cms_anonymize.models import AuditLogEntry, RecordType, Site
from cms_anonymize.store.base_store import DataStore
from cms_anonymize.utils import get_timestamp, is_empty


class BaseAnonymizer(ABC):
    """
    Abstract base class for record anonymizers.

    An anonymizer turns one original record into a dictionary of pending
    changes. The changes hold only the fields that are rewritten: primary
    fields at the top level and auxiliary attributes under ``meta``. Nothing
    is written here; the engine runs the hooks and writes the changes.
    """

    def __init__(self, provider: FakeDataProvider, store: DataStore, ignore_empty_fields: bool = False):
        """
        Initialize the anonymizer.

        Args:
            provider: Fake data provider of the current run
            store: Datastore, used for lookups only
            ignore_empty_fields: Leave currently empty fields untouched
        """
        self.provider = provider
        self.store = store
        self.ignore_empty_fields = ignore_empty_fields
        self.name = self.__class__.__name__

    @abstractmethod
    def anonymize(self, record: Any, site: Site) -> Dict[str, Any]:
        """
        Build the pending changes for one record.

        Args:
            record: Original record (Profile or Annotation)
            site: Site the record is processed through

        Returns:
            Pending changes, with ``id`` and ``meta`` keys always present
        """
        pass

    @abstractmethod
    def get_record_type(self) -> RecordType:
        pass

    def should_replace(self, current_value: Any) -> bool:
        """
        Apply the ignore-empty-fields policy to one field.

        Args:
            current_value: Value the field holds before the run

        Returns:
            True if the field may be overwritten
        """
        return not self.ignore_empty_fields or not is_empty(current_value)

    @staticmethod
    def rewritten_fields(pending: Dict[str, Any]) -> List[str]:
        fields = [key for key in pending if key not in ('id', 'meta')]
        fields.extend(f"meta.{key}" for key in pending.get('meta', {}))
        return fields

    def audit_entry(self, record_id: int, site: Site, pending: Dict[str, Any]) -> AuditLogEntry:
        return AuditLogEntry(
            record_type=self.get_record_type().value,
            record_id=record_id,
            site_id=site.id,
            fields=self.rewritten_fields(pending),
            timestamp=get_timestamp(),
        )

    def __repr__(self) -> str:
        """String representation of the anonymizer."""
        return f"{self.name}(record_type={self.get_record_type().value})"
