"""
Anonymizers package for profile and comment anonymization.

This package contains the fake data provider, the custom field generator
registry and the anonymizers that turn original records into pending
changes.
"""

from cms_anonymize.anonymizers.annotation_anonymizer import AnnotationAnonymizer
from cms_anonymize.anonymizers.base_anonymizer import BaseAnonymizer
from cms_anonymize.anonymizers.faker_provider import FakeDataProvider
from cms_anonymize.anonymizers.profile_anonymizer import ProfileAnonymizer
from cms_anonymize.anonymizers.unique_login import UniqueLoginGuarantor

__all__ = [
    'AnnotationAnonymizer',
    'BaseAnonymizer',
    'FakeDataProvider',
    'ProfileAnonymizer',
    'UniqueLoginGuarantor',
]
