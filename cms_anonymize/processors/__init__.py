"""
Processors package: identifier resolution, scoping and the engine.
"""

from cms_anonymize.processors.engine import AnonymizationEngine
from cms_anonymize.processors.identity_resolver import IdentityResolver
from cms_anonymize.processors.scope import ScopeEnumerator, TargetEnumerator

__all__ = ['AnonymizationEngine', 'IdentityResolver', 'ScopeEnumerator', 'TargetEnumerator']
