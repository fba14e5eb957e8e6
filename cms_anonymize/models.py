"""
Data models for the CMS anonymizer.

This module defines the records the pipeline rewrites (profiles and
annotations), the per-run policy objects and the result structures handed
back to callers.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Union

from cms_anonymize.errors import ValidationError


class RecordType(Enum):
    """Kinds of records the pipeline rewrites."""

    PROFILE = "profile"
    ANNOTATION = "annotation"


def snapshot_text(value: Any) -> str:
    """
    Coerce a snapshot scalar to the string a record field holds.

    YAML types unquoted values: ``12345`` loads as an int and
    ``2020-01-01 10:00:00`` as a datetime.
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime('%Y-%m-%d %H:%M:%S')
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


@dataclass(frozen=True)
class Site:
    """
    Handle on one partition of the store.

    Attributes:
        id: Numeric site ID
        name: Human readable name (informational only)
        implicit: True for the single site of a store without site support
    """

    id: int
    name: str = ""
    implicit: bool = False


@dataclass
class Profile:
    """
    A user account.

    Core fields live on the primary identity record; everything else is an
    auxiliary attribute stored in ``meta``.
    """

    CORE_FIELDS = (
        'login', 'password', 'slug', 'email', 'url',
        'registered', 'activation_key', 'display_name',
    )

    id: int
    login: str
    slug: str = ""
    email: str = ""
    url: str = ""
    password: str = ""
    registered: str = ""
    activation_key: str = ""
    display_name: str = ""
    roles: List[str] = field(default_factory=list)
    sites: List[int] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)

    def has_field(self, key: str) -> bool:
        """Return True if ``key`` is a core field or an existing meta key."""
        return key in self.CORE_FIELDS or key in self.meta

    def get_field(self, key: str, default: Any = None) -> Any:
        """Read a core field or meta value by name."""
        if key in self.CORE_FIELDS:
            return getattr(self, key)
        return self.meta.get(key, default)

    def has_any_role(self, roles: Iterable[str]) -> bool:
        return any(role in self.roles for role in roles)

    def to_dict(self) -> Dict[str, Any]:
        """Convert profile to a plain dictionary (snapshot format)."""
        data = {key: getattr(self, key) for key in self.CORE_FIELDS}
        data['id'] = self.id
        data['roles'] = list(self.roles)
        data['sites'] = list(self.sites)
        data['meta'] = dict(self.meta)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Profile':
        values = {key: snapshot_text(data.get(key)) for key in cls.CORE_FIELDS}
        return cls(
            id=int(data['id']),
            roles=[str(role) for role in data.get('roles') or []],
            sites=[int(site_id) for site_id in data.get('sites') or []],
            meta=dict(data.get('meta') or {}),
            **values,
        )


@dataclass
class Annotation:
    """
    A comment, optionally owned by a profile.

    Attributes:
        id: Numeric comment ID
        site_id: Site the comment belongs to
        owner_id: Owning profile ID, None (or 0) for anonymous authors
        status: Moderation status (approved, hold, spam, trash...)
        body: Free text of the comment
        author_name: Author display name
        author_email: Author email address
        author_url: Author website
        author_ip: Origin address
        agent: Client signature (user agent)
        meta: Auxiliary attributes
    """

    AUTHOR_FIELDS = ('author_name', 'author_email', 'author_url', 'author_ip', 'agent')

    id: int
    site_id: int
    owner_id: Optional[int] = None
    status: str = "approved"
    body: str = ""
    author_name: str = ""
    author_email: str = ""
    author_url: str = ""
    author_ip: str = ""
    agent: str = ""
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_anonymous(self) -> bool:
        return not self.owner_id

    def get_field(self, key: str, default: Any = None) -> Any:
        if key in self.AUTHOR_FIELDS or key == 'body':
            return getattr(self, key)
        return self.meta.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        data = {key: getattr(self, key) for key in self.AUTHOR_FIELDS}
        data.update({
            'id': self.id,
            'site_id': self.site_id,
            'owner_id': self.owner_id,
            'status': self.status,
            'body': self.body,
            'meta': dict(self.meta),
        })
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Annotation':
        owner_id = data.get('owner_id')
        return cls(
            id=int(data['id']),
            site_id=int(data.get('site_id') or 1),
            owner_id=int(owner_id) if owner_id else None,
            status=snapshot_text(data.get('status')) or "approved",
            body=snapshot_text(data.get('body')),
            meta=dict(data.get('meta') or {}),
            **{key: snapshot_text(data.get(key)) for key in cls.AUTHOR_FIELDS},
        )


@dataclass(frozen=True)
class ExclusionSet:
    """Profile IDs and role names to skip during one run."""

    profile_ids: FrozenSet[int] = frozenset()
    roles: FrozenSet[str] = frozenset()

    def excludes(self, profile: Profile) -> bool:
        # ID match OR role match, never AND.
        return profile.id in self.profile_ids or profile.has_any_role(self.roles)


@dataclass
class GenerationContext:
    """
    Settings for fake data generation during one run.

    Attributes:
        locale: Faker locale (e.g. en_US, fr_FR)
        seed: Optional starting seed, advanced once per target
        custom_email_domains: Domains to pick from for fake emails
        custom_fields: Custom field name -> generator selector (None for default text)
    """

    locale: str = "en_US"
    seed: Optional[int] = None
    custom_email_domains: List[str] = field(default_factory=list)
    custom_fields: Dict[str, Optional[str]] = field(default_factory=dict)

    def __post_init__(self):
        """Validate the seed."""
        if self.seed is None:
            return
        if isinstance(self.seed, bool):
            raise ValidationError(f"The seed must be an integer, got {self.seed!r}")
        try:
            self.seed = int(self.seed)
        except (TypeError, ValueError):
            raise ValidationError(f"The seed must be an integer, got {self.seed!r}")

    def advance_seed(self) -> Optional[int]:
        """Increment the seed (if any) and return the new value."""
        if self.seed is not None:
            self.seed += 1
        return self.seed

    def copy(self) -> 'GenerationContext':
        return replace(
            self,
            custom_email_domains=list(self.custom_email_domains),
            custom_fields=dict(self.custom_fields),
        )


Identifiers = Union[str, int, Sequence[Union[str, int]], None]

# Owner filter value matching comments without an owning profile.
ANONYMOUS_OWNER_ID = 0


@dataclass
class ProfileRunOptions:
    """Parameters of one anonymize-profiles run."""

    keep: Identifiers = None
    keep_roles: Union[str, Sequence[str], None] = None
    skip_not_found: bool = False
    site: Union[int, str, None] = None
    ignore_empty_fields: bool = False
    update_annotations: bool = True
    generation: GenerationContext = field(default_factory=GenerationContext)
    yes: bool = False
    show_progress: bool = True


@dataclass
class AnnotationRunOptions:
    """
    Parameters of one anonymize-annotations run.

    ``except_author_fields`` takes precedence over ``only_author_fields``
    when both are set.
    """

    users: Identifiers = None
    only_author_fields: bool = False
    except_author_fields: bool = False
    use_existing_profile_data: bool = False
    skip_not_found: bool = False
    site: Union[int, str, None] = None
    ignore_empty_fields: bool = False
    generation: GenerationContext = field(default_factory=GenerationContext)
    yes: bool = False
    show_progress: bool = True

    @property
    def rewrite_author(self) -> bool:
        return not self.except_author_fields

    @property
    def rewrite_content(self) -> bool:
        return self.except_author_fields or not self.only_author_fields


@dataclass
class AuditLogEntry:
    """
    Entry in the audit log for a single rewritten record.

    Attributes:
        record_type: Kind of record rewritten
        record_id: ID of the record
        site_id: Site the write was made through
        fields: Names of the fields that were rewritten
        timestamp: ISO format timestamp of the write
    """

    record_type: str
    record_id: int
    site_id: Optional[int]
    fields: List[str]
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert entry to dictionary for serialization."""
        return {
            "type": self.record_type,
            "id": self.record_id,
            "site": self.site_id,
            "fields": self.fields,
            "timestamp": self.timestamp,
        }


@dataclass
class RunResult:
    """
    Result of one top-level operation.

    Attributes:
        operation: Label used in the summary table ("Users" or "Comments")
        count: Number of records written
        site_id: Explicit site restriction, if any
        excluded_ids: Resolved profile IDs that were kept untouched
        errors: Non-fatal failures (cascade sub-runs)
        warnings: Warning messages (skipped identifiers, empty scopes)
        processing_time: Time taken (in seconds)
        audit_entries: One entry per written record, cascades included
    """

    operation: str
    count: int = 0
    site_id: Optional[int] = None
    excluded_ids: List[int] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    processing_time: float = 0.0
    audit_entries: List[AuditLogEntry] = field(default_factory=list)

    def add_error(self, error: str) -> None:
        self.errors.append(error)

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)

    def merge(self, other: 'RunResult') -> None:
        """Fold a sub-run (cascade) into this result, without its count."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.audit_entries.extend(other.audit_entries)

    def summary_row(self) -> Dict[str, Any]:
        return {'Updated': self.operation, 'Count': self.count}

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for serialization."""
        return {
            "operation": self.operation,
            "count": self.count,
            "site": self.site_id,
            "excluded_ids": self.excluded_ids,
            "errors": self.errors,
            "warnings": self.warnings,
            "processing_time": self.processing_time,
        }


@dataclass
class Config:
    """
    Main configuration for the anonymizer.

    Attributes:
        generation: Fake data generation defaults
        processing: Processing options (progress, audit log, backup)
        security: Password hashing options
        logging: Logging configuration
    """

    generation: Dict[str, Any]
    processing: Dict[str, Any]
    security: Dict[str, Any] = field(default_factory=dict)
    logging: Dict[str, Any] = field(default_factory=dict)
