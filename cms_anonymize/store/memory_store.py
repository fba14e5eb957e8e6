"""
In-memory datastore backed by snapshot files.

A snapshot is a YAML (or JSON) document holding the sites, profiles and
annotations of a content-management datastore. The CLI loads a snapshot into
a MemoryStore, runs the pipeline against it and writes the result back.
"""

import copy
import json
import logging
import os
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

import yaml

from cms_anonymize.models import Annotation, Profile, Site, snapshot_text
from cms_anonymize.store.base_store import DataStore

logger = logging.getLogger(__name__)

DEFAULT_SITE_ID = 1


class MemoryStore(DataStore):
    """
    DataStore keeping every record in dictionaries.

    A single-site store exposes one implicit site (ID 1) and ignores site
    membership; a multisite store filters profiles by their ``sites`` list
    and annotations by their ``site_id``.
    """

    def __init__(
        self,
        profiles: Iterable[Profile] = (),
        annotations: Iterable[Annotation] = (),
        sites: Iterable[Site] = (),
        multisite: bool = False,
        contact_methods: Iterable[str] = (),
        reserved_profile_keys: Iterable[str] = (),
        password_salt: str = "",
    ):
        super().__init__(password_salt=password_salt)
        self.multisite = multisite
        self.profiles: Dict[int, Profile] = {p.id: p for p in sorted(profiles, key=lambda p: p.id)}
        self.annotations: Dict[int, Annotation] = {
            a.id: a for a in sorted(annotations, key=lambda a: a.id)
        }
        self._contact_methods = list(contact_methods)
        self._reserved_profile_keys = list(reserved_profile_keys)
        self._journal: Optional[Dict[Any, Any]] = None

        if multisite:
            self.sites: Dict[int, Site] = {s.id: s for s in sorted(sites, key=lambda s: s.id)}
        else:
            self.sites = {DEFAULT_SITE_ID: Site(id=DEFAULT_SITE_ID, name="main", implicit=True)}

    # Snapshot I/O

    @classmethod
    def from_snapshot(cls, data: Dict[str, Any], password_salt: str = "") -> 'MemoryStore':
        """
        Build a store from a snapshot dictionary.

        Args:
            data: Parsed snapshot
            password_salt: Salt for password hashing

        Returns:
            MemoryStore instance
        """
        sites = [
            Site(id=int(site['id']), name=site.get('name', ""))
            for site in data.get('sites') or []
        ]
        return cls(
            profiles=[Profile.from_dict(p) for p in data.get('profiles') or []],
            annotations=[Annotation.from_dict(a) for a in data.get('annotations') or []],
            sites=sites,
            multisite=bool(data.get('multisite', False)),
            contact_methods=data.get('contact_methods') or [],
            reserved_profile_keys=data.get('reserved_profile_keys') or [],
            password_salt=password_salt,
        )

    @classmethod
    def load(cls, path: str, encoding: str = 'utf-8', password_salt: str = "") -> 'MemoryStore':
        """
        Load a YAML or JSON snapshot file.

        Args:
            path: Snapshot file path
            encoding: File encoding
            password_salt: Salt for password hashing

        Returns:
            MemoryStore instance
        """
        with open(path, 'r', encoding=encoding) as f:
            data = yaml.safe_load(f) or {}
        logger.debug("Loaded snapshot %s", path)
        return cls.from_snapshot(data, password_salt=password_salt)

    def to_snapshot(self) -> Dict[str, Any]:
        return {
            'multisite': self.multisite,
            'sites': [
                {'id': site.id, 'name': site.name}
                for site in self.sites.values() if not site.implicit
            ],
            'contact_methods': list(self._contact_methods),
            'reserved_profile_keys': list(self._reserved_profile_keys),
            'profiles': [p.to_dict() for p in self.profiles.values()],
            'annotations': [a.to_dict() for a in self.annotations.values()],
        }

    def save(self, path: str, encoding: str = 'utf-8') -> None:
        """
        Write the store to a snapshot file (JSON for .json paths, YAML otherwise).

        Args:
            path: File path
            encoding: File encoding
        """
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        snapshot = self.to_snapshot()
        with open(path, 'w', encoding=encoding) as f:
            if Path(path).suffix.lower() == '.json':
                json.dump(snapshot, f, indent=2, ensure_ascii=False, default=snapshot_text)
            else:
                yaml.safe_dump(snapshot, f, sort_keys=False, allow_unicode=True)

    @staticmethod
    def backup(path: str) -> str:
        """Copy a snapshot file to ``<path>.backup`` and return the backup path."""
        backup_path = f"{path}.backup"
        shutil.copy2(path, backup_path)
        return backup_path

    # Sites

    def supports_sites(self) -> bool:
        return self.multisite

    def list_sites(self) -> List[Site]:
        return list(self.sites.values())

    def get_site(self, site_id: int) -> Optional[Site]:
        return self.sites.get(site_id)

    # Profiles

    def _in_site(self, profile: Profile, site: Optional[Site]) -> bool:
        if site is None or not self.multisite:
            return True
        return site.id in profile.sites

    def get_profile(self, profile_id: int) -> Optional[Profile]:
        profile = self.profiles.get(profile_id)
        return copy.deepcopy(profile) if profile else None

    def find_profile(self, field: str, value: str, site: Optional[Site] = None) -> Optional[Profile]:
        if field not in ('login', 'email'):
            raise ValueError(f"Unrecognized profile search field: {field}")
        needle = value.casefold()
        for profile in self.profiles.values():
            if getattr(profile, field).casefold() == needle and self._in_site(profile, site):
                return copy.deepcopy(profile)
        return None

    def list_profiles(self, site: Site) -> List[Profile]:
        return [copy.deepcopy(p) for p in self.profiles.values() if self._in_site(p, site)]

    def login_exists(self, login: str) -> bool:
        needle = login.casefold()
        return any(p.login.casefold() == needle for p in self.profiles.values())

    def slug_exists(self, slug: str) -> bool:
        needle = slug.casefold()
        return any(p.slug.casefold() == needle for p in self.profiles.values())

    def update_profile(self, site: Site, profile_id: int, changes: Dict[str, Any]) -> None:
        profile = self.profiles.get(profile_id)
        if profile is None:
            raise KeyError(f"No profile with ID {profile_id}")
        self._journal_record(self.profiles, profile_id)

        for key, value in changes.items():
            if key in ('id', 'login', 'roles', 'sites'):
                continue
            if key == 'meta':
                profile.meta.update(value)
            elif key in Profile.CORE_FIELDS:
                setattr(profile, key, value)
            else:
                # Reserved primary-record keys live alongside meta here.
                profile.meta[key] = value

    def set_profile_login(self, profile_id: int, login: str) -> None:
        profile = self.profiles.get(profile_id)
        if profile is None:
            raise KeyError(f"No profile with ID {profile_id}")
        self._journal_record(self.profiles, profile_id)
        profile.login = login

    # Annotations

    def list_annotations(self, site: Site) -> List[Annotation]:
        return [
            copy.deepcopy(a) for a in self.annotations.values()
            if not self.multisite or a.site_id == site.id
        ]

    def update_annotation(self, site: Site, annotation_id: int, changes: Dict[str, Any]) -> None:
        annotation = self.annotations.get(annotation_id)
        if annotation is None:
            raise KeyError(f"No annotation with ID {annotation_id}")
        if self.multisite and annotation.site_id != site.id:
            raise ValueError(f"Annotation {annotation_id} does not belong to site {site.id}")
        self._journal_record(self.annotations, annotation_id)

        for key, value in changes.items():
            if key == 'meta':
                annotation.meta.update(value)
            elif key in Annotation.AUTHOR_FIELDS or key == 'body':
                setattr(annotation, key, value)

    # Schema

    def contact_methods(self) -> List[str]:
        return list(self._contact_methods)

    def reserved_profile_keys(self) -> List[str]:
        return list(self._reserved_profile_keys)

    def _journal_record(self, records: Dict[int, Any], record_id: int) -> None:
        if self._journal is None:
            return
        key = (id(records), record_id)
        if key not in self._journal:
            self._journal[key] = (records, record_id, copy.deepcopy(records[record_id]))

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Restore the records written inside the block if it raises."""
        if self._journal is not None:
            # Nested block: the outer one owns the journal.
            yield
            return

        self._journal = {}
        try:
            yield
        except BaseException:
            for records, record_id, original in self._journal.values():
                records[record_id] = original
            raise
        finally:
            self._journal = None
