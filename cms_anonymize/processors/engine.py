"""
Anonymization engine orchestrating the profile and comment pipelines.

This module coordinates scope validation, identifier resolution, target
enumeration, fake data generation, hooks, writes and the cascade from a
rewritten profile to its comments.
"""

import logging
import time
from typing import Callable, Iterable, Optional

from tqdm import tqdm

from cms_anonymize.anonymizers.annotation_anonymizer import AnnotationAnonymizer
from cms_anonymize.anonymizers.faker_provider import FakeDataProvider
from cms_anonymize.anonymizers.profile_anonymizer import ProfileAnonymizer
from cms_anonymize.errors import AbortedError
from cms_anonymize.hooks import (
    ANNOTATION_DATA, ANNOTATION_UPDATED, PROFILE_DATA, PROFILE_UPDATED, HookRegistry,
)
from cms_anonymize.models import (
    Annotation, AnnotationRunOptions, ExclusionSet, GenerationContext,
    Profile, ProfileRunOptions, RunResult, Site,
)
from cms_anonymize.processors.identity_resolver import IdentityResolver
from cms_anonymize.processors.scope import ScopeEnumerator, TargetEnumerator
from cms_anonymize.store.base_store import DataStore
from cms_anonymize.utils import parse_list, prompt_confirmation

logger = logging.getLogger(__name__)


class AnonymizationEngine:
    """
    Engine running the two top-level operations against a datastore.

    The pipeline for each operation:
    1. Validate the site option and resolve identifiers (no writes yet)
    2. Ask for confirmation unless the run says yes
    3. Enumerate targets across the sites in scope
    4. For each target: advance the seed, build pending changes, run the
       pre-write hooks, write, run the post-write hooks
    5. For profiles: cascade to the profile's comments
    """

    def __init__(
        self,
        store: DataStore,
        hooks: Optional[HookRegistry] = None,
        confirm: Optional[Callable[[str], bool]] = None,
    ):
        """
        Initialize the engine.

        Args:
            store: Datastore to read and write through
            hooks: Hook registry (an empty one by default)
            confirm: Callback asking the operator a yes/no question
        """
        self.store = store
        self.hooks = hooks or HookRegistry()
        self.confirm = confirm or prompt_confirmation
        self.scope = ScopeEnumerator(store)
        self.targets = TargetEnumerator(store)

    def anonymize_profiles(self, options: ProfileRunOptions) -> RunResult:
        """
        Rewrite every in-scope profile with fake data.

        Args:
            options: Run options

        Returns:
            RunResult; ``count`` is the number of profiles rewritten
        """
        start_time = time.time()
        result = RunResult(operation="Users")

        try:
            explicit_site = self.scope.validate_site_id(options.site)
            result.site_id = explicit_site.id if explicit_site else None

            resolver = IdentityResolver(self.store, options.skip_not_found, result)
            result.excluded_ids = resolver.resolve(options.keep, site=explicit_site)
            exclusions = ExclusionSet(
                profile_ids=frozenset(result.excluded_ids),
                roles=frozenset(parse_list(options.keep_roles)),
            )

            context = options.generation.copy()
            provider = FakeDataProvider(context)

            self._confirm("Rewrite all user data?", options.yes)

            targets = self.targets.profiles(self.scope.sites(explicit_site), exclusions)
            if not targets:
                self._warn(result, "No users changed (did you exclude them all?)")
                return result

            anonymizer = ProfileAnonymizer(provider, self.store, options.ignore_empty_fields)
            for site, profile in self._progress(targets, "Rewriting users...", "users", options.show_progress):
                provider.advance()
                self._rewrite_profile(site, profile, anonymizer, provider, result)
                result.count += 1

                if options.update_annotations:
                    self._cascade(profile, options, context, result)

            logger.info("Rewrote %d users", result.count)

        finally:
            result.processing_time = time.time() - start_time

        return result

    def anonymize_annotations(self, options: AnnotationRunOptions) -> RunResult:
        """
        Rewrite every in-scope comment.

        Args:
            options: Run options

        Returns:
            RunResult; ``count`` is the number of comments rewritten
        """
        start_time = time.time()
        result = RunResult(operation="Comments")

        try:
            explicit_site = self.scope.validate_site_id(options.site)
            result.site_id = explicit_site.id if explicit_site else None

            owner_ids = None
            tokens = parse_list(options.users)
            if tokens:
                resolver = IdentityResolver(self.store, options.skip_not_found, result)
                owner_ids = set(resolver.resolve(tokens, site=explicit_site, allow_anonymous=True))

            context = options.generation.copy()
            provider = FakeDataProvider(context)

            self._confirm("Rewrite all comment data?", options.yes)

            targets = self.targets.annotations(self.scope.sites(explicit_site), owner_ids)
            anonymizer = AnnotationAnonymizer(provider, self.store, options)
            for site, annotation in self._progress(targets, "Rewriting comments...", "comments", options.show_progress):
                provider.advance()
                self._rewrite_annotation(site, annotation, anonymizer, provider, result)
                result.count += 1

            logger.debug("Rewrote %d comments", result.count)

        finally:
            result.processing_time = time.time() - start_time

        return result

    def _rewrite_profile(
        self,
        site: Site,
        profile: Profile,
        anonymizer: ProfileAnonymizer,
        provider: FakeDataProvider,
        result: RunResult
    ) -> None:
        pending = anonymizer.anonymize(profile, site)
        pending = self.hooks.apply_filters(PROFILE_DATA, pending, profile, provider)

        # The primary update leaves the login alone; both writes go together.
        login = pending.get('login')
        with self.store.atomic():
            self.store.update_profile(site, profile.id, pending)
            if login:
                self.store.set_profile_login(profile.id, login)

        self.hooks.do_action(PROFILE_UPDATED, pending, profile, provider)
        result.audit_entries.append(anonymizer.audit_entry(profile.id, site, pending))

    def _rewrite_annotation(
        self,
        site: Site,
        annotation: Annotation,
        anonymizer: AnnotationAnonymizer,
        provider: FakeDataProvider,
        result: RunResult
    ) -> None:
        pending = anonymizer.anonymize(annotation, site)
        pending = self.hooks.apply_filters(ANNOTATION_DATA, pending, annotation, provider)

        with self.store.atomic():
            self.store.update_annotation(site, annotation.id, pending)

        self.hooks.do_action(ANNOTATION_UPDATED, pending, annotation, provider)
        result.audit_entries.append(anonymizer.audit_entry(annotation.id, site, pending))

    def _cascade(
        self,
        profile: Profile,
        options: ProfileRunOptions,
        context: GenerationContext,
        result: RunResult
    ) -> None:
        """
        Rewrite the author fields of a profile's comments from its new data.

        A failure is recorded on the parent result and does not stop the
        profile loop.
        """
        cascade_options = AnnotationRunOptions(
            users=[profile.id],
            only_author_fields=True,
            use_existing_profile_data=True,
            skip_not_found=options.skip_not_found,
            site=options.site,
            ignore_empty_fields=options.ignore_empty_fields,
            generation=GenerationContext(
                locale=context.locale,
                seed=context.seed,
                custom_email_domains=list(context.custom_email_domains),
            ),
            yes=True,
            show_progress=False,
        )

        try:
            sub_result = self.anonymize_annotations(cascade_options)
        except Exception as e:
            message = f"Comments of user {profile.id} could not be rewritten: {e}"
            logger.error(message)
            result.add_error(message)
            return

        result.merge(sub_result)

    def _confirm(self, question: str, assume_yes: bool) -> None:
        if assume_yes:
            return
        if not self.confirm(question):
            raise AbortedError("Aborted by user.")

    @staticmethod
    def _warn(result: RunResult, message: str) -> None:
        logger.warning(message)
        result.add_warning(message)

    @staticmethod
    def _progress(items: list, desc: str, unit: str, show_progress: bool) -> Iterable:
        return tqdm(items, desc=desc, unit=unit) if show_progress else items
