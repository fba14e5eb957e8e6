"""
Integration tests for the anonymization engine.

Runs both top-level operations against in-memory stores and checks the
resulting records.
"""

import pytest

from cms_anonymize.errors import AbortedError, ProfileNotFoundError, ValidationError
from cms_anonymize.hooks import ANNOTATION_DATA, PROFILE_DATA, PROFILE_UPDATED, HookRegistry
from cms_anonymize.models import AnnotationRunOptions, GenerationContext, ProfileRunOptions
from cms_anonymize.processors.engine import AnonymizationEngine


def user_options(**kwargs):
    kwargs.setdefault('yes', True)
    kwargs.setdefault('show_progress', False)
    return ProfileRunOptions(**kwargs)


def comment_options(**kwargs):
    kwargs.setdefault('yes', True)
    kwargs.setdefault('show_progress', False)
    return AnnotationRunOptions(**kwargs)


def snapshot(store):
    return store.to_snapshot()


class TestAnonymizeProfiles:
    """Test the profile pipeline."""

    def test_all_profiles_rewritten(self, single_site_store):
        engine = AnonymizationEngine(single_site_store)

        result = engine.anonymize_profiles(user_options(generation=GenerationContext(seed=1)))

        assert result.count == 3
        assert result.excluded_ids == []
        logins = [p.login for p in single_site_store.profiles.values()]
        assert not {'admin', 'jsmith', 'mjones'} & set(logins)
        assert len(set(logins)) == 3

    def test_cascade_copies_new_profile_data(self, single_site_store):
        engine = AnonymizationEngine(single_site_store)
        engine.anonymize_profiles(user_options(generation=GenerationContext(seed=1)))

        owner = single_site_store.profiles[2]
        comment = single_site_store.annotations[1]
        assert comment.author_name == owner.display_name
        assert comment.author_email == owner.email
        assert comment.author_name != 'John Smith'
        # Author fields only
        assert comment.body == 'Great post, thanks!'

    def test_cascade_leaves_anonymous_comments(self, single_site_store):
        engine = AnonymizationEngine(single_site_store)
        engine.anonymize_profiles(user_options())

        assert single_site_store.annotations[2].author_name == 'Visitor'

    def test_cascade_disabled(self, single_site_store):
        engine = AnonymizationEngine(single_site_store)
        engine.anonymize_profiles(user_options(update_annotations=False))

        assert single_site_store.annotations[1].author_name == 'John Smith'

    def test_keep_with_skip_not_found(self, single_site_store):
        engine = AnonymizationEngine(single_site_store)

        result = engine.anonymize_profiles(user_options(keep='jsmith,ghost', skip_not_found=True))

        assert result.excluded_ids == [2]
        assert result.count == 2
        assert single_site_store.profiles[2].login == 'jsmith'
        assert single_site_store.annotations[1].author_name == 'John Smith'
        assert any("ghost" in warning for warning in result.warnings)

    def test_keep_not_found_fails_before_writing(self, single_site_store):
        before = snapshot(single_site_store)
        engine = AnonymizationEngine(single_site_store)

        with pytest.raises(ProfileNotFoundError):
            engine.anonymize_profiles(user_options(keep='ghost'))

        assert snapshot(single_site_store) == before

    def test_keep_roles(self, single_site_store):
        engine = AnonymizationEngine(single_site_store)

        result = engine.anonymize_profiles(user_options(keep='3', keep_roles='administrator'))

        assert result.count == 1
        assert single_site_store.profiles[1].login == 'admin'
        assert single_site_store.profiles[3].login == 'mjones'
        assert single_site_store.profiles[2].login != 'jsmith'

    def test_everyone_excluded(self, single_site_store):
        engine = AnonymizationEngine(single_site_store)

        result = engine.anonymize_profiles(
            user_options(keep_roles='administrator,editor,subscriber')
        )

        assert result.count == 0
        assert result.warnings == ["No users changed (did you exclude them all?)"]

    def test_site_on_single_site_store(self, single_site_store):
        before = snapshot(single_site_store)
        asked = []
        engine = AnonymizationEngine(single_site_store, confirm=lambda q: asked.append(q) or True)

        with pytest.raises(ValidationError):
            engine.anonymize_profiles(user_options(site='3', yes=False))

        assert asked == []
        assert snapshot(single_site_store) == before

    def test_ignore_empty_fields(self, single_site_store):
        engine = AnonymizationEngine(single_site_store)
        engine.anonymize_profiles(user_options(ignore_empty_fields=True))

        assert single_site_store.profiles[1].url == ''
        assert single_site_store.profiles[1].meta['description'] == ''
        assert single_site_store.profiles[3].url != 'http://mary.example'

    def test_audit_entries_include_cascade(self, single_site_store):
        engine = AnonymizationEngine(single_site_store)

        result = engine.anonymize_profiles(user_options())

        types = [entry.record_type for entry in result.audit_entries]
        assert types.count('profile') == 3
        assert types.count('annotation') == 2


class TestMultisite:
    """Test site scoping on a multisite store."""

    def test_explicit_site(self, multisite_store):
        engine = AnonymizationEngine(multisite_store)

        result = engine.anonymize_profiles(user_options(site='3'))

        assert result.site_id == 3
        assert result.count == 3
        assert multisite_store.profiles[2].login == 'blogger'
        assert multisite_store.profiles[3].login != 'shopper'

        shopper = multisite_store.profiles[3]
        assert multisite_store.annotations[11].author_name == shopper.display_name
        assert multisite_store.annotations[11].author_email == shopper.email
        # Comment of profile 4 lives on site 2, outside the run
        assert multisite_store.annotations[13].author_name == 'Bo Both'

    def test_profile_in_several_sites_processed_once(self, multisite_store):
        calls = []
        hooks = HookRegistry()
        hooks.add_action(PROFILE_UPDATED, lambda pending, original, provider: calls.append(original.id))
        engine = AnonymizationEngine(multisite_store, hooks=hooks)

        result = engine.anonymize_profiles(user_options())

        assert result.count == 4
        assert sorted(calls) == [1, 2, 3, 4]

    def test_unknown_site(self, multisite_store):
        engine = AnonymizationEngine(multisite_store)

        with pytest.raises(ValidationError):
            engine.anonymize_profiles(user_options(site='8'))


class TestDeterminism:
    """Test seeded runs."""

    def test_same_seed_same_output(self, store_factory):
        first, second = store_factory(), store_factory()

        AnonymizationEngine(first).anonymize_profiles(user_options(generation=GenerationContext(seed=42)))
        AnonymizationEngine(second).anonymize_profiles(user_options(generation=GenerationContext(seed=42)))

        assert snapshot(first) == snapshot(second)

    def test_caller_context_untouched(self, single_site_store):
        context = GenerationContext(seed=42)
        AnonymizationEngine(single_site_store).anonymize_profiles(user_options(generation=context))

        assert context.seed == 42

    def test_targets_get_distinct_values(self, single_site_store):
        engine = AnonymizationEngine(single_site_store)
        engine.anonymize_profiles(user_options(generation=GenerationContext(seed=7)))

        names = {p.display_name for p in single_site_store.profiles.values()}
        assert len(names) == 3

    def test_non_latin_locale(self, single_site_store):
        """Cyrillic names still give usable logins, emails and handles."""
        engine = AnonymizationEngine(single_site_store)

        engine.anonymize_profiles(user_options(generation=GenerationContext(locale='ru_RU', seed=3)))

        for profile in single_site_store.profiles.values():
            local, _, domain = profile.email.partition('@')
            assert profile.login
            assert local and domain
        assert not single_site_store.profiles[1].meta['twitter'].startswith('_')


class TestConfirmationAndHooks:
    """Test confirmation, hooks and cascade failures."""

    def test_declined_confirmation(self, single_site_store):
        before = snapshot(single_site_store)
        questions = []

        def decline(question):
            questions.append(question)
            return False

        engine = AnonymizationEngine(single_site_store, confirm=decline)

        with pytest.raises(AbortedError):
            engine.anonymize_profiles(user_options(yes=False))

        assert questions == ["Rewrite all user data?"]
        assert snapshot(single_site_store) == before

    def test_filter_changes_written_data(self, single_site_store):
        def rename(pending, original, provider):
            pending['display_name'] = f"User {original.id}"
            return pending

        hooks = HookRegistry()
        hooks.add_filter(PROFILE_DATA, rename)
        engine = AnonymizationEngine(single_site_store, hooks=hooks)

        engine.anonymize_profiles(user_options())

        assert single_site_store.profiles[2].display_name == "User 2"
        assert single_site_store.annotations[1].author_name == "User 2"

    def test_filter_can_set_login(self, single_site_store):
        hooks = HookRegistry()
        hooks.add_filter(PROFILE_DATA, lambda pending, original, provider: {
            **pending, 'login': f"member{original.id}",
        })
        engine = AnonymizationEngine(single_site_store, hooks=hooks)

        engine.anonymize_profiles(user_options())

        assert single_site_store.profiles[3].login == 'member3'

    def test_cascade_failure_is_not_fatal(self, single_site_store, monkeypatch):
        engine = AnonymizationEngine(single_site_store)

        def broken(options):
            raise RuntimeError("comment table locked")

        monkeypatch.setattr(engine, 'anonymize_annotations', broken)

        result = engine.anonymize_profiles(user_options())

        assert result.count == 3
        assert len(result.errors) == 3
        assert "comment table locked" in result.errors[0]

    def test_hook_failure_propagates(self, single_site_store):
        def explode(pending, original, provider):
            if original.id == 2:
                raise RuntimeError("boom")

        hooks = HookRegistry()
        hooks.add_action(PROFILE_UPDATED, explode)
        engine = AnonymizationEngine(single_site_store, hooks=hooks)

        with pytest.raises(RuntimeError):
            engine.anonymize_profiles(user_options(update_annotations=False))

        # Profile 1 was completed before the failure
        assert single_site_store.profiles[1].login != 'admin'


class TestAnonymizeAnnotations:
    """Test the comment pipeline."""

    def test_all_comments(self, single_site_store):
        engine = AnonymizationEngine(single_site_store)

        result = engine.anonymize_annotations(comment_options())

        assert result.count == 3
        assert single_site_store.annotations[2].body != 'Buy cheap stuff'
        assert single_site_store.annotations[2].status == 'spam'

    def test_anonymous_only(self, single_site_store):
        engine = AnonymizationEngine(single_site_store)

        result = engine.anonymize_annotations(comment_options(users='0'))

        assert result.count == 1
        assert single_site_store.annotations[2].author_name != 'Visitor'
        assert single_site_store.annotations[1].author_name == 'John Smith'

    def test_unresolved_users_match_nothing(self, single_site_store):
        engine = AnonymizationEngine(single_site_store)

        result = engine.anonymize_annotations(comment_options(users='ghost', skip_not_found=True))

        assert result.count == 0
        assert single_site_store.annotations[2].author_name == 'Visitor'

    def test_only_author_fields(self, single_site_store):
        engine = AnonymizationEngine(single_site_store)
        engine.anonymize_annotations(comment_options(users='jsmith', only_author_fields=True))

        comment = single_site_store.annotations[1]
        assert comment.body == 'Great post, thanks!'
        assert comment.author_name != 'John Smith'

    def test_except_author_fields(self, single_site_store):
        engine = AnonymizationEngine(single_site_store)
        engine.anonymize_annotations(comment_options(users='2', except_author_fields=True))

        comment = single_site_store.annotations[1]
        assert comment.body != 'Great post, thanks!'
        assert comment.author_name == 'John Smith'

    def test_non_latin_locale_author_email(self, single_site_store):
        engine = AnonymizationEngine(single_site_store)

        engine.anonymize_annotations(
            comment_options(users='0', generation=GenerationContext(locale='ru_RU', seed=3))
        )

        email = single_site_store.annotations[2].author_email
        local, _, domain = email.partition('@')
        assert local
        assert domain
        assert not email.startswith('@')

    def test_site_scope(self, multisite_store):
        engine = AnonymizationEngine(multisite_store)

        result = engine.anonymize_annotations(comment_options(site=2))

        assert result.count == 2
        assert multisite_store.annotations[12].body == 'Nice shop'

    def test_filter_hook(self, single_site_store):
        hooks = HookRegistry()
        hooks.add_filter(ANNOTATION_DATA, lambda pending, original, provider: {
            'id': pending['id'], 'meta': {}, 'body': '[removed]',
        })
        engine = AnonymizationEngine(single_site_store, hooks=hooks)

        engine.anonymize_annotations(comment_options())

        assert single_site_store.annotations[3].body == '[removed]'
        assert single_site_store.annotations[3].author_name == 'Mary Jones'

    def test_declined_confirmation(self, single_site_store):
        engine = AnonymizationEngine(single_site_store, confirm=lambda question: False)

        with pytest.raises(AbortedError):
            engine.anonymize_annotations(comment_options(yes=False))

        assert single_site_store.annotations[1].body == 'Great post, thanks!'


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
