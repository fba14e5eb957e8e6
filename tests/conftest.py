"""Shared fixtures: small single-site and multisite datastores."""

import pytest

from cms_anonymize.models import Annotation, Profile, Site
from cms_anonymize.store.memory_store import MemoryStore


def make_single_site_store() -> MemoryStore:
    profiles = [
        Profile(
            id=1, login='admin', slug='admin', email='admin@example.com',
            display_name='Site Admin', roles=['administrator'],
            meta={'nickname': 'admin', 'first_name': 'Site', 'last_name': 'Admin',
                  'description': '', 'twitter': '@siteadmin'},
        ),
        Profile(
            id=2, login='jsmith', slug='jsmith', email='jsmith@corp.com',
            display_name='John Smith', roles=['editor'],
            meta={'nickname': 'jsmith', 'first_name': 'John', 'last_name': 'Smith',
                  'description': 'Writes about gardening.'},
        ),
        Profile(
            id=3, login='mjones', slug='mjones', email='mary@corp.com',
            url='http://mary.example', display_name='Mary Jones', roles=['subscriber'],
            meta={'nickname': 'mjones', 'first_name': 'Mary', 'last_name': 'Jones'},
        ),
    ]
    annotations = [
        Annotation(
            id=1, site_id=1, owner_id=2, body='Great post, thanks!',
            author_name='John Smith', author_email='jsmith@corp.com',
            author_ip='10.0.0.2', agent='Mozilla/5.0',
        ),
        Annotation(
            id=2, site_id=1, owner_id=None, status='spam', body='Buy cheap stuff',
            author_name='Visitor', author_email='visitor@mail.com',
            author_url='http://spam.example', author_ip='10.0.0.9', agent='curl/8.0',
        ),
        Annotation(
            id=3, site_id=1, owner_id=3, status='hold', body='Is this still open?',
            author_name='Mary Jones', author_email='mary@corp.com',
            author_ip='10.0.0.3', agent='Mozilla/5.0', meta={'rating': '4'},
        ),
    ]
    return MemoryStore(
        profiles=profiles,
        annotations=annotations,
        contact_methods=['twitter'],
        password_salt='test-salt',
    )


def make_multisite_store() -> MemoryStore:
    sites = [Site(1, 'main'), Site(2, 'blog'), Site(3, 'shop')]
    profiles = [
        Profile(id=1, login='admin', slug='admin', email='admin@network.org',
                display_name='Network Admin', roles=['administrator'], sites=[1, 2, 3]),
        Profile(id=2, login='blogger', slug='blogger', email='blogger@network.org',
                display_name='Bea Blogger', roles=['author'], sites=[2]),
        Profile(id=3, login='shopper', slug='shopper', email='shopper@network.org',
                display_name='Sam Shopper', roles=['customer'], sites=[3]),
        Profile(id=4, login='both', slug='both', email='both@network.org',
                display_name='Bo Both', roles=['author', 'customer'], sites=[2, 3]),
    ]
    annotations = [
        Annotation(id=10, site_id=2, owner_id=2, body='First!',
                   author_name='Bea Blogger', author_email='blogger@network.org'),
        Annotation(id=11, site_id=3, owner_id=3, body='Where is my order?',
                   author_name='Sam Shopper', author_email='shopper@network.org'),
        Annotation(id=12, site_id=3, owner_id=None, body='Nice shop',
                   author_name='Guest', author_email='guest@mail.com'),
        Annotation(id=13, site_id=2, owner_id=4, body='Agreed',
                   author_name='Bo Both', author_email='both@network.org'),
    ]
    return MemoryStore(
        profiles=profiles,
        annotations=annotations,
        sites=sites,
        multisite=True,
        password_salt='test-salt',
    )


@pytest.fixture
def single_site_store():
    return make_single_site_store()


@pytest.fixture
def multisite_store():
    return make_multisite_store()


@pytest.fixture
def store_factory():
    """Build fresh, identical single-site stores."""
    return make_single_site_store
