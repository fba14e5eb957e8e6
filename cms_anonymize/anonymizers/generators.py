"""
Registry of fake data generators for custom fields.

Custom fields are declared as ``name::selector``. The selector is looked up
in a static registry of generator functions, each taking the Faker instance
of the current run.
"""

from typing import Any, Callable, Dict, Optional

import regex
from faker import Faker

from cms_anonymize.errors import UnknownGeneratorError
from cms_anonymize.utils import string_to_mapping

GeneratorFunc = Callable[[Faker], Any]


def default_text(fake: Faker) -> str:
    """Short sentence used when a custom field has no selector."""
    return fake.text(max_nb_chars=30).rstrip('.')


GENERATORS: Dict[str, GeneratorFunc] = {
    # People
    'name': lambda fake: fake.name(),
    'first_name': lambda fake: fake.first_name(),
    'last_name': lambda fake: fake.last_name(),
    'user_name': lambda fake: fake.user_name(),
    'job': lambda fake: fake.job(),
    'company': lambda fake: fake.company(),
    # Contact
    'email': lambda fake: fake.safe_email(),
    'phone_number': lambda fake: fake.phone_number(),
    'url': lambda fake: fake.url(),
    # Location
    'address': lambda fake: fake.address(),
    'street_address': lambda fake: fake.street_address(),
    'city': lambda fake: fake.city(),
    'postcode': lambda fake: fake.postcode(),
    'country': lambda fake: fake.country(),
    'latitude': lambda fake: str(fake.latitude()),
    'longitude': lambda fake: str(fake.longitude()),
    # Network
    'ipv4': lambda fake: fake.ipv4(),
    'ipv6': lambda fake: fake.ipv6(),
    'user_agent': lambda fake: fake.user_agent(),
    # Dates
    'date': lambda fake: fake.date(),
    'date_of_birth': lambda fake: fake.date_of_birth().isoformat(),
    'date_time': lambda fake: fake.date_time().strftime('%Y-%m-%d %H:%M:%S'),
    # Text
    'word': lambda fake: fake.word(),
    'sentence': lambda fake: fake.sentence(),
    'paragraph': lambda fake: fake.paragraph(),
    'text': lambda fake: fake.text(),
    # Misc
    'iban': lambda fake: fake.iban(),
    'uuid': lambda fake: fake.uuid4(),
}

ALIASES = {
    'phone': 'phone_number',
    'username': 'user_name',
    'firstname': 'first_name',
    'lastname': 'last_name',
    'safe_email': 'email',
    'zip': 'postcode',
    'zipcode': 'postcode',
    'ip': 'ipv4',
    'birthdate': 'date_of_birth',
}


def normalize_selector(selector: str) -> str:
    """
    Normalize a selector to its registry key.

    ``phoneNumber()`` and ``phone_number`` both normalize to ``phone_number``.
    """
    selector = selector.replace('(', '').replace(')', '').strip()
    selector = regex.sub(r'(?<=[a-z0-9])([A-Z])', r'_\1', selector).lower()
    return ALIASES.get(selector, selector)


def get_generator(selector: Optional[str], field_name: str = "") -> GeneratorFunc:
    """
    Look up the generator for a selector.

    Args:
        selector: Generator selector, None or empty for the default text
        field_name: Custom field the selector belongs to (for error messages)

    Returns:
        Generator function taking a Faker instance

    Raises:
        UnknownGeneratorError: If the selector is not registered
    """
    if not selector:
        return default_text
    key = normalize_selector(selector)
    if key not in GENERATORS:
        raise UnknownGeneratorError(selector, field_name)
    return GENERATORS[key]


def parse_custom_fields(value: Optional[str]) -> Dict[str, Optional[str]]:
    """
    Parse and validate a ``--custom-fields`` argument.

    Every selector is checked against the registry so that an unknown one
    fails before any record is touched.
    """
    fields = string_to_mapping(value)
    for field_name, selector in fields.items():
        get_generator(selector, field_name)
    return fields
