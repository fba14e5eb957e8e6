"""
Faker-backed provider of fake field values.

One provider serves one run. It owns a single Faker instance for the run's
locale and reseeds it once per target, so that consecutive targets receive
distinct but reproducible values.
"""

import logging
from datetime import date, datetime
from typing import Any, Optional

from faker import Faker

from cms_anonymize.anonymizers.generators import get_generator
from cms_anonymize.errors import ValidationError
from cms_anonymize.models import GenerationContext
from cms_anonymize.utils import slugify

logger = logging.getLogger(__name__)


class FakeDataProvider:
    """
    Generates realistic fake values for profile and annotation fields.

    Examples:
        - email_address("doe.john") -> doe.john@example.org
        - email_address("doe.john") with custom domains ["test"] -> doe.john@test.net
    """

    def __init__(self, context: GenerationContext):
        """
        Initialize the provider.

        Args:
            context: Generation context of the run (locale, seed, domains, custom fields)
        """
        self.context = context
        try:
            self.fake = Faker(context.locale)
        except AttributeError:
            raise ValidationError(f"Unknown language '{context.locale}'.")

        # Fail on unknown selectors before the first record is touched.
        for field_name, selector in context.custom_fields.items():
            get_generator(selector, field_name)

        self.reseed()

    def reseed(self) -> None:
        """Seed the Faker instance with the context's current seed, if any."""
        if self.context.seed is not None:
            self.fake.seed_instance(self.context.seed)

    def advance(self) -> Optional[int]:
        """Advance the context seed and reseed; called once per target."""
        seed = self.context.advance_seed()
        self.reseed()
        return seed

    def first_name(self) -> str:
        return self.fake.first_name()

    def last_name(self) -> str:
        return self.fake.last_name()

    def name(self) -> str:
        return self.fake.name()

    def user_name(self) -> str:
        return self.fake.user_name()

    def password(self) -> str:
        return self.fake.password()

    def url(self) -> str:
        return self.fake.url()

    def ipv4(self) -> str:
        return self.fake.ipv4()

    def user_agent(self) -> str:
        return self.fake.user_agent()

    def registered(self) -> str:
        """Registration timestamp between the start of the decade and today."""
        today = date.today()
        decade_start = datetime(today.year - today.year % 10, 1, 1)
        midnight = datetime(today.year, today.month, today.day)
        registered = self.fake.date_time_between_dates(decade_start, midnight)
        return registered.strftime('%Y-%m-%d %H:%M:%S')

    def description(self) -> str:
        return self.fake.text(max_nb_chars=200)

    def body(self) -> str:
        return self.fake.paragraph(nb_sentences=4)

    def numerify(self, pattern: str) -> str:
        return self.fake.numerify(pattern)

    def local_part(self, text: str, separator: str = '.') -> str:
        """
        ASCII identifier built from a name, e.g. "Doe John" -> "doe.john".

        Names without Latin letters (Cyrillic, CJK, Greek...) slugify to
        nothing; Faker's user name, romanized for the locale, is used instead.

        Args:
            text: Name to derive the identifier from
            separator: Replacement for word boundaries

        Returns:
            Non-empty identifier
        """
        local = slugify(text).replace('-', separator)
        if not local:
            local = slugify(self.user_name()).replace('-', separator)
        return local or self.numerify('user#####')

    def contact_handle(self, first_name: str) -> str:
        """Handle for a contact method, e.g. "john_48213"."""
        return self.numerify(f"{self.local_part(first_name, '')}_#####")

    def email_domain(self) -> str:
        """
        Pick the domain for a fake email.

        A custom domain is drawn at random from the context's list; a bare
        name (no dot after its first character) gets a generated TLD.
        Without custom domains, Faker's safe domains are used.

        Returns:
            Domain name
        """
        domains = self.context.custom_email_domains
        if not domains:
            return self.fake.safe_domain_name()

        domain = self.fake.random_element(domains)
        if '.' not in domain[1:]:
            domain = f"{domain}.{self.fake.tld()}"
        return domain

    def email_address(self, local_part: str) -> str:
        return f"{local_part}@{self.email_domain()}"

    def custom_field(self, field_name: str, selector: Optional[str]) -> Any:
        """
        Generate a value for a custom field.

        Args:
            field_name: Name of the custom field
            selector: Registered generator selector, None for default text

        Returns:
            Fake value
        """
        generator = get_generator(selector, field_name)
        return generator(self.fake)

    def __repr__(self) -> str:
        return f"FakeDataProvider(locale={self.context.locale}, seed={self.context.seed})"
