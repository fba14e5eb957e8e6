"""
Error taxonomy for the anonymization pipeline.

Every fatal condition raised by the pipeline derives from AnonymizerError so
that callers (the CLI in particular) can report it and stop. Conditions that
only deserve a warning (skipped identifiers, empty target sets, cascade
failures) are never raised; they are recorded on the RunResult instead.
"""


class AnonymizerError(Exception):
    """Base class for all fatal anonymization errors."""


class ValidationError(AnonymizerError):
    """Invalid input detected before any record is mutated."""


class SiteNotFoundError(ValidationError):
    """An explicit site ID does not match any site in the store."""

    def __init__(self, site_id):
        self.site_id = site_id
        super().__init__(
            f"There is no site corresponding to the ID '{site_id}'. Aborting..."
        )


class ProfileNotFoundError(AnonymizerError):
    """An identifier could not be resolved and skipping is disabled."""

    def __init__(self, kind: str, token: str):
        self.kind = kind
        self.token = token
        super().__init__(
            f"The {kind} '{token}' doesn't seem to exist. "
            "Consider using the `--skip-not-found` flag. Aborting..."
        )


class UnknownGeneratorError(ValidationError):
    """A custom field refers to a generator selector that is not registered."""

    def __init__(self, selector: str, field_name: str = ""):
        self.selector = selector
        self.field_name = field_name
        target = f" (custom field '{field_name}')" if field_name else ""
        super().__init__(f"Unknown fake data generator '{selector}'{target}.")


class LoginExhaustedError(AnonymizerError):
    """No unused login could be generated within the attempt budget."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            "Unable to find a fake username that was not already in use "
            f"after {attempts} attempts. Consider running the script once again. Aborting..."
        )


class AbortedError(AnonymizerError):
    """The operator declined the confirmation prompt."""
