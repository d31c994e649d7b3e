"""A Value Object representing an email address in the domain.

Every email entering the recovery protocol is normalized here (trimmed and
lower-cased) so lookups, the open-record uniqueness key and the account
uniqueness constraint all agree on one spelling.
"""

import re
from dataclasses import dataclass
from typing import ClassVar

from src.utils.i18n import get_translated_message


@dataclass(frozen=True, slots=True)
class Email:
    """An immutable, self-validating, normalized email address.

    Equality for `Email` objects is based on their normalized string value.

    Attributes:
        value: The normalized string representation of the email address.
    """

    value: str

    MAX_LENGTH: ClassVar[int] = 254
    EMAIL_PATTERN: ClassVar[re.Pattern] = re.compile(
        r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    )

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise TypeError("Email value must be a string.")

        normalized_value = self.value.strip().lower()
        object.__setattr__(self, "value", normalized_value)

        if not normalized_value:
            raise ValueError(get_translated_message("email_cannot_be_empty"))
        if len(normalized_value) > self.MAX_LENGTH:
            raise ValueError(get_translated_message("email_too_long"))
        if not self.EMAIL_PATTERN.match(normalized_value):
            raise ValueError(get_translated_message("invalid_email_format"))

    @property
    def domain(self) -> str:
        return self.value.split("@")[1]

    def mask_for_logging(self) -> str:
        """Returns a masked version of the email for safe logging.

        Example: 'us**@e*****.com'
        """
        local, domain_part = self.value.split("@")
        masked_local = f"{local[:2]}{'*' * max(len(local) - 2, 0)}"
        masked_domain = f"{domain_part[:1]}{'*' * max(len(domain_part) - 2, 0)}{domain_part[-1:]}"
        return f"{masked_local}@{masked_domain}"

    @classmethod
    def mask(cls, raw: str) -> str:
        """Mask a raw string that may not be a valid address."""
        try:
            return cls(raw).mask_for_logging()
        except (TypeError, ValueError):
            return "***"

    def __str__(self) -> str:
        return self.value
