"""Six digit verification codes."""

import re
import secrets
from dataclasses import dataclass
from typing import ClassVar

from src.utils.i18n import get_translated_message


@dataclass(frozen=True, slots=True)
class VerificationCode:
    """A zero-padded six digit code such as ``"042517"``.

    Codes are compared as strings; ``"042517"`` and ``"42517"`` never match.
    """

    value: str

    LENGTH: ClassVar[int] = 6
    PATTERN: ClassVar[re.Pattern] = re.compile(r"^\d{6}$")

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.PATTERN.match(self.value):
            raise ValueError(get_translated_message("invalid_verification_code_format"))

    @classmethod
    def generate(cls) -> "VerificationCode":
        """Draw a code uniformly from 000000-999999 with the OS CSPRNG."""
        return cls(f"{secrets.randbelow(10 ** cls.LENGTH):0{cls.LENGTH}d}")

    def matches(self, submitted: str) -> bool:
        return self.value == submitted

    def __str__(self) -> str:
        return self.value
