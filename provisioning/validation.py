"""
Storage account name validation.

Azure requires account names to be 3-24 characters long and made of numbers
and lower-case letters only. The checks below reject names that are too short
or too long, contain upper-case letters, or contain any punctuation/whitespace
character from a fixed deny-list. Characters outside the deny-list (including
non-ASCII lower-case letters) pass validation and are left for the Azure
service itself to reject.
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

MIN_ACCOUNT_NAME_LENGTH = 3
MAX_ACCOUNT_NAME_LENGTH = 24

FORBIDDEN_CHARACTERS = frozenset('!"#$%&\'()*+,-./:;<=>?@[\\]^_`{|}~ \t\r\n\x0b\x0c')


class NameViolation(enum.Enum):
    TOO_SHORT = 'too_short'
    TOO_LONG = 'too_long'
    UPPERCASE = 'uppercase'
    FORBIDDEN_CHARACTERS = 'forbidden_characters'


@dataclass(frozen=True)
class NameReason:
    code: NameViolation
    message: str
    # Offending characters in order of first appearance, when relevant
    characters: Tuple[str, ...] = ()


@dataclass(frozen=True)
class NameVerdict:
    name: str
    reasons: Tuple[NameReason, ...] = field(default_factory=tuple)

    @property
    def valid(self) -> bool:
        return not self.reasons

    @property
    def codes(self) -> Tuple[NameViolation, ...]:
        return tuple(reason.code for reason in self.reasons)

    @property
    def message(self) -> str:
        """All reasons joined into one human-readable sentence."""
        if self.valid:
            return f"'{self.name}' is a valid storage account name."
        return ' '.join(reason.message for reason in self.reasons)


def _distinct(chars) -> Tuple[str, ...]:
    seen = []
    for char in chars:
        if char not in seen:
            seen.append(char)
    return tuple(seen)


class NameValidator:
    """
    Checks a candidate storage account name against every naming rule.

    All rules are evaluated, so a single call reports every violation.
    Validation never raises: failures are returned in the NameVerdict.
    """

    def __init__(self, logger_obj: Optional[logging.Logger] = None):
        self.logger = logger_obj or logger

    def validate(self, name: str) -> NameVerdict:
        reasons = []

        if len(name) < MIN_ACCOUNT_NAME_LENGTH:
            reasons.append(NameReason(
                NameViolation.TOO_SHORT,
                f"Name is too short ({len(name)} characters); "
                f"it must be at least {MIN_ACCOUNT_NAME_LENGTH} characters long.",
            ))
        elif len(name) > MAX_ACCOUNT_NAME_LENGTH:
            reasons.append(NameReason(
                NameViolation.TOO_LONG,
                f"Name is too long ({len(name)} characters); "
                f"it must be at most {MAX_ACCOUNT_NAME_LENGTH} characters long.",
            ))

        if name != name.lower():
            uppercase = _distinct(c for c in name if c != c.lower())
            reasons.append(NameReason(
                NameViolation.UPPERCASE,
                f"Name must not contain upper-case letters: {' '.join(uppercase)}.",
                uppercase,
            ))

        forbidden = _distinct(c for c in name if c in FORBIDDEN_CHARACTERS)
        if forbidden:
            listed = ' '.join(f"'{c}'" for c in forbidden)
            reasons.append(NameReason(
                NameViolation.FORBIDDEN_CHARACTERS,
                f"Name must not contain the characters {listed}.",
                forbidden,
            ))

        verdict = NameVerdict(name=name, reasons=tuple(reasons))
        if verdict.valid:
            self.logger.debug(f"Account name '{name}' passed validation")
        else:
            self.logger.debug(
                f"Account name '{name}' failed validation: "
                f"{', '.join(code.value for code in verdict.codes)}"
            )
        return verdict


_default_validator = NameValidator()


def validate_account_name(name: str) -> NameVerdict:
    """Validates `name` with the module's default NameValidator."""
    return _default_validator.validate(name)
