# nfc_wallet/core/validator.py
"""
Parameter checks mirroring the limits hard-coded in the deployed contracts.

Inputs the contracts would revert on are rejected here first.
ContractLimits must match the contracts;
ContractService.fetch_domain_limits() can refresh the domain bounds from chain.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, NamedTuple, Optional

DOMAIN_PREFIX = "advx-"
DOMAIN_SUFFIX = ".inj"

RARITIES = ("R", "SR", "SSR", "UR")


class ValidationResult(NamedTuple):
    valid: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class ContractLimits:
    # CatNFT
    draw_fee: str = "0.1"
    max_cat_name_length: int = 100
    rarity_probabilities: Dict[str, int] = field(
        default_factory=lambda: {"R": 6000, "SR": 3000, "SSR": 900, "UR": 100}
    )
    social_bonus_threshold: int = 10
    social_bonus_rate: int = 1

    # INJDomainNFT: contract allows 30 chars including the 5 char "advx-" prefix
    min_domain_length: int = 1
    max_domain_length: int = 25

    # NFCWalletRegistry
    min_uid_length: int = 1
    max_uid_length: int = 255


DOMAIN_REGEX = re.compile(r"^[a-z0-9]+([a-z0-9-]*[a-z0-9])?$")

DEFAULT_LIMITS = ContractLimits()


def full_domain_name(domain_prefix: str) -> str:
    """'alice' -> 'advx-alice.inj'"""
    return f"{DOMAIN_PREFIX}{domain_prefix}{DOMAIN_SUFFIX}"


def validate_domain_prefix(domain_prefix: str, limits: ContractLimits = DEFAULT_LIMITS) -> ValidationResult:
    if not domain_prefix:
        return ValidationResult(False, "Domain prefix must not be empty")

    if len(domain_prefix) < limits.min_domain_length:
        return ValidationResult(
            False, f"Domain prefix must be at least {limits.min_domain_length} characters"
        )

    if len(domain_prefix) > limits.max_domain_length:
        return ValidationResult(
            False, f"Domain prefix must be at most {limits.max_domain_length} characters"
        )

    if "--" in domain_prefix:
        return ValidationResult(False, "Domain prefix must not contain consecutive hyphens")

    if not DOMAIN_REGEX.match(domain_prefix):
        return ValidationResult(
            False,
            "Invalid domain prefix: only lowercase letters, digits and hyphens are allowed, "
            "and it cannot start or end with a hyphen",
        )

    return ValidationResult(True)


def validate_cat_name(cat_name: str, limits: ContractLimits = DEFAULT_LIMITS) -> ValidationResult:
    if not cat_name or not cat_name.strip():
        return ValidationResult(False, "Cat name must not be empty")

    if len(cat_name) > limits.max_cat_name_length:
        return ValidationResult(
            False, f"Cat name must be at most {limits.max_cat_name_length} characters"
        )

    return ValidationResult(True)


def validate_nfc_uid(uid: str, limits: ContractLimits = DEFAULT_LIMITS) -> ValidationResult:
    if not uid or not uid.strip():
        return ValidationResult(False, "NFC UID must not be empty")

    if len(uid) < limits.min_uid_length:
        return ValidationResult(False, f"NFC UID must be at least {limits.min_uid_length} characters")

    if len(uid) > limits.max_uid_length:
        return ValidationResult(False, f"NFC UID must be at most {limits.max_uid_length} characters")

    return ValidationResult(True)


def validate_social_interaction(my_nfc: str, other_nfc: str,
                                limits: ContractLimits = DEFAULT_LIMITS) -> ValidationResult:
    mine = validate_nfc_uid(my_nfc, limits)
    if not mine.valid:
        return ValidationResult(False, f"Invalid own NFC: {mine.error}")

    other = validate_nfc_uid(other_nfc, limits)
    if not other.valid:
        return ValidationResult(False, f"Invalid other NFC: {other.error}")

    if my_nfc == other_nfc:
        return ValidationResult(False, "Cannot interact with your own card")

    return ValidationResult(True)


def calculate_social_bonus(interaction_count: int, limits: ContractLimits = DEFAULT_LIMITS) -> int:
    """Bonus percentage: +rate for every threshold interactions"""
    return (interaction_count // limits.social_bonus_threshold) * limits.social_bonus_rate


def rarity_probabilities(limits: ContractLimits = DEFAULT_LIMITS) -> Dict[str, int]:
    probabilities = dict(limits.rarity_probabilities)
    probabilities["total"] = sum(limits.rarity_probabilities.values())
    return probabilities


def format_rarity_probabilities(limits: ContractLimits = DEFAULT_LIMITS) -> Dict[str, str]:
    # weights are out of 10000
    return {
        rarity: f"{weight / 100:.1f}%"
        for rarity, weight in limits.rarity_probabilities.items()
    }


def rarity_to_string(rarity_index: int) -> str:
    if 0 <= rarity_index < len(RARITIES):
        return RARITIES[rarity_index]
    return "Unknown"
