import string
from dataclasses import dataclass
from typing import Dict, Optional

CODE_LENGTH = 7
BASE36_ALPHABET = string.digits + string.ascii_uppercase

# Referral count needed -> badge unlocked at that count
BADGE_MILESTONES: Dict[int, str] = {1: "bronze", 2: "silver", 3: "gold"}


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_referral_code(email: str) -> str:
    """
    Derive a short referral code from an email address.

    The email is normalised (trimmed, lower-cased) and fed through a 32-bit
    signed ``h * 31 + c`` rolling hash over its UTF-16 code units, so the same
    address always produces the same code. Different addresses can collide.
    """
    normalized = email.strip().lower()
    # surrogatepass keeps unpaired surrogates as their own code units
    units = normalized.encode("utf-16-le", "surrogatepass")

    hash_value = 0
    for i in range(0, len(units), 2):
        char_code = units[i] | (units[i + 1] << 8)
        hash_value = _to_int32(hash_value * 31 + char_code)

    encoded = _to_base36(abs(hash_value))
    return encoded.rjust(CODE_LENGTH, "0")[:CODE_LENGTH]


def build_referral_link(base_url: str, referral_code: str) -> str:
    return f"{base_url}?ref={referral_code}"


def get_badge(referral_count: int, milestones: Optional[Dict[int, str]] = None) -> Optional[str]:
    """Badge for the highest milestone not exceeding ``referral_count``, or None."""
    milestones = BADGE_MILESTONES if milestones is None else milestones
    reached = [threshold for threshold in milestones if threshold <= referral_count]
    if not reached:
        return None
    return milestones[max(reached)]


@dataclass(frozen=True)
class BadgeProgress:
    previous_count: int
    new_count: int
    previous_badge: str
    new_badge: str

    @property
    def unlocked(self) -> bool:
        return self.new_badge != self.previous_badge


def next_badge(previous_count: int, previous_badge: str = "") -> BadgeProgress:
    """One more referral. Keeps the previous badge when no milestone is reached yet."""
    new_count = previous_count + 1
    return BadgeProgress(
        previous_count=previous_count,
        new_count=new_count,
        previous_badge=previous_badge,
        new_badge=get_badge(new_count) or previous_badge,
    )
