"""
Phone-number normalization for the fuzzy joins between students, chat logs
and documents.

Chat sessions are keyed by free text that usually embeds the WhatsApp number
(``"5493834000000@s.whatsapp.net"``, ``"wa-3834000000"``...), while student
records hold whatever the operator typed (``"(383) 400-0000 / 383 4111111"``).
Matching is therefore done on digits only, by substring, and can return
zero or more rows.
"""

from __future__ import annotations

import re

_SEPARATORS_RE = re.compile(r"[,;/|]")
_NON_DIGITS_RE = re.compile(r"\D+")

# Shorter digit runs would match unrelated sessions by accident.
MIN_PHONE_DIGITS = 6

# Argentine national numbers (area code + subscriber) are 10 digits; longer
# runs carry a country code or the mobile 9 ("54 9 ...").
NATIONAL_DIGITS = 10


def phone_digits(value: str | None) -> str:
    """Strip everything but digits from ``value``."""

    if not value:
        return ""
    return _NON_DIGITS_RE.sub("", str(value))


def split_phones(value: str | None) -> list[str]:
    """Return the normalized phone numbers contained in ``value``.

    Multiple numbers may be separated by ``,``, ``;``, ``/`` or ``|``.
    Numbers longer than :data:`NATIONAL_DIGITS` keep only their last
    :data:`NATIONAL_DIGITS` digits, so "+54 9 383 400-0000" and
    "3834000000" produce the same key and both match a session id such as
    "5493834000000@s.whatsapp.net". Duplicates and fragments shorter than
    :data:`MIN_PHONE_DIGITS` are dropped; order of first appearance is kept.
    """

    if not value:
        return []
    phones: list[str] = []
    for chunk in _SEPARATORS_RE.split(str(value)):
        digits = phone_digits(chunk)[-NATIONAL_DIGITS:]
        if len(digits) < MIN_PHONE_DIGITS or digits in phones:
            continue
        phones.append(digits)
    return phones
