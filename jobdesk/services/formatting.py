"""Text helpers for outbound WhatsApp messages."""

import re
from collections.abc import Mapping

DEFAULT_COUNTRY_CODE = "91"
MAX_DESCRIPTION_LENGTH = 200
ELLIPSIS = "…"

# Keys are looked up in the variables mapping, never spliced into a pattern
_PLACEHOLDER = re.compile(r"\{\{([^{}]+)\}\}")
_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")
_NON_DIGIT = re.compile(r"\D")


def render_template(template: str, variables: Mapping[str, object]) -> str:
    """Replace every ``{{key}}`` with its value.

    Matching is exact and case-sensitive. Placeholders without a value
    render as an empty string; unused variables are ignored.
    """

    def substitute(match: re.Match[str]) -> str:
        value = variables.get(match.group(1))
        return "" if value is None else str(value)

    return _PLACEHOLDER.sub(substitute, template)


def sanitize_task_description(description: str | None) -> str:
    """Strip markup, collapse whitespace and clamp to 200 characters."""
    if not description:
        return ""
    stripped = _WHITESPACE.sub(" ", _TAG.sub("", description)).strip()
    if len(stripped) <= MAX_DESCRIPTION_LENGTH:
        return stripped
    return stripped[:MAX_DESCRIPTION_LENGTH] + ELLIPSIS


def digits_only(value: str) -> str:
    return _NON_DIGIT.sub("", value)


def format_phone_for_whatsapp(
    phone: str | None,
    country_code: str = DEFAULT_COUNTRY_CODE,
) -> str | None:
    """Normalize a free-form phone number to a dialable international form.

    Ten digits or fewer is treated as a local number and gets the default
    country code; anything longer is assumed to carry its own.
    """
    if not phone:
        return None
    digits = digits_only(phone)
    if not digits:
        return None
    if len(digits) <= 10:
        return f"{country_code}{digits}"
    return digits
