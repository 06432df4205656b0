import re

from nailbook.core import config

_NON_DIGITS = re.compile(r'\D')
INTERNATIONAL_PREFIX = '00'


def normalize_phone(
    phone: str,
    country_code: str | None = None,
    trunk_prefix: str | None = None,
) -> str:
    """Return ``phone`` in international form, e.g. ``050-123-4567`` -> ``+972501234567``."""
    country_code = country_code or config.PHONE_COUNTRY_CODE
    trunk_prefix = trunk_prefix or config.PHONE_TRUNK_PREFIX

    digits = _NON_DIGITS.sub('', phone or '')
    if digits.startswith(INTERNATIONAL_PREFIX):
        digits = digits[len(INTERNATIONAL_PREFIX):]
    if not digits:
        return ''

    if not digits.startswith(country_code) and digits.startswith(trunk_prefix):
        digits = country_code + digits[len(trunk_prefix):]

    return f'+{digits}'
