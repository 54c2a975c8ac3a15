import re

from unidecode import unidecode


def slugify(text: str) -> str:
    """Lowercase ASCII slug: transliterate, then join alphanumeric runs with hyphens."""
    text = unidecode(text).lower()
    text = re.sub(r"[^a-z0-9]+", "-", text).strip("-")
    return text
