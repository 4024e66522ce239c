"""URL-safe random slugs for scheduling links."""

import secrets

# nanoid's default URL-friendly alphabet
URL_ALPHABET = "useandom-26T198340PX75pxJACKVERYMINDBUSHWOLF_GQZbfghjklqvwyzrict"


def generate_slug(length: int = 10) -> str:
    """Generate a random shareable token."""
    return "".join(secrets.choice(URL_ALPHABET) for _ in range(length))
