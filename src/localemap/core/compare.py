"""Canonical ordering for comparison slugs.

Comparison pages are symmetric: "kling-vs-sora" and "sora-vs-kling" describe
the same page, so both collapse to the lexicographically ordered form.
"""

COMPARE_SEPARATOR = "-vs-"
DEFAULT_COMPARE_PREFIX = "/ai-video-engines"


def canonicalize_compare_slug(slug: str) -> str:
    """Order both sides of a two-sided compare slug.

    Args:
        slug: Slug such as "sora-vs-kling"

    Returns:
        Ordered slug ("kling-vs-sora"), or the input if it isn't two-sided
    """
    parts = slug.split(COMPARE_SEPARATOR)
    if len(parts) != 2:
        return slug
    return COMPARE_SEPARATOR.join(sorted(parts))


def normalize_compare_path(path: str, prefix: str = DEFAULT_COMPARE_PREFIX) -> str:
    """Canonicalize the compare slug of a path directly under the compare prefix.

    Only paths of the form "<prefix>/<left>-vs-<right>" are rewritten; deeper
    paths and paths outside the prefix pass through unchanged.

    Args:
        path: Canonical path
        prefix: Route prefix of comparison pages

    Returns:
        Normalized path
    """
    base = prefix.rstrip("/") + "/"
    if not path.startswith(base):
        return path

    trimmed = path.split("?", 1)[0].rstrip("/")
    slug = trimmed[len(base) :]
    if not slug or "/" in slug or COMPARE_SEPARATOR not in slug:
        return path

    return base + canonicalize_compare_slug(slug)
