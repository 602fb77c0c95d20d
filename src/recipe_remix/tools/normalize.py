"""
Recipe Remix - Name Normalization.

Ingredient names are compared by value everywhere (matching, substitutions,
catalog math), so they are normalized once at the boundary.
"""

from collections.abc import Iterable


def normalize_name(name: str) -> str:
    """
    Normalize an ingredient name for consistent matching.

    Operations:
    - Lowercase
    - Strip leading/trailing whitespace
    - Collapse multiple spaces to single space

    Examples:
        normalize_name("  Chicken Breast  ") -> "chicken breast"
        normalize_name("OLIVE   oil") -> "olive oil"
    """
    return " ".join(name.lower().strip().split())


def normalize_names(names: Iterable[str]) -> list[str]:
    """
    Normalize a list of names, dropping blanks and repeats.

    Order of first appearance is kept.
    """
    seen: set[str] = set()
    result = []
    for raw in names:
        name = normalize_name(raw)
        if name and name not in seen:
            seen.add(name)
            result.append(name)
    return result


def normalize_choice(value: str) -> str:
    """Normalize an enum-ish string ("  Produce " -> "produce")."""
    return value.strip().lower()
