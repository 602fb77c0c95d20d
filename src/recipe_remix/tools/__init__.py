"""
Recipe Remix - Tools Package.

Small pure helpers shared by the models and the core.
"""

from recipe_remix.tools.normalize import normalize_name, normalize_names

__all__ = [
    "normalize_name",
    "normalize_names",
]
