"""
Recipe Remix - Database layer.
"""

from recipe_remix.db.client import get_client, is_configured
from recipe_remix.db.saved_recipes import SavedRecipeStore

__all__ = ["SavedRecipeStore", "get_client", "is_configured"]
