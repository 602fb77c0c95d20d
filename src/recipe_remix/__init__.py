"""
Recipe Remix - photograph your ingredients, get recipes you can cook tonight.

Pieces:
- Ingredient detection from a photo
- Recipe suggestions grouped by cuisine
- Step-by-step cooking with chat-driven recipe edits
- Ingredient substitutions with flavor science
- Saved recipes per anonymous session
"""

__version__ = "1.0.0"
