"""
Pytest configuration and fixtures for Recipe Remix tests.
"""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest

# Set test environment before importing recipe_remix modules
os.environ["REMIX_ENV"] = "development"
os.environ.setdefault("OPENAI_API_KEY", "test-key-not-real")

from factories import make_group
from recipe_remix.core.session import RemixSession
from recipe_remix.models import Ingredient
from recipe_remix.services.base import RecipeAssistant


@pytest.fixture
def assistant():
    """RecipeAssistant with every operation mocked."""
    mock = MagicMock(spec=RecipeAssistant)
    mock.detect_ingredients = AsyncMock(return_value=[])
    mock.generate_recipes = AsyncMock(return_value=[make_group()])
    mock.generate_substitutions = AsyncMock(return_value=[])
    mock.chat = AsyncMock()
    return mock


@pytest.fixture
def store():
    """SavedRecipeStore stand-in."""
    mock = MagicMock()
    mock.save = AsyncMock()
    mock.list_saved = AsyncMock(return_value=[])
    mock.delete = AsyncMock(return_value=True)
    mock.set_favorite = AsyncMock(return_value=True)
    mock.count = AsyncMock(return_value=0)
    return mock


@pytest.fixture
def session(assistant, store):
    return RemixSession(assistant, store=store, session_id="session-test")


@pytest.fixture
def pantry():
    return [
        Ingredient(name="chicken breast", category="protein", quantity="2"),
        Ingredient(name="bell pepper", category="produce"),
        Ingredient(name="rice", category="grain", quantity="2 cups"),
    ]


@pytest.fixture
def mock_supabase():
    """Mock Supabase client for unit tests."""
    mock_client = MagicMock()

    # Mock table operations (every builder call returns the same table)
    mock_table = MagicMock()
    mock_table.select.return_value = mock_table
    mock_table.insert.return_value = mock_table
    mock_table.update.return_value = mock_table
    mock_table.delete.return_value = mock_table
    mock_table.eq.return_value = mock_table
    mock_table.order.return_value = mock_table
    mock_table.execute.return_value = MagicMock(data=[], count=0)

    mock_client.table.return_value = mock_table

    return mock_client
