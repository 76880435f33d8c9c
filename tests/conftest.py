"""
Shared fixtures for the tree model and view tests.
"""

import pytest

from treepruner.model.tree import TreeModel, generate_tree

REFERENCE_SEED = 12345


@pytest.fixture(scope="session")
def reference_tree() -> TreeModel:
    """The tree for the default seed, generated once per test session."""
    return generate_tree(REFERENCE_SEED)
