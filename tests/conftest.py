#
# Pytest Fixtures
#

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from textdump.engine import Engine
from textdump.registry import MetadataRegistry, reset_registry


# Fixtures -------------------------------------------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def clean_registry():
    """Forget the registrations and cached entries a test made in the process-wide registry."""
    yield
    reset_registry()


@pytest.fixture
def registry() -> MetadataRegistry:
    """A private registry with the default registrations."""
    return MetadataRegistry()


@pytest.fixture
def engine() -> Engine:
    """A fresh engine writing to an in-memory buffer."""
    return Engine()


def label(name: str) -> str:
    """The default member label."""
    return f"{name:<24} = "
