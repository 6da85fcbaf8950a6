"""Tests for untitled placeholder naming."""

import pytest

from sketchsite.services.project_service import next_untitled_name

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "existing, expected",
    [
        ([], "Untitled document"),
        (["Landing page"], "Untitled document"),
        (["Untitled document"], "Untitled document (2)"),
        (["Untitled document", "Untitled document (2)"], "Untitled document (3)"),
        (["Untitled document (5)"], "Untitled document (6)"),
        (["Untitled document (2)", "Untitled document (7)", "Untitled document"], "Untitled document (8)"),
        (["Untitled documents", "Untitled document (x)"], "Untitled document"),
    ],
)
def test_next_untitled_name(existing, expected):
    assert next_untitled_name(existing) == expected
