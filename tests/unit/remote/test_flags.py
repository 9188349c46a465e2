"""Tests for remote flag normalization."""

import pytest

from academy.modules.remote.flags import coerce_flag


@pytest.mark.parametrize(
    "value", [True, "True", "true", "Yes", " yes ", "1", "checked", 1]
)
def test_truthy_values(value):
    assert coerce_flag(value) is True


@pytest.mark.parametrize(
    "value", [False, "False", "No", "", "maybe", 0, None, [], {}]
)
def test_falsy_values(value):
    assert coerce_flag(value) is False
