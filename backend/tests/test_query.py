"""Tests for query-box interpretation."""

import pytest

from chroma_admin.normalize import is_empty_query, parse_query


def test_comma_separated_numbers_become_vector() -> None:
    assert parse_query("1,2,3") == [1.0, 2.0, 3.0]
    assert parse_query(" 0.25, -1e-3 ,4 ") == [0.25, -0.001, 4.0]


@pytest.mark.parametrize("text", ["what is chroma", "apples, pears", "1,two,3", "nan,1", "1,,2"])
def test_other_text_passes_through(text: str) -> None:
    assert parse_query(text) == text


def test_sequences_are_already_vectors() -> None:
    assert parse_query([1, 2]) == [1.0, 2.0]


@pytest.mark.parametrize("value,expected", [(None, True), ("", True), ("   ", True), ([], True), ("q", False), ([0.1], False)])
def test_is_empty_query(value, expected: bool) -> None:
    assert is_empty_query(value) is expected
