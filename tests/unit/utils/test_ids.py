"""Unit tests for identifier helpers."""

from __future__ import annotations

import re

import pytest

from apigw_sync.utils.ids import MAX_STATEMENT_ID_LENGTH, generate_id, statement_id


@pytest.mark.unit
class TestGenerateId:
    """Tests for generate_id."""

    def test_length_and_alphabet(self) -> None:
        """Ids are lowercase alphanumeric of the requested length."""
        assert re.fullmatch(r"[a-z0-9]{12}", generate_id(12))

    def test_ids_differ(self) -> None:
        """Consecutive ids are not repeated."""
        assert len({generate_id() for _ in range(20)}) == 20


@pytest.mark.unit
class TestStatementId:
    """Tests for statement_id."""

    def test_sanitizes_path_characters(self) -> None:
        """Slashes and braces collapse to dashes ahead of a digest suffix."""
        sid = statement_id("apigw", "abc123", "GET", "/users/{id}")

        assert re.fullmatch(r"apigw-abc123-GET-users-id-[0-9a-f]{12}", sid)

    @pytest.mark.parametrize(
        ("first", "second"),
        [
            ("/users/{id}", "/users/id"),
            ("/a-b", "/a.b"),
            ("/a/b", "/a-b"),
        ],
    )
    def test_paths_that_read_alike_stay_distinct(self, first: str, second: str) -> None:
        """Sanitising is lossy, the id is not."""
        assert statement_id("apigw", "abc", "GET", first) != statement_id(
            "apigw", "abc", "GET", second
        )

    def test_part_boundaries_matter(self) -> None:
        """Parts containing the join character do not collide."""
        assert statement_id("a-b", "c") != statement_id("a", "b-c")

    def test_deterministic(self) -> None:
        """The same parts always give the same id."""
        assert statement_id("a", "/b") == statement_id("a", "/b")

    def test_long_ids_are_truncated_with_digest(self) -> None:
        """Over-long ids stay within the limit and remain distinct."""
        first = statement_id("apigw", "abc", "GET", "/" + "x" * 200)
        second = statement_id("apigw", "abc", "GET", "/" + "x" * 199 + "y")

        assert len(first) <= MAX_STATEMENT_ID_LENGTH
        assert first != second
        assert re.fullmatch(r"[0-9A-Za-z_-]+", first)
