"""Tests for winnowing and the fingerprint pipeline."""

import operator

from tokenprint.config import Config
from tokenprint.core.types import TokenKind
from tokenprint.fingerprint import exact_equal, extract, fingerprint_tokens, fingerprint_unit, winnow


def winnow_ints(values, window_size):
    return winnow(values, window_size, hash_key=lambda v: v, equal=operator.eq)


class TestWinnow:
    """Test window minimum selection."""

    def test_empty_input(self):
        """Test that nothing in gives nothing out."""
        assert winnow([], 3) == []

    def test_minimum_per_window(self):
        """Test the minimum of each window is selected."""
        assert winnow_ints([5, 4, 9, 1, 7], 2) == [4, 1]

    def test_adjacent_repeats_dropped(self):
        """Test that a selection equal to the last one is skipped."""
        assert winnow_ints([5, 3, 3, 7, 1], 2) == [3, 1]

    def test_leftmost_on_ties(self):
        """Test that ties resolve to the earliest candidate."""
        items = [("b", 2), ("a", 1), ("c", 1), ("d", 3)]
        selected = winnow(items, 3, hash_key=lambda item: item[1], equal=operator.eq)
        assert selected == [("a", 1)]

    def test_short_input_single_window(self):
        """Test fewer k-grams than the window size."""
        assert winnow_ints([8, 2, 6], 10) == [2]

    def test_int_main_void(self, make_unit):
        """Test `int main(void) {int a;}`: 6 k-grams winnow to 4 fingerprints."""
        kgrams = extract(make_unit("int main(void) {int a;}").tokens(), 5)
        assert len(kgrams) == 6

        fingerprints = winnow(kgrams, 3)
        assert len(fingerprints) == 4
        assert all(fp in kgrams for fp in fingerprints)

    def test_no_adjacent_exact_equal(self, make_unit):
        """Test that adjacent fingerprints never share spellings."""
        source = "int a; int a; int a; int a; int a; int a; int b;"
        fingerprints = winnow(extract(make_unit(source).tokens(), 3), 2)
        assert fingerprints
        for previous, current in zip(fingerprints, fingerprints[1:]):
            assert not exact_equal(previous, current)

    def test_preserves_order(self, make_unit):
        """Test that fingerprints keep document order."""
        source = "int f(int x) { return x + 1; } int g(int y) { return y * 2; }"
        kgrams = extract(make_unit(source).tokens(), 4)
        positions = [kgrams.index(fp) for fp in winnow(kgrams, 3)]
        assert positions == sorted(positions)


class TestGuarantee:
    """Test the shared-substring detection guarantee."""

    def test_shared_run_yields_shared_fingerprint(self, make_unit):
        """Test that a shared run of k + w - 1 tokens shares a fingerprint."""
        k, w = 4, 3
        shared = "while (i < n) { total = total + i; i = i + 1; }"
        first = make_unit("int x; char *p; " + shared, "first.c")
        second = make_unit("return 0; " + shared + " int z;", "second.c")

        first_values = {fp.structural_hash for fp in fingerprint_tokens(first.tokens(), k, w)}
        second_values = {fp.structural_hash for fp in fingerprint_tokens(second.tokens(), k, w)}
        assert first_values & second_values


class TestFingerprintUnit:
    """Test fingerprinting whole units with configuration."""

    def test_comments_excluded_by_default(self, make_unit):
        """Test that comments do not reach the k-grams."""
        unit = make_unit("int a; // note\nint b;")
        fingerprints = fingerprint_unit(unit, Config({"fingerprint": {"kgram_size": 2, "window_size": 1}}))
        kinds = {token.kind for fp in fingerprints for token in fp.tokens}
        assert TokenKind.COMMENT not in kinds

    def test_comments_included_when_configured(self, make_unit):
        """Test the include_comments switch."""
        unit = make_unit("int a; // note\nint b;")
        config = Config({"fingerprint": {"kgram_size": 2, "window_size": 1, "include_comments": True}})
        kinds = {token.kind for fp in fingerprint_unit(unit, config) for token in fp.tokens}
        assert TokenKind.COMMENT in kinds

    def test_renamed_copy_has_same_fingerprints(self, make_unit):
        """Test that renaming identifiers keeps structural fingerprints."""
        original = make_unit("int sum(int a, int b) { return a + b; }")
        renamed = make_unit("int add(int x, int y) { return x + y; }")
        config = Config({"fingerprint": {"kgram_size": 4, "window_size": 3}})

        assert [fp.structural_hash for fp in fingerprint_unit(original, config)] == \
            [fp.structural_hash for fp in fingerprint_unit(renamed, config)]
