"""Tests for k-gram extraction and the k-gram value type."""

import pytest

from tokenprint.fingerprint import KGram, djb2_hash, exact_equal, extract, slices, structural_hash


class TestSlices:
    """Test the windowing rule shared by extraction and winnowing."""

    def test_full_windows(self):
        """Test overlapping windows of exactly w items."""
        assert slices([1, 2, 3, 4], 2) == [[1, 2], [2, 3], [3, 4]]

    def test_window_equal_to_length(self):
        """Test a window as long as the sequence."""
        assert slices([1, 2, 3], 3) == [[1, 2, 3]]

    def test_window_longer_than_sequence(self):
        """Test that a short sequence becomes the only window."""
        assert slices([1, 2], 5) == [[1, 2]]

    def test_empty_sequence(self):
        """Test that an empty sequence yields one empty window."""
        assert slices([], 3) == [[]]

    def test_invalid_window(self):
        """Test that a window size below one is rejected."""
        with pytest.raises(ValueError):
            slices([1, 2, 3], 0)


class TestDjb2:
    """Test the structural hash function."""

    def test_empty_string(self):
        """Test the djb2 seed."""
        assert djb2_hash("") == 5381

    def test_single_character(self):
        """Test one step of the recurrence."""
        assert djb2_hash("a") == 5381 * 33 + ord("a")

    def test_wraps_to_signed_64_bit(self):
        """Test that long inputs stay in the signed 64-bit range."""
        value = djb2_hash("keyword" * 100)
        assert -(1 << 63) <= value < (1 << 63)


class TestExtract:
    """Test k-gram extraction on C token streams."""

    def test_count_and_length(self, make_unit):
        """Test len(T) - w + 1 k-grams of w tokens each."""
        tokens = make_unit("int main(void) {int a;}").tokens()
        assert len(tokens) == 10

        for w in range(1, len(tokens) + 1):
            kgrams = extract(tokens, w)
            assert len(kgrams) == len(tokens) - w + 1
            assert all(len(kgram) == w for kgram in kgrams)

    def test_kgrams_are_consecutive(self, make_unit):
        """Test that k-gram i starts at token i."""
        tokens = make_unit("int main(void) {int a;}").tokens()
        for i, kgram in enumerate(extract(tokens, 4)):
            assert list(kgram.tokens) == tokens[i:i + 4]

    def test_window_larger_than_input(self, make_unit):
        """Test that a short stream becomes one k-gram with every token."""
        tokens = make_unit("int main() {}").tokens()
        kgrams = extract(tokens, 50)
        assert len(kgrams) == 1
        assert list(kgrams[0].tokens) == tokens

    def test_empty_input(self):
        """Test that no tokens give no k-grams."""
        assert extract([], 5) == []

    def test_invalid_window(self, make_unit):
        """Test that a window size below one is a caller error."""
        with pytest.raises(ValueError):
            extract(make_unit("int a;").tokens(), 0)

    def test_main_window_five(self, make_unit):
        """Test `int main() {}` with w=5."""
        kgrams = extract(make_unit("int main() {}").tokens(), 5)
        assert [kgram.spellings for kgram in kgrams] == [
            ["int", "main", "(", ")", "{"],
            ["main", "(", ")", "{", "}"],
        ]

    def test_main_window_six_document(self, make_unit):
        """Test `int main() {}` with w=6 and its document value."""
        unit = make_unit("int main() {}")
        kgrams = extract(unit.tokens(), 6, unit)
        assert len(kgrams) == 1

        kgram = kgrams[0]
        assert kgram.value == "keyword identifier punctuation punctuation punctuation punctuation"
        assert kgram.unit is unit
        assert kgram.document == {
            "file_path": "input.c",
            "start": {"line": 1, "column": 1},
            "end": {"line": 1, "column": 14},
        }

    def test_int_main_void_count(self, make_unit):
        """Test `int main(void) {int a;}` with w=5."""
        assert len(extract(make_unit("int main(void) {int a;}").tokens(), 5)) == 6


class TestKGram:
    """Test the two comparison notions of a k-gram."""

    def test_structural_hash_ignores_spelling(self, make_unit):
        """Test that renamed identifiers keep the structural hash."""
        first = extract(make_unit("int alpha = 1;").tokens(), 5)[0]
        second = extract(make_unit("int beta = 2;").tokens(), 5)[0]

        assert structural_hash(first) == structural_hash(second)
        assert first.value == second.value
        assert not exact_equal(first, second)

    def test_exact_equal_implies_equal_hash(self, make_unit):
        """Test that identical spellings give identical hashes."""
        first = extract(make_unit("int a = 1;").tokens(), 5)[0]
        second = extract(make_unit("int  a=1 ;", "other.c").tokens(), 5)[0]

        assert exact_equal(first, second)
        assert structural_hash(first) == structural_hash(second)

    def test_hash_is_djb2_of_kind_names(self, make_unit):
        """Test the hash input is the unseparated kind names."""
        kgram = extract(make_unit("int main").tokens(), 2)[0]
        assert structural_hash(kgram) == djb2_hash("keywordidentifier")

    def test_no_operator_equality(self, make_unit):
        """Test that k-grams compare by identity, not by value."""
        tokens = make_unit("int a;").tokens()
        first, second = KGram(tuple(tokens)), KGram(tuple(tokens))
        assert first != second
        assert exact_equal(first, second)

    def test_multiline_span(self, make_unit):
        """Test start and end locations across lines."""
        kgram = extract(make_unit("int a;\nint b;").tokens(), 6)[0]
        assert (kgram.start.line, kgram.start.column) == (1, 1)
        assert (kgram.end.line, kgram.end.column) == (2, 7)
        assert kgram.span.start_offset == 0
        assert kgram.span.end_offset == 13

    def test_empty_kgram_has_no_location(self):
        """Test that an empty k-gram has no anchor."""
        kgram = KGram(())
        assert kgram.start is None
        assert kgram.end is None
        assert kgram.document is None
