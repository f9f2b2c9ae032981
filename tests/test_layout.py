import pytest

from posperipherals.printer.layout import center_text, columns, right_text, separator, wrap_text


class TestCenterText:

    def test_even_padding(self):
        assert center_text("ELITE ACAI", 20) == "     ELITE ACAI"

    def test_odd_remainder_rounds_down(self):
        assert center_text("ABC", 8) == "  ABC"

    def test_longer_than_width_is_untouched(self):
        assert center_text("A" * 30, 20) == "A" * 30


def test_right_text():
    assert right_text("9,99", 10) == "      9,99"
    assert right_text("LONG VALUE", 4) == "LONG VALUE"


def test_separator():
    assert separator("-", 5) == "-----"
    assert len(separator()) == 48


class TestColumns:

    def test_total_line(self):
        line = columns("Total:", "R$ 15,99", 20)
        assert line == "Total:      R$ 15,99"
        assert len(line) == 20

    def test_at_least_one_space(self):
        assert columns("A very long product name", "R$ 100,00", 20) == "A very long product name R$ 100,00"


class TestWrapText:

    TEXT = "Acai 500ml with granola banana condensed milk and extra strawberries"

    @pytest.mark.parametrize("width", [16, 20, 32, 48])
    def test_lines_fit_and_words_survive(self, width):
        lines = wrap_text(self.TEXT, width)
        assert all(len(line) <= width for line in lines)
        assert " ".join(lines).split() == self.TEXT.split()

    def test_short_text_is_one_line(self):
        assert wrap_text("Hello", 48) == ["Hello"]

    def test_explicit_newlines_are_kept(self):
        assert wrap_text("one\ntwo", 48) == ["one", "two"]

    def test_overlong_word_stands_alone(self):
        assert wrap_text("a verylongword b", 5) == ["a", "verylongword", "b"]
