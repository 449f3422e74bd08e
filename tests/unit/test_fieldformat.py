"""
test_fieldformat.py
-------------------
Unit tests for shelfcase.fieldformat: multi-value storage helpers and the
capitalize / title / name / date projections.
"""
from shelfcase.fieldformat import (
    DELIMITER,
    FormatFlag,
    FormatOptions,
    capitalize,
    date,
    format_value,
    join_values,
    name,
    split_values,
    title,
)


class TestMultiValues:
    """Test split_values and join_values."""

    def test_split_trims_whitespace(self):
        """Values are split on ';' with surrounding spaces removed."""
        assert split_values("a ;b;  c") == ["a", "b", "c"]

    def test_split_empty(self):
        assert split_values("") == []
        assert split_values(None) == []

    def test_join_uses_delimiter(self):
        assert join_values(["a", "b"]) == "a" + DELIMITER + "b"

    def test_join_sanitizes_delimiter_inside_value(self):
        """A ';' inside one value must not create a second value."""
        joined = join_values(["a;b", "c"])
        assert split_values(joined) == ["a,b", "c"]

    def test_join_drops_empty_values(self):
        assert join_values(["a", "", "  ", "b"]) == "a; b"


class TestCapitalize:
    """Test capitalize function."""

    def test_small_words_kept_lower(self):
        assert capitalize("the return of the king") == "The Return of the King"

    def test_upper_case_letters_kept(self):
        assert capitalize("NASA and the moon") == "NASA and the Moon"

    def test_apostrophe_article(self):
        """The letter after l' is capitalized, the article is not."""
        assert capitalize("l'étranger") == "l'Étranger"


class TestTitle:
    """Test title projection."""

    def test_leading_article_moved(self):
        assert title("the return of the king") == "Return of the King, The"

    def test_without_auto_format(self):
        opts = FormatOptions(auto_format=False)
        assert title("the return of the king", opts) == "The Return of the King"

    def test_without_capitalization(self):
        opts = FormatOptions(auto_capitalize=False)
        assert title("the hobbit", opts) == "hobbit, the"

    def test_comma_spacing(self):
        assert title("war ,peace") == "War, Peace"

    def test_only_first_table_column(self):
        assert title("the hobbit::chapter one") == "Hobbit, The::chapter one"


class TestName:
    """Test name projection."""

    def test_first_last(self):
        assert name("david weber") == "Weber, David"

    def test_suffix_stays_with_surname(self):
        assert name("tom swift, jr.") == "Swift, Jr., Tom"

    def test_surname_prefix_lower_case(self):
        assert name("tom de swift, jr.") == "de Swift, Jr., Tom"

    def test_already_inverted(self):
        assert name("weber, david") == "Weber, David"

    def test_single_word(self):
        assert name("plato") == "Plato"


class TestDate:
    """Test date projection."""

    def test_pads_month_and_day(self):
        assert date("2001/5/3") == "2001-05-03"

    def test_other_text_unchanged(self):
        assert date("spring 2001") == "spring 2001"


class TestFormatValue:
    """Test format_value dispatch."""

    def test_multiple_values_formatted_each(self):
        value = "david weber; john ringo"
        assert format_value(value, FormatFlag.NAME, multiple=True) == "Weber, David; Ringo, John"

    def test_none_flag_is_identity(self):
        assert format_value("the hobbit", FormatFlag.NONE) == "the hobbit"
