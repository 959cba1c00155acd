"""Tests for the s-expression reader and printer."""

from __future__ import annotations

import pytest

from nameshift.engine.forms import (
    FUNCTION,
    QUOTE,
    Pair,
    ReaderError,
    Symbol,
    format_form,
    is_symbol,
    quoted_symbol,
    read_form,
    read_forms,
)


def test_read_forms_parses_nested_lists_and_atoms():
    forms = read_forms('(defvar x 1) (f "two words" 2.5 :key) ; trailing comment\n')

    assert forms == [["defvar", "x", 1], ["f", "two words", 2.5, ":key"]]
    defvar = forms[0]
    assert all(is_symbol(item) for item in defvar[:2])
    assert not is_symbol(forms[1][1])
    assert forms[1][3].is_keyword


def test_read_forms_expands_quote_shorthands():
    form = read_form("(provide 'testmodule)")
    assert form == ["provide", [QUOTE, "testmodule"]]
    assert quoted_symbol(form[1]) == "testmodule"

    fn = read_form("#'car")
    assert fn == [FUNCTION, "car"]
    assert quoted_symbol(fn) == "car"

    nested = read_form("''x")
    assert nested == [QUOTE, [QUOTE, "x"]]
    assert quoted_symbol(nested) is None


def test_read_forms_builds_dotted_pairs():
    form = read_form("(:symbols ((implicit2 . i2) plain))")

    pair = form[1][0]
    assert isinstance(pair, Pair)
    assert pair == Pair(Symbol("implicit2"), Symbol("i2"))
    assert form[1][1] == "plain"


def test_read_forms_only_reads_digits_as_numbers():
    form = read_form("(nan inf 1+ -3 1e3)")

    assert form == ["nan", "inf", "1+", -3, 1000.0]
    assert all(is_symbol(item) for item in form[:3])


def test_read_forms_handles_string_escapes():
    assert read_form(r'"say \"hi\""') == 'say "hi"'


@pytest.mark.parametrize(
    "text, message",
    [
        ("(a (b)", "Unclosed"),
        ("a)", "Unmatched"),
        ('"open', "Unterminated"),
        ("(a . b c)", "dotted"),
        ("(a ')", "Quote without"),
        ("'", "Quote without"),
    ],
)
def test_read_forms_reports_malformed_text(text, message):
    with pytest.raises(ReaderError, match=message):
        read_forms(text)


def test_read_form_requires_exactly_one_form():
    with pytest.raises(ReaderError, match="exactly one"):
        read_form("a b")


def test_format_form_round_trips_source_text():
    text = "(defalias 'ns--f #'(lambda (x) (+ x 1 \"s\")))"

    assert format_form(read_form(text)) == text
    assert format_form(read_form("((a . b))")) == "((a . b))"
    assert format_form(None) == "nil"
    assert format_form(True) == "t"
