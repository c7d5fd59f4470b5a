"""Tests for directive-line recognition and payload parsing."""

import pytest

from dotprep.directives.parser import (
    Ask, Comment, Else, EndAsk, EndIf, If, IfDef, IfNDef, Option,
    directive_payload, parse_line, parse_payload,
)
from dotprep.exceptions import MalformedDirectiveError


class TestDirectiveRecognition:
    """Which lines are directive lines."""

    def test_content_line(self):
        assert parse_line("#~", "a = 1") is None
        assert parse_line("~~~", "~~ another line") is None

    def test_prefix_after_leading_whitespace(self):
        assert parse_line("#~", "    #~ ENDIF") == EndIf()
        assert parse_line("#~", "\t#~ELSE") == Else()

    def test_payload_is_trimmed(self):
        assert directive_payload("//~", "//~   IFDEF $X   ") == "IFDEF $X"

    def test_empty_prefix_never_matches(self):
        assert parse_line("", "IF a == b") is None


class TestPayloadParsing:
    """Grammar of each directive."""

    def test_comment(self):
        assert parse_payload("#comment") == Comment()
        assert parse_line("#~", "#~# some comment") == Comment()
        assert parse_line("#~", "#~ # some comment") == Comment()

    def test_ifdef_and_ifndef(self):
        assert parse_payload("iFDef blub") == IfDef("blub")
        assert parse_payload("IFNDEF $HOME") == IfNDef("$HOME")
        assert parse_payload("ifdef\t\t$(hostname)") == IfDef("$(hostname)")

    def test_if(self):
        assert parse_payload("iF x\t== \ty") == If("x", "y")
        assert parse_payload("IF $(hostname) == laptop") == If("$(hostname)", "laptop")

    def test_if_splits_at_first_equals(self):
        assert parse_payload("IF a == b == c") == If("a", "b == c")

    def test_if_needs_both_sides(self):
        with pytest.raises(MalformedDirectiveError):
            parse_payload("IF x == ")
        with pytest.raises(MalformedDirectiveError):
            parse_payload("IF x")

    def test_block_terminators(self):
        assert parse_payload("elSE") == Else()
        assert parse_payload("ENDif") == EndIf()
        assert parse_payload("endASK") == EndAsk()

    def test_terminators_reject_trailing_text(self):
        with pytest.raises(MalformedDirectiveError):
            parse_payload("ELSEXYZ")
        with pytest.raises(MalformedDirectiveError):
            parse_payload("ENDIF now")

    def test_ask_and_option(self):
        assert parse_payload("asK\t\tPick A or B?") == Ask("Pick A or B?")
        assert parse_payload("OPTIOn\t one option") == Option("one option")

    def test_missing_arguments(self):
        for payload in ("IFDEF", "IFNDEF", "ASK", "OPTION", "IFDEFblub"):
            with pytest.raises(MalformedDirectiveError):
                parse_payload(payload)

    def test_unknown_keyword(self):
        with pytest.raises(MalformedDirectiveError) as exc_info:
            parse_line("#~", "#~ INCLUDE other.conf")
        assert "INCLUDE other.conf" in str(exc_info.value)
