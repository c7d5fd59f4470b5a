"""
Tests for escaped-key substitution and single-document processing.
"""

import pytest

from dotprep.exceptions import CommandExecutionError, MalformedDirectiveError, UnknownSubstitutionKeyError
from dotprep.query.cache import QueryCache
from dotprep.variables.substitution import Substitutor, merge_tables
from dotprep.workflow.processor import DocumentProcessor

from tests.helpers import ScriptedAsker


class TestSubstitutor:
    """Substitution of <start>key<end> spans."""

    def test_table_value_replaces_span(self, make_expander):
        substitutor = Substitutor(("{{", "}}"), {'GREEN': '#00FF00'}, make_expander())
        assert substitutor.substitute_line("a = {{GREEN}}") == "a = #00FF00"

    def test_several_spans_in_one_line(self, make_expander):
        substitutor = Substitutor(("%", "%"), {'A': '1', 'B': '2'}, make_expander())
        assert substitutor.substitute_line("%A%,%B%") == "1,2"

    def test_missing_key_is_expanded(self, make_expander):
        expander = make_expander({'HOME': '/home/max'}, outputs={'hostname': 'laptop'})
        substitutor = Substitutor(("{{", "}}"), {}, expander)
        assert substitutor.substitute_line("{{$HOME}} on {{$(hostname)}}") == "/home/max on laptop"

    def test_missing_plain_key_expands_to_itself(self, make_expander):
        substitutor = Substitutor(("{{", "}}"), {}, make_expander())
        assert substitutor.substitute_line("x = {{RED}}") == "x = RED"

    def test_strict_mode_rejects_unknown_key(self, make_expander):
        substitutor = Substitutor(("{{", "}}"), {'GREEN': 'g'}, make_expander(), strict=True)
        assert substitutor.substitute_line("{{GREEN}}") == "g"
        with pytest.raises(UnknownSubstitutionKeyError):
            substitutor.substitute_line("{{RED}}")

    def test_backslash_escaped_start_left_alone(self, make_expander):
        substitutor = Substitutor(("{{", "}}"), {'GREEN': 'g'}, make_expander())
        assert substitutor.substitute_line(r"\{{GREEN}}") == r"\{{GREEN}}"

    def test_values_are_not_substituted_again(self, make_expander):
        substitutor = Substitutor(("{{", "}}"), {'A': '{{B}}', 'B': 'b'}, make_expander())
        assert substitutor.substitute_line("{{A}}") == "{{B}}"

    def test_idempotent_without_escapes_in_values(self, make_expander):
        substitutor = Substitutor(("{{", "}}"), {'GREEN': '#00FF00'}, make_expander())
        once = substitutor.substitute_lines(["a = {{GREEN}}", "b = 2"])
        assert substitutor.substitute_lines(once) == once

    def test_disabled_without_escape(self, make_expander):
        substitutor = Substitutor(None, {'GREEN': 'g'}, make_expander())
        assert not substitutor.enabled
        assert substitutor.substitute_line("{{GREEN}}") == "{{GREEN}}"

    def test_merge_tables_later_wins(self):
        assert merge_tables({'A': '1', 'B': '1'}, None, {'B': '2'}) == {'A': '1', 'B': '2'}


class TestDocumentProcessor:
    """Directive evaluation followed by substitution."""

    def make_processor(self, expander, substitutions=None, answers=(), strict=False):
        return DocumentProcessor(
            expander=expander,
            query_cache=QueryCache(),
            asker=ScriptedAsker(answers),
            substitutions=substitutions,
            strict_substitutions=strict
        )

    def test_directives_then_substitution(self, make_expander):
        processor = self.make_processor(make_expander({}), {'GREEN': '#00FF00'})
        text = "#~ IFDEF $UNSET_VAR\nb = 1\n#~ ENDIF\na = {{GREEN}}\n"
        assert processor.process(text, prefix="#~", escape=("{{", "}}")) == "a = #00FF00\n"

    def test_else_branch_substituted(self, make_expander):
        processor = self.make_processor(make_expander({}), {'GREEN': '#00FF00'})
        text = "#~ IFDEF $UNSET_VAR\na = 1\n#~ ELSE\na = {{GREEN}}\n#~ ENDIF"
        assert processor.process(text, prefix="#~", escape=("{{", "}}")) == "a = #00FF00"

    def test_trailing_newline_only_when_present(self, make_expander):
        processor = self.make_processor(make_expander())
        assert processor.process("a\nb", prefix="#~") == "a\nb"
        assert processor.process("a\nb\n", prefix="#~") == "a\nb\n"

    def test_only_newline_splits_lines(self, make_expander):
        processor = self.make_processor(make_expander())
        assert processor.process("a = 1\x0cb = 2\n", prefix="#~") == "a = 1\x0cb = 2\n"
        assert processor.process('s = "x\u2028y"\n', prefix="#~") == 's = "x\u2028y"\n'

    def test_carriage_returns_dropped(self, make_expander):
        processor = self.make_processor(make_expander())
        assert processor.process("a\r\nb\r\n", prefix="#~") == "a\nb\n"

    def test_line_numbers_ignore_form_feed(self, make_expander):
        processor = self.make_processor(make_expander())
        with pytest.raises(MalformedDirectiveError) as exc_info:
            processor.process("a\x0cb\n#~ BOGUS\n", prefix="#~")
        assert exc_info.value.line_number == 2

    def test_empty_result(self, make_expander):
        processor = self.make_processor(make_expander({}))
        assert processor.process("#~ IFDEF $NOPE\nx\n#~ ENDIF\n", prefix="#~") == ""

    def test_no_prefix_leaves_directives(self, make_expander):
        processor = self.make_processor(make_expander())
        text = "#~ IFDEF $NOPE\nx\n#~ ENDIF"
        assert processor.process(text, prefix=None) == text

    def test_kept_instructions(self, make_expander):
        processor = self.make_processor(make_expander({'V': '1'}))
        text = "#~ IFDEF $V\nx\n#~ ENDIF\n"
        assert processor.process(text, prefix="#~", remove_instructions=False) == text

    def test_substitution_error_reports_source_line(self, make_expander):
        processor = self.make_processor(make_expander({}), strict=True)
        text = "#~ IFDEF $NOPE\nx\n#~ ENDIF\nok\ny = {{MISSING}}"
        with pytest.raises(UnknownSubstitutionKeyError) as exc_info:
            processor.process(text, prefix="#~", escape=("{{", "}}"))
        assert exc_info.value.line_number == 5

    def test_failing_command_in_key(self, make_expander):
        processor = self.make_processor(make_expander(failing={'false'}))
        with pytest.raises(CommandExecutionError) as exc_info:
            processor.process("a\n{{$(false)}}", escape=("{{", "}}"))
        assert exc_info.value.line_number == 2
