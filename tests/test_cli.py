"""Tests for the dotprep command line."""

from pathlib import Path

import pytest
import yaml

from dotprep.cli.commands.render import parse_substitutions
from dotprep.cli.main import create_parser, main


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.setenv('DOTPREP_HOST', 'laptop')
    monkeypatch.delenv('DOTPREP_UNSET', raising=False)
    (tmp_path / "vimrc").write_text(
        "#~ IF $DOTPREP_HOST == laptop\nset number\n#~ ELSE\nset nonumber\n#~ ENDIF\n"
        "colorscheme {{THEME}}\n"
    )
    return tmp_path


def write_config(workspace: Path, content: dict) -> Path:
    path = workspace / "dotprep.yml"
    path.write_text(yaml.dump(content))
    return path


class TestRunCommand:

    def test_run_links_documents(self, workspace):
        config = write_config(workspace, {
            "default_prefix": "#~",
            "default_escape": ["{{", "}}"],
            "substitutions": {"THEME": "desert"},
            "config": [{"source": "vimrc", "target": "home/.vimrc"}]
        })

        assert main(['run', str(config)]) == 0

        target = workspace / "home" / ".vimrc"
        assert target.is_symlink()
        assert target.read_text() == "set number\ncolorscheme desert\n"

    def test_run_dry_run(self, workspace):
        config = write_config(workspace, {
            "default_prefix": "#~",
            "config": [{"source": "vimrc", "target": "home/.vimrc"}]
        })

        assert main(['run', str(config), '--dry-run']) == 0
        assert not (workspace / "vimrc.preprocessed").exists()

    def test_run_failure_exit_code(self, workspace):
        (workspace / "broken").write_text("#~ IFDEF $DOTPREP_UNSET\n")
        config = write_config(workspace, {
            "default_prefix": "#~",
            "config": [{"source": "broken", "target": "home/broken"}]
        })

        assert main(['run', str(config)]) == 1

    def test_run_validation_exit_code(self, workspace):
        config = write_config(workspace, {"config": [{"source": "vimrc"}]})
        assert main(['run', str(config)]) == 2

    def test_run_missing_config(self, workspace):
        assert main(['run', str(workspace / "missing.yml")]) == 1

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_parser_defaults(self):
        args = create_parser().parse_args(['run', 'dotprep.yml'])
        assert args.on_error == 'stop'
        assert args.command_timeout is None
        assert args.dry_run is False


class TestRenderCommand:

    def test_render_to_stdout(self, workspace, capsys):
        source = workspace / "vimrc"
        code = main(['render', str(source), '--prefix', '#~', '--escape', '{{', '}}',
                     '--sub', 'THEME=elflord'])

        assert code == 0
        assert capsys.readouterr().out == "set number\ncolorscheme elflord\n"

    def test_render_keep_instructions(self, workspace, capsys):
        source = workspace / "vimrc"
        assert main(['render', str(source), '--prefix', '#~', '--keep-instructions']) == 0
        assert capsys.readouterr().out == (
            "#~ IF $DOTPREP_HOST == laptop\nset number\n#~ ELSE\n#~ ENDIF\ncolorscheme {{THEME}}\n"
        )

    def test_render_uses_config_entry(self, workspace, capsys):
        config = write_config(workspace, {
            "substitutions": {"THEME": "desert"},
            "config": [{
                "source": "vimrc",
                "target": "home/.vimrc",
                "prefix": "#~",
                "escape": ["{{", "}}"]
            }]
        })

        code = main(['render', str(workspace / "vimrc"), '--config', str(config), '--sub', 'THEME=blue'])

        assert code == 0
        assert capsys.readouterr().out == "set number\ncolorscheme blue\n"

    def test_render_uses_config_defaults(self, workspace, capsys):
        config = write_config(workspace, {
            "default_prefix": "#~",
            "default_escape": ["{{", "}}"],
            "substitutions": {"THEME": "desert"},
            "config": [{"source": "other", "target": "home/.other"}]
        })

        code = main(['render', str(workspace / "vimrc"), '--config', str(config)])

        assert code == 0
        assert capsys.readouterr().out == "set number\ncolorscheme desert\n"

    def test_render_entry_keeps_instructions(self, workspace, capsys):
        config = write_config(workspace, {
            "default_prefix": "#~",
            "config": [{"source": "vimrc", "target": "home/.vimrc", "remove_instructions": False}]
        })

        code = main(['render', str(workspace / "vimrc"), '--config', str(config)])

        assert code == 0
        assert capsys.readouterr().out == (
            "#~ IF $DOTPREP_HOST == laptop\nset number\n#~ ELSE\n#~ ENDIF\ncolorscheme {{THEME}}\n"
        )

    def test_render_directive_error(self, workspace, capsys):
        source = workspace / "bad"
        source.write_text("#~ ELSE\n")
        assert main(['render', str(source), '--prefix', '#~']) == 1
        assert capsys.readouterr().out == ""

    def test_render_bad_substitution_argument(self, workspace):
        assert main(['render', str(workspace / "vimrc"), '--sub', 'NOEQUALS']) == 2

    def test_render_missing_source(self, workspace):
        assert main(['render', str(workspace / "nope")]) == 1


class TestParseSubstitutions:

    def test_pairs(self):
        args = create_parser().parse_args(['render', 'x', '--sub', 'A=1', '--sub', 'B=x=y'])
        assert parse_substitutions(args) == {'A': '1', 'B': 'x=y'}

    def test_empty_key(self):
        args = create_parser().parse_args(['render', 'x', '--sub', '=1'])
        with pytest.raises(ValueError):
            parse_substitutions(args)
