"""Tests for the lox command line."""

import io

from lox.cli import USAGE, main, run_prompt


def _write(tmp_path, source: str) -> str:
    path = tmp_path / "prog.lox"
    path.write_text(source)
    return str(path)


def test_run_file(tmp_path, capsys):
    code = main([_write(tmp_path, 'print "hello";\nprint 1 + 2;')])
    out, err = capsys.readouterr()
    assert code == 0
    assert out == "hello\n3\n"
    assert err == ""


def test_syntax_error_exit_code(tmp_path, capsys):
    code = main([_write(tmp_path, 'print "a";\nprint ;')])
    out, err = capsys.readouterr()
    assert code == 65
    assert out == ""
    assert err == "[line 2] Error at ';': Expect expression.\n"


def test_runtime_error_exit_code(tmp_path, capsys):
    code = main([_write(tmp_path, 'print "a";\nprint -nil;')])
    out, err = capsys.readouterr()
    assert code == 70
    assert out == "a\n"
    assert err == "Operand must be a number.\n[line 2]\n"


def test_missing_file(tmp_path, capsys):
    code = main([str(tmp_path / "nope.lox")])
    _, err = capsys.readouterr()
    assert code == 66
    assert "nope.lox" in err


def test_invalid_utf8(tmp_path, capsys):
    path = tmp_path / "bad.lox"
    path.write_bytes(b"print \xff;")
    code = main([str(path)])
    _, err = capsys.readouterr()
    assert code == 65
    assert "invalid utf-8" in err


def test_print_ast(tmp_path, capsys):
    code = main(["--print-ast", _write(tmp_path, "print -1 * (2);")])
    out, _ = capsys.readouterr()
    assert code == 0
    assert out == "(print (* (- 1) (group 2)))\n"


def test_print_ast_reports_syntax_errors(tmp_path, capsys):
    code = main(["--print-ast", _write(tmp_path, "print")])
    out, err = capsys.readouterr()
    assert code == 65
    assert out == ""
    assert "Expect expression." in err


def test_help(capsys):
    assert main(["--help"]) == 0
    out, _ = capsys.readouterr()
    assert out == USAGE


def test_unknown_flag(capsys):
    assert main(["--frobnicate"]) == 64
    _, err = capsys.readouterr()
    assert "--frobnicate" in err


def test_too_many_arguments(capsys):
    assert main(["a.lox", "b.lox"]) == 64
    _, err = capsys.readouterr()
    assert err == USAGE


def test_prompt_keeps_globals(capsys):
    stdin = io.StringIO("var a = 1;\nprint a + 1;\n")
    stdout = io.StringIO()
    assert run_prompt(stdin, stdout) == 0
    assert stdout.getvalue() == "> > 2\n> \n"


def test_prompt_continues_after_errors(capsys):
    stdin = io.StringIO("print x;\nprint ;\nprint 3;\n")
    stdout = io.StringIO()
    assert run_prompt(stdin, stdout) == 0
    _, err = capsys.readouterr()
    assert stdout.getvalue() == "> > > 3\n> \n"
    assert "Undefined variable 'x'." in err
    assert "Expect expression." in err


def test_deep_nesting_exit_code(tmp_path, capsys):
    code = main([_write(tmp_path, "{" * 5000 + "}" * 5000)])
    out, err = capsys.readouterr()
    assert code == 65
    assert out == ""
    assert "Too much nesting." in err


def test_print_ast_too_deep_to_print(tmp_path, capsys):
    source = "print " + " + ".join(["1"] * 20000) + ";"
    code = main(["--print-ast", _write(tmp_path, source)])
    out, err = capsys.readouterr()
    assert code == 65
    assert out == ""
    assert "too much nesting to print" in err
