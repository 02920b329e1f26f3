import io

import pytest

from xvkit.sh import (
    BackCommand,
    Credentials,
    ExecCommand,
    ListCommand,
    PipeCommand,
    RedirCommand,
    ShellError,
    get_builtin,
    parse_command,
    run_builtin,
    set_builtin,
    tokenize,
)
from xvkit.syscalls import OpenFlag

WRITE_MODE = OpenFlag.WRONLY | OpenFlag.CREATE


def test_tokenize_words_and_pipe():
    tokens = list(tokenize("ls -l | wc"))
    assert [t.kind for t in tokens] == ["a", "a", "|", "a"]
    assert [t.text for t in tokens] == ["ls", "-l", "|", "wc"]


def test_tokenize_append_operator():
    tokens = list(tokenize("a >> b"))
    assert [t.kind for t in tokens] == ["a", "+", "a"]
    assert tokens[1].text == ">>"


def test_tokenize_word_stops_at_symbol():
    tokens = list(tokenize("echo>out"))
    assert [t.text for t in tokens] == ["echo", ">", "out"]


def test_tokenize_empty():
    assert list(tokenize("   \t\n")) == []


def test_parse_simple_exec():
    assert parse_command("echo hello world\n") == ExecCommand(["echo", "hello", "world"])


def test_parse_empty_line():
    assert parse_command("") == ExecCommand([])


def test_parse_redirections_nest_in_order():
    cmd = parse_command("cat < in > out")
    assert cmd == RedirCommand(
        RedirCommand(ExecCommand(["cat"]), "in", OpenFlag.RDONLY, 0),
        "out",
        WRITE_MODE,
        1,
    )


def test_parse_append_behaves_like_write():
    assert parse_command("echo x >> log") == parse_command("echo x > log")


def test_parse_pipe_is_right_associative():
    cmd = parse_command("a | b | c")
    assert cmd == PipeCommand(
        ExecCommand(["a"]), PipeCommand(ExecCommand(["b"]), ExecCommand(["c"]))
    )


def test_parse_list():
    cmd = parse_command("a ; b ; c")
    assert cmd == ListCommand(
        ExecCommand(["a"]), ListCommand(ExecCommand(["b"]), ExecCommand(["c"]))
    )


def test_parse_background():
    assert parse_command("a &") == BackCommand(ExecCommand(["a"]))


def test_background_followed_by_command_is_leftover():
    with pytest.raises(ShellError) as info:
        parse_command("a & b")
    assert info.value.message == "syntax"
    assert info.value.leftovers == "b"


def test_parse_block_with_redirect():
    cmd = parse_command("(a ; b) > out")
    assert cmd == RedirCommand(
        ListCommand(ExecCommand(["a"]), ExecCommand(["b"])), "out", WRITE_MODE, 1
    )


def test_missing_close_paren():
    with pytest.raises(ShellError, match="missing \\)"):
        parse_command("(a")


def test_missing_redirect_file():
    with pytest.raises(ShellError, match="missing file for redirection"):
        parse_command("echo >")


def test_too_many_args():
    with pytest.raises(ShellError, match="too many args"):
        parse_command(" ".join(["w"] * 10))


def test_nine_args_allowed():
    assert parse_command(" ".join(["w"] * 9)) == ExecCommand(["w"] * 9)


def test_stray_close_paren_is_leftover():
    with pytest.raises(ShellError) as info:
        parse_command(")")
    assert info.value.leftovers == ")"


def test_open_paren_after_word_is_syntax_error():
    with pytest.raises(ShellError, match="^syntax$"):
        parse_command("echo (")


def test_set_uid():
    creds = Credentials()
    out = io.StringIO()
    assert set_builtin("_set uid 42\n", creds, out) == 42
    assert creds.uid == 42
    assert creds.gid == 0
    assert out.getvalue() == ""


def test_set_gid_with_extra_spaces():
    creds = Credentials()
    assert set_builtin("_set   gid   7", creds, io.StringIO()) == 7
    assert creds.gid == 7


def test_set_non_numeric_gives_zero():
    creds = Credentials(uid=5)
    assert set_builtin("_set uid abc", creds, io.StringIO()) == 0
    assert creds.uid == 0


def test_set_invalid_parameter():
    out = io.StringIO()
    assert set_builtin("_set foo 1", Credentials(), out) == -1
    assert out.getvalue() == "Invalid _set parameter\n"


def test_get_prints_ids():
    creds = Credentials(uid=42, gid=7)
    out = io.StringIO()
    assert get_builtin("_get uid", creds, out) == 0
    assert get_builtin("_get gid", creds, out) == 0
    assert out.getvalue() == "42\n7\n"


def test_get_invalid_parameter():
    out = io.StringIO()
    assert get_builtin("_get pid", Credentials(), out) == -1
    assert out.getvalue() == "Invalid _get parameter\n"


def test_run_builtin_dispatches_round_trip():
    creds = Credentials()
    out = io.StringIO()
    assert run_builtin("_set gid 12\n", creds, out) == 12
    assert run_builtin("_get gid\n", creds, out) == 0
    assert out.getvalue() == "12\n"


def test_run_builtin_unknown_does_nothing():
    creds = Credentials(uid=3, gid=4)
    out = io.StringIO()
    assert run_builtin("_foo", creds, out) is None
    assert creds == Credentials(uid=3, gid=4)
    assert out.getvalue() == ""