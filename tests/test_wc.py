import io
import sys

from xvkit.wc import WordCount, count, main


def test_empty_input():
    assert count(b"") == WordCount(0, 0, 0)


def test_simple_line():
    assert count(b"hello world\n") == WordCount(lines=1, words=2, chars=12)


def test_invariants_over_samples():
    samples = [b"a b  c\n\nd", b"\t\tx\ry\vz\n", b"no-newline", b"   \n  \n"]
    for data in samples:
        result = count(data)
        assert result.chars == len(data)
        assert result.lines == data.count(b"\n")


def test_form_feed_is_not_a_separator():
    assert count(b"a\x0cb").words == count(b"ab").words


def test_nul_is_part_of_a_word():
    assert count(b"a\0b c").words == count(b"ab c").words


def test_concatenation_adds_when_split_on_whitespace():
    left, right = b"one two\n", b"three four five\n"
    joined = count(left + right)
    assert joined.words == count(left).words + count(right).words
    assert joined.lines == count(left).lines + count(right).lines


def test_main_on_file(tmp_path, capsys):
    path = tmp_path / "f.txt"
    data = b"alpha beta\ngamma\n" * 100
    path.write_bytes(data)
    assert main([str(path)]) == 0
    result = count(data)
    assert capsys.readouterr().out == f"{result.lines} {result.words} {result.chars} {path}\n"


def test_main_stops_at_missing_file(tmp_path, capsys):
    good = tmp_path / "good"
    good.write_bytes(b"x\n")
    missing = tmp_path / "missing"
    assert main([str(missing), str(good)]) == 1
    assert capsys.readouterr().out == f"wc: cannot open {missing}\n"


def test_main_reads_stdin(monkeypatch, capsys):
    data = b"a b\nc\n"
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))
    assert main([]) == 0
    result = count(data)
    assert capsys.readouterr().out == f"{result.lines} {result.words} {result.chars} \n"