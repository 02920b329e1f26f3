import io

import pytest

from xvkit.printf import format_int, fprintf, sprintf


def test_decimal():
    assert sprintf("%d", -42) == "-42"
    assert sprintf("pid:%d uid:%d", 7, 0) == "pid:7 uid:0"


def test_hex_upper():
    assert sprintf("%x", 255) == "FF"
    assert sprintf("%p", 255) == sprintf("%x", 255)


def test_null_string():
    assert sprintf("%s", None) == "(null)"
    assert sprintf("name:%s", "initcode") == "name:initcode"
    assert sprintf("%s", b"sh\0junk") == "sh"


def test_char_and_percent():
    assert sprintf("%c", ord("A")) == "A"
    assert sprintf("100%%") == "100%"


def test_unknown_sequence_kept():
    assert sprintf("%q") == "%q"


def test_trailing_percent_dropped():
    assert sprintf("abc%") == "abc"


def test_not_enough_args():
    with pytest.raises(TypeError):
        sprintf("%d %d", 1)


@pytest.mark.parametrize("v", [0, 1, -1, 2**31 - 1, -(2**31), 123456789])
def test_signed_decimal_round_trip(v):
    assert int(format_int(v, 10, True)) == v


@pytest.mark.parametrize("v", [0, 1, -1, 0xDEADBEEF, 2**31])
def test_unsigned_hex_round_trip(v):
    s = format_int(v, 16, False)
    assert int(s, 16) == v & 0xFFFFFFFF
    assert s == s.upper()


def test_negative_unsigned_is_32_bit():
    assert format_int(-1, 16, False) == "FFFFFFFF"


def test_bad_base():
    with pytest.raises(ValueError):
        format_int(5, 17, False)


def test_fprintf_writes_stream():
    stream = io.StringIO()
    n = fprintf(stream, "rm: %s failed to delete\n", "foo")
    assert stream.getvalue() == "rm: foo failed to delete\n"
    assert n == len(stream.getvalue())