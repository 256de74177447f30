import io

import pytest

from tradewire.fast_script import (
    FAST_MAX_ELEMENTS,
    FAST_MAX_LINE_LENGTH,
    FastField,
    FastMessage,
    FastType,
    ScriptError,
    compare_messages,
    format_message,
    parse_line,
    read_script,
)


def make_template():
    return FastMessage(
        fields=[
            FastField(FastType.INT, name="a", mandatory=False),
            FastField(FastType.UINT, name="b"),
            FastField(FastType.STRING, name="c"),
            FastField(FastType.DECIMAL, name="d"),
        ],
        tid=7,
    )


def values(msg):
    return [f.value for f in msg.fields]


def test_parse_line_values():
    msg = parse_line(make_template(), "-5|7|hello|2|150\n")
    assert values(msg) == [-5, 7, "hello", (2, 150)]
    assert msg.tid == 0


def test_parse_line_leaves_template_untouched():
    template = make_template()
    parse_line(template, "-5|7|hello|2|150\n")
    assert values(template) == [None, None, None, None]


def test_parse_line_decimal_with_dot():
    msg = parse_line(make_template(), "1|2|abc|3.25")
    assert msg.fields[3].value == (3, 25)


def test_none_for_optional_field():
    msg = parse_line(make_template(), "none|7|x|1|1")
    assert msg.fields[0].empty is True
    assert msg.fields[1].value == 7


def test_none_for_mandatory_field():
    with pytest.raises(ScriptError):
        parse_line(make_template(), "1|none|x|1|1")


def test_empty_string_value():
    with pytest.raises(ScriptError):
        parse_line(make_template(), "1|2||3|4")


def test_vector_cannot_be_scripted():
    template = FastMessage(fields=[FastField(FastType.VECTOR)])
    with pytest.raises(ScriptError):
        parse_line(template, "abc")


def test_format_message():
    msg = parse_line(make_template(), "-5|7|hello|2|150")
    assert format_message(msg) == "|-5|7|hello|2|150|"


def test_format_empty_field():
    msg = parse_line(make_template(), "none|7|x|1|1")
    assert format_message(msg).startswith("|none|")


def test_format_round_trip():
    template = make_template()
    msg = parse_line(template, "none|9|word|4|-12")
    again = parse_line(template, format_message(msg)[1:])
    assert compare_messages(msg, again)


def test_format_sequence():
    inner = FastMessage(fields=[FastField(FastType.INT, value=1)])
    msg = FastMessage(fields=[FastField(FastType.SEQUENCE, value=[inner])])
    assert format_message(msg) == "|\n<sequence>\n|1|\n</sequence>"


def test_compare_detects_value_difference():
    template = make_template()
    a = parse_line(template, "1|2|x|3|4")
    b = parse_line(template, "1|2|y|3|4")
    assert compare_messages(a, a.copy())
    assert not compare_messages(a, b)


def test_compare_detects_field_count():
    a = parse_line(make_template(), "1|2|x|3|4")
    b = a.copy()
    b.fields.pop()
    assert not compare_messages(a, b)


def test_compare_empty_fields():
    template = make_template()
    full = parse_line(template, "1|2|x|3|4")
    empty = parse_line(template, "none|2|x|3|4")
    assert not compare_messages(full, empty)
    assert compare_messages(empty, empty.copy())


def test_read_script_cursor():
    container = read_script(io.StringIO("1|2|a|3|4\n5|6|b|7|8\n"), make_template())
    assert values(container.current()) == [None, None, None, None]
    assert container.advance().fields[0].value == 1
    assert container.advance().fields[0].value == 5
    assert container.advance() is None


def test_read_script_capacity():
    lines = "".join("1|2|a|3|4\n" for _ in range(FAST_MAX_ELEMENTS - 1))
    container = read_script(io.StringIO(lines), make_template())
    assert len(container) == FAST_MAX_ELEMENTS
    with pytest.raises(ScriptError):
        read_script(io.StringIO(lines + "1|2|a|3|4\n"), make_template())


def test_read_script_long_line():
    line = "1|2|" + "a" * FAST_MAX_LINE_LENGTH + "|3|4\n"
    with pytest.raises(ScriptError):
        read_script(io.StringIO(line), make_template())