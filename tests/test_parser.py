from oyster.models import BoolValue, IntValue, StringValue, VarRef
from oyster.parser import classify_value, parse, parse_param, split_params, strip_quotes


def test_split_params_keeps_quoted_commas_and_escaped_quotes() -> None:
    tokens = split_params('"a, b", c=1, d="x\\"y"')

    assert tokens == ['"a, b"', "c=1", 'd="x\\"y"']

    first, second, third = (parse_param(token) for token in tokens)
    assert first.name is None and first.value == "a, b"
    assert second.name == "c" and second.value == "1"
    assert third.name == "d" and third.value == 'x"y'
    assert third.raw_value == '"x\\"y"'


def test_split_params_unterminated_quote_runs_to_end() -> None:
    assert split_params('"abc, def') == ['"abc, def']


def test_split_params_ignores_surrounding_whitespace() -> None:
    assert split_params('   "hi"  ,   wait=false  ') == ['"hi"', "wait=false"]
    assert split_params("") == []
    assert split_params("   ") == []


def test_equals_inside_quotes_is_not_a_named_parameter() -> None:
    param = parse_param('"a=b"')

    assert param.name is None
    assert param.value == "a=b"


def test_strip_quotes_unescapes_only_wrapped_tokens() -> None:
    assert strip_quotes('"say \\"hi\\""') == 'say "hi"'
    assert strip_quotes('"back\\\\slash"') == "back\\slash"
    assert strip_quotes("plain") == "plain"
    assert strip_quotes('$"Hi {name}"') == '$"Hi {name}"'


def test_parse_skips_comments_blank_and_malformed_lines() -> None:
    source = '# comment\n// legacy comment\n\nnot a command\nAct_Speak ["x"]\n'

    statements = parse(source)

    assert len(statements) == 1
    assert statements[0].command == "Act_Speak"
    assert statements[0].line == 4


def test_parse_handles_crlf_and_empty_brackets() -> None:
    statements = parse('Line_Marker ["a"]\r\nAct_Speak []\r\n')

    assert [statement.command for statement in statements] == ["Line_Marker", "Act_Speak"]
    assert statements[1].params == ()


def test_statement_round_trips_literal_text() -> None:
    line = 'Act_Speak ["a, b", instant=true, wait=false]'

    (statement,) = parse(line)

    assert statement.to_source() == line
    assert [param.name for param in statement.params] == [None, "instant", "wait"]


def test_statement_named_lookup_and_positional_view() -> None:
    (statement,) = parse('Show_Options ["a", "b", "", lm1="L1", lm2="L2"]')

    assert [param.value for param in statement.positional] == ["a", "b", ""]
    assert statement.named("lm1").value == "L1"
    assert statement.named("lm3") is None
    assert statement.key == "show_options"


def test_classify_value_variants() -> None:
    assert classify_value("$gold") == VarRef("gold")
    assert classify_value('$"Hi {hero}"') == StringValue("Hi {hero}", interpolated=True)
    assert classify_value('"plain"') == StringValue("plain")
    assert classify_value("-5") == IntValue(-5)
    assert classify_value("TRUE") == BoolValue(True)
    assert classify_value("bare") == StringValue("bare")
