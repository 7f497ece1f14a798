from oyster.diagnostics import (
    COMMAND_UNKNOWN,
    COMPAT_GAME,
    COMPAT_VERSION,
    PARAM_EXPECTED_NAMED,
    PARAM_INVALID_TYPE,
    PARAM_MISSING_REQUIRED,
    PARAM_UNKNOWN_OPTIONAL,
    SYNTAX_INVALID_COMMAND,
    VARIABLE_REDECLARED,
    VARIABLE_TYPE_MISMATCH,
    VARIABLE_UNKNOWN,
    VARIABLE_UNKNOWN_PLACEHOLDER,
    has_errors,
)
from oyster.validator import collect_facts, validate

CLEAN_SCRIPT = """\
Meta [game="Base", version="4.1.0"]
# intro
Set_IntVar ["gold", 5]
Set_StringVar ["hero", "Alyx"]
Line_Marker ["start"]
Act_Speak [$"Hello {hero}", instant=true]
Sys_Wait [$gold, canSkip=false]
Show_Options ["Stay", "Leave", "", lm1="start", lm2="end"]
Line_Marker ["end"]
"""


def _codes(source: str) -> list[str]:
    return [diagnostic.code for diagnostic in validate(source)]


def test_clean_script_has_no_diagnostics() -> None:
    assert validate(CLEAN_SCRIPT) == []


def test_syntax_error_for_non_command_line() -> None:
    (diagnostic,) = validate('\n  Act_Speak "hi"')

    assert diagnostic.code == SYNTAX_INVALID_COMMAND.code
    assert diagnostic.severity == "error"
    assert diagnostic.range.line == 1
    assert diagnostic.range.start == 2


def test_unknown_command_is_reported_once() -> None:
    (diagnostic,) = validate("Foo_Bar [1]")

    assert diagnostic.code == COMMAND_UNKNOWN.code
    assert diagnostic.message == "Unknown Oyster command: Foo_Bar"


def test_command_names_are_case_insensitive() -> None:
    assert validate('act_speak ["hi"]\nJUMP_TO ["x"]') == []


def test_comments_and_blank_lines_are_ignored() -> None:
    assert validate('# note\n// legacy note\n\n   \nAct_Speak ["hi"]') == []


def test_missing_required_parameter() -> None:
    (diagnostic,) = validate("Jump_To []")

    assert diagnostic.code == PARAM_MISSING_REQUIRED.code
    assert diagnostic.message == "Missing required parameter marker for Jump_To"


def test_required_parameter_type_mismatch() -> None:
    (diagnostic,) = validate('Sys_Wait ["soon"]')

    assert diagnostic.code == PARAM_INVALID_TYPE.code
    assert diagnostic.message == "Parameter time should be int"


def test_extra_parameters_must_be_named() -> None:
    assert _codes('Act_Speak ["hi", true]') == [PARAM_EXPECTED_NAMED.code]


def test_two_option_menu_is_valid() -> None:
    source = 'Show_Options ["Yes", "No", lm1="a", lm2="b"]\nLine_Marker ["a"]\nLine_Marker ["b"]'

    assert validate(source) == []


def test_single_option_menu_is_valid() -> None:
    assert validate('Show_Options ["Continue", lm1="next"]\nLine_Marker ["next"]') == []


def test_menu_options_are_type_checked() -> None:
    (diagnostic,) = validate('Set_IntVar ["n", 1]\nShow_Options ["Yes", $n]')

    assert diagnostic.code == VARIABLE_TYPE_MISMATCH.code


def test_fourth_positional_option_must_be_named() -> None:
    assert _codes('Show_Options ["a", "b", "c", "d"]') == [PARAM_EXPECTED_NAMED.code]


def test_optional_parameter_names_are_case_sensitive() -> None:
    (diagnostic,) = validate('Act_Speak ["hi", Instant=true]')

    assert diagnostic.code == PARAM_UNKNOWN_OPTIONAL.code
    assert "'Instant'" in diagnostic.message


def test_optional_parameter_type_mismatch() -> None:
    (diagnostic,) = validate('Act_Speak ["hi", wait="no"]')

    assert diagnostic.code == PARAM_INVALID_TYPE.code
    assert diagnostic.message == "Optional parameter 'wait' should be bool"


def test_escaped_quotes_and_commas_inside_strings_validate() -> None:
    assert validate('Act_Speak ["say \\"hi, there\\"", wait=true]') == []


def test_unknown_variable_reference() -> None:
    (diagnostic,) = validate("Act_Speak [$who]")

    assert diagnostic.code == VARIABLE_UNKNOWN.code
    assert diagnostic.message == "Unknown variable '$who'"


def test_variable_names_are_case_sensitive() -> None:
    assert _codes('Set_IntVar ["Gold", 1]\nSys_Wait [$gold]') == [VARIABLE_UNKNOWN.code]


def test_variable_type_mismatch_cites_declaration() -> None:
    (diagnostic,) = validate('Set_BoolVar ["done", false]\nSys_Wait [$done]')

    assert diagnostic.code == VARIABLE_TYPE_MISMATCH.code
    assert "bool" in diagnostic.message
    assert "int" in diagnostic.message
    assert "line 1" in diagnostic.message


def test_type_changing_redeclaration_is_a_single_error() -> None:
    source = 'Set_IntVar ["x", 5]\nSet_BoolVar ["x", true]'

    diagnostics = validate(source)

    assert [diagnostic.code for diagnostic in diagnostics] == [VARIABLE_REDECLARED.code]
    assert diagnostics[0].range.line == 1
    assert collect_facts(source).variables["x"].type == "int"


def test_redeclaration_cites_final_declaration_line() -> None:
    source = 'Set_IntVar ["x", 1]\nSet_BoolVar ["x", true]\nSet_IntVar ["x", 2]'

    (diagnostic,) = validate(source)

    assert diagnostic.range.line == 1
    assert "previously declared as int at line 3" in diagnostic.message


def test_newer_command_than_script_version_warns_once() -> None:
    diagnostics = validate('Meta [version="4.0.0"]\nShow_Options ["a", "b", "c"]')

    assert len(diagnostics) == 1
    assert diagnostics[0].code == COMPAT_VERSION.code
    assert diagnostics[0].severity == "warning"
    assert not has_errors(diagnostics)


def test_meta_last_occurrence_wins() -> None:
    facts = collect_facts('Meta [version="4.0.0"]\nMeta [game="cagg", version="4.1.0"]')

    assert facts.version == "4.1.0"
    assert facts.game == "cagg"
    assert validate('Meta [version="4.0.0"]\nMeta [version="4.1.0"]\nShow_Options ["a", "b", "c"]') == []


def test_game_alias_resolves_before_compatibility_check() -> None:
    assert validate('Meta [game="cagg"]\nDeliver_Gift ["Alyx", "Alyx_0"]') == []


def test_incompatible_game_warns_with_supported_games() -> None:
    (diagnostic,) = validate('Meta [game="Other Game"]\nDeliver_Gift ["Alyx", "Alyx_0"]')

    assert diagnostic.code == COMPAT_GAME.code
    assert diagnostic.severity == "warning"
    assert "Christmas at Greyling Grove" in diagnostic.message


def test_universal_commands_skip_game_check() -> None:
    assert validate('Meta [game="Other Game"]\nGive_Item ["Sword"]') == []


def test_unknown_interpolation_placeholder_warns() -> None:
    (diagnostic,) = validate('Act_Speak [$"Hi {who}"]')

    assert diagnostic.code == VARIABLE_UNKNOWN_PLACEHOLDER.code
    assert diagnostic.severity == "warning"


def test_validator_never_raises_on_garbage() -> None:
    diagnostics = validate('[[[\n"\n=\n')

    assert [diagnostic.code for diagnostic in diagnostics] == [SYNTAX_INVALID_COMMAND.code] * 3
