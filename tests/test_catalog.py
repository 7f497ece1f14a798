import pytest

from oyster.catalog import CommandCatalog, default_catalog, version_number
from oyster.commands import COMMANDS, GREYLING_GROVE
from oyster.models import CommandContract


def test_resolve_is_case_insensitive() -> None:
    catalog = default_catalog()

    assert catalog.resolve("act_speak") is catalog.resolve("ACT_SPEAK")
    assert catalog.resolve("Act_Speak").name == "Act_Speak"
    assert catalog.resolve("Foo_Bar") is None
    assert "JUMP_TO" in catalog


def test_default_catalog_is_built_once() -> None:
    assert default_catalog() is default_catalog()
    assert len(default_catalog()) == len(COMMANDS)


def test_duplicate_command_names_are_rejected() -> None:
    contract = CommandContract(name="Dup", description="", introduced_version="4.0.0")

    with pytest.raises(ValueError):
        CommandCatalog([contract, CommandContract(name="DUP", description="", introduced_version="4.0.0")])


def test_version_number_strips_dots() -> None:
    assert version_number("4.1.0") == 410
    assert version_number("4.0.0s") == 400
    assert version_number("s") is None
    assert version_number(None) is None


def test_resolve_game_uses_aliases() -> None:
    catalog = default_catalog()

    assert catalog.resolve_game("cagg") == GREYLING_GROVE
    assert catalog.resolve_game("Greyling Grove") == GREYLING_GROVE
    assert catalog.resolve_game("christmas AT greyling grove") == GREYLING_GROVE
    assert catalog.resolve_game("Some Other Game") == "Some Other Game"


def test_describe_exposes_parameter_contract() -> None:
    description = default_catalog().describe("sys_wait")

    assert description is not None
    assert description.name == "Sys_Wait"
    assert [(param.name, param.type) for param in description.required] == [("time", "int")]
    assert description.optional[0].name == "canSkip"
    assert description.optional[0].default is False
    assert default_catalog().describe("nope") is None


def test_universal_marker() -> None:
    catalog = default_catalog()

    assert catalog.resolve("Meta").is_universal
    assert not catalog.resolve("Deliver_Gift").is_universal
    assert CommandContract(name="X", description="", introduced_version="4", compatible_games=()).is_universal
