"""Built-in Oyster command table and target-game aliases."""

from __future__ import annotations

from typing import Final

from oyster.models import CommandContract, CommandParam

GREYLING_GROVE = "Christmas at Greyling Grove"

_DOCS = "https://oyster.readthedocs.io/en/latest/commands.html"

_TEXT = CommandParam("text", "string", "Text to push to the conversation")
_INSTANT = CommandParam(
    "instant", "bool", "If true, push all text instantly, rather than over time", default=False
)
_WAIT = CommandParam(
    "wait", "bool", "If true, require user input before progressing to the next line", default=True
)


def _contract(
    name: str,
    description: str,
    *,
    version: str = "4.0.0s",
    games: tuple[str, ...] = ("Base",),
    required: tuple[CommandParam, ...] = (),
    optional: tuple[CommandParam, ...] = (),
    trailing: tuple[CommandParam, ...] = (),
) -> CommandContract:
    return CommandContract(
        name=name,
        description=description,
        introduced_version=version,
        compatible_games=games,
        required=required,
        optional=optional,
        trailing=trailing,
        doc_url=f"{_DOCS}#{name.lower().replace('_', '-')}",
    )


COMMANDS: Final[tuple[CommandContract, ...]] = (
    _contract(
        "Act_Append",
        "Append text to the current conversation",
        required=(_TEXT,),
        optional=(_INSTANT, _WAIT),
    ),
    _contract(
        "Act_Speak",
        "Replace the current conversation's text",
        required=(_TEXT,),
        optional=(_INSTANT, _WAIT),
    ),
    _contract(
        "Jump_To",
        "Unconditionally jump to a specific line marker in the current script",
        required=(CommandParam("marker", "string", "Line marker to jump to"),),
    ),
    _contract(
        "Line_Marker",
        "Define a line marker in the script",
        required=(CommandParam("marker", "string", "Marker name"),),
    ),
    _contract(
        "Set_Looker",
        "Updates the object which the player's camera is steered towards; does nothing if the object does not exist",
        required=(
            CommandParam(
                "looker",
                "string",
                "The name of the object to look at. 'default' returns the camera to the conversation's original looker",
            ),
        ),
    ),
    _contract(
        "Set_Name",
        "Updates the name of the speaker to the supplied string",
        required=(CommandParam("name", "string", "New speaker name"),),
    ),
    _contract(
        "Set_Script",
        "Set the script that the character being interacted with points to, effective on the next interaction",
        required=(CommandParam("script", "string", "Script name"),),
    ),
    _contract(
        "Set_sprite",
        "Set the sprite for the character",
        required=(CommandParam("sprite", "string", "Sprite name"),),
    ),
    _contract(
        "Sys_Wait",
        "Wait for a specified time",
        required=(CommandParam("time", "int", "Time to wait in milliseconds"),),
        optional=(CommandParam("canSkip", "bool", "If true, user can skip the wait", default=False),),
    ),
    _contract(
        "Deliver_Gift",
        "Deliver a named gift to someone",
        games=(GREYLING_GROVE,),
        required=(
            CommandParam("to", "string", "Person to deliver to"),
            CommandParam(
                "giftName",
                "string",
                "The name of the gift to deliver, e.g. the first gift from Alyx is 'Alyx_0'",
            ),
        ),
    ),
    _contract(
        "Give_Item",
        "Attempt to give the player an item; if the player cannot accept it the game keeps it retrievable",
        required=(CommandParam("itemName", "string", "Name of the item"),),
    ),
    _contract(
        "Check_Has",
        "Check whether a character has received an item and jump to a line marker accordingly",
        required=(
            CommandParam("person", "string", "The person to check"),
            CommandParam("itemName", "string", "Name of the item to check"),
            CommandParam("successMarker", "string", "Line marker to jump to on success"),
            CommandParam("failureMarker", "string", "Line marker to jump to on failure"),
        ),
    ),
    _contract(
        "Give_Achievement",
        "Unlock an achievement for the player",
        version="4.1.0s",
        required=(CommandParam("achievement", "string", "Achievement identifier"),),
    ),
    _contract(
        "Set_IntVar",
        "Declare or update an integer variable",
        version="4.1.0s",
        required=(
            CommandParam("name", "string", "Variable name"),
            CommandParam("value", "int", "New value"),
        ),
    ),
    _contract(
        "Set_BoolVar",
        "Declare or update a boolean variable",
        version="4.1.0s",
        required=(
            CommandParam("name", "string", "Variable name"),
            CommandParam("value", "bool", "New value"),
        ),
    ),
    _contract(
        "Set_StringVar",
        "Declare or update a string variable",
        version="4.1.0s",
        required=(
            CommandParam("name", "string", "Variable name"),
            CommandParam("value", "string", "New value"),
        ),
    ),
    _contract(
        "Show_Options",
        "Show up to three options and jump to the line marker paired with the chosen one",
        version="4.1.0s",
        required=(CommandParam("option1", "string", "First option text"),),
        trailing=(
            CommandParam("option2", "string", "Second option text, empty to hide", default=""),
            CommandParam("option3", "string", "Third option text, empty to hide", default=""),
        ),
        optional=(
            CommandParam("lm1", "string", "Line marker for the first option", default=""),
            CommandParam("lm2", "string", "Line marker for the second option", default=""),
            CommandParam("lm3", "string", "Line marker for the third option", default=""),
        ),
    ),
    _contract(
        "Meta",
        "Declare the target game and Oyster version of the script",
        optional=(
            CommandParam("game", "string", "Game the script is written for"),
            CommandParam("version", "string", "Oyster version the script targets"),
        ),
    ),
)

# Keys are case-folded; values are canonical game names.
GAME_ALIASES: Final[dict[str, str]] = {
    "base": "Base",
    "christmas at greyling grove": GREYLING_GROVE,
    "greyling grove": GREYLING_GROVE,
    "grovegame": GREYLING_GROVE,
    "cagg": GREYLING_GROVE,
}
