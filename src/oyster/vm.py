"""Execution engine for parsed Oyster scripts."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from oyster.adapters import GameBridge, GameCommand
from oyster.catalog import CommandCatalog, default_catalog
from oyster.models import Param, ParamType, Statement, StringValue, Variable, VarRef
from oyster.parser import DEFAULT_COMMENT_PREFIXES, PLACEHOLDER_RE, classify_value, parse

_LEADING_INT = re.compile(r"^[-+]?\d+")

Handler = Callable[[Statement], int | None]


class VMState(str, Enum):
    """Execution states of a single script run."""

    RUNNING = "running"
    WAITING_TIMER = "waiting_timer"
    WAITING_CHOICE = "waiting_choice"
    HALTED = "halted"


class ScriptRunStatus(str, Enum):
    """How a run ended (or ``running`` while it has not)."""

    RUNNING = "running"
    COMPLETED = "completed"
    STOPPED = "stopped"
    CANCELLED = "cancelled"
    FAILED = "failed"


class VMStateError(RuntimeError):
    """Raised when a resume operation does not match the VM's waiting state."""


class ScriptOutput(Protocol):
    """Surface a running script writes dialogue to and asks choices from."""

    def append_line(self, text: str) -> None:
        """Display one line of script output."""

    async def choose(self, options: list[str]) -> int | None:
        """Return the index of the picked option, or ``None`` if the prompt was dismissed."""


@dataclass(slots=True)
class PendingChoice:
    options: list[str]
    markers: list[str | None]


@dataclass(slots=True)
class ScriptRunResult:
    status: ScriptRunStatus
    steps: int
    pc: int
    error: str | None = None


def build_label_index(statements: Iterable[Statement]) -> dict[str, int]:
    """Map each line marker name to the index of its first declaration."""
    labels: dict[str, int] = {}
    for index, statement in enumerate(statements):
        if statement.key == "line_marker" and statement.params:
            labels.setdefault(statement.params[0].value, index)
    return labels


def parse_int(text: str) -> int:
    match = _LEADING_INT.match(text.strip())
    return int(match.group(0)) if match else 0


class OysterVM:
    """Interprets one script; owns its program counter, labels and variables."""

    def __init__(
        self,
        script: str | Sequence[Statement],
        *,
        output: ScriptOutput,
        catalog: CommandCatalog | None = None,
        bridge: GameBridge | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        wait_time_scale: float = 1.0,
        comment_prefixes: Iterable[str] = DEFAULT_COMMENT_PREFIXES,
        logger: logging.Logger | None = None,
    ) -> None:
        if isinstance(script, str):
            self.statements = parse(script, comment_prefixes=comment_prefixes)
        else:
            self.statements = tuple(script)
        self.labels = build_label_index(self.statements)
        self.variables: dict[str, Variable] = {}
        self.pc = 0
        self.steps = 0
        self.state = VMState.RUNNING
        self.status = ScriptRunStatus.RUNNING
        self.error: str | None = None
        self.pending_wait_ms = 0
        self.pending_choice: PendingChoice | None = None

        self._output = output
        self._catalog = catalog or default_catalog()
        self._bridge = bridge
        self._sleep = sleep
        self._wait_time_scale = wait_time_scale
        self._logger = logger or logging.getLogger("oyster.vm")
        self._handlers: dict[str, Handler] = {
            "act_speak": self._append_text,
            "act_append": self._append_text,
            "line_marker": self._noop,
            "meta": self._noop,
            "jump_to": self._jump_to,
            "set_intvar": self._set_int,
            "set_boolvar": self._set_bool,
            "set_stringvar": self._set_string,
            "sys_wait": self._wait,
            "show_options": self._show_options,
            "check_has": self._check_has,
        }
        self._halt_if_exhausted()

    def result(self) -> ScriptRunResult:
        return ScriptRunResult(status=self.status, steps=self.steps, pc=self.pc, error=self.error)

    def step(self) -> VMState:
        """Execute the statement at ``pc`` and advance unless it redirected control."""
        if self.state is not VMState.RUNNING:
            return self.state

        statement = self.statements[self.pc]
        self.steps += 1
        handler = self._handlers.get(statement.key, self._unhandled)
        target = handler(statement)
        self.pc = self.pc + 1 if target is None else target
        self._halt_if_exhausted()
        return self.state

    def resume_timer(self) -> None:
        if self.state is not VMState.WAITING_TIMER:
            raise VMStateError(f"Cannot resume a timer while {self.state.value}")
        self.pending_wait_ms = 0
        self.state = VMState.RUNNING
        self._halt_if_exhausted()

    def resume_choice(self, index: int | None) -> None:
        """Resolve a pending choice; ``None`` means the prompt was dismissed and halts the run."""
        if self.state is not VMState.WAITING_CHOICE or self.pending_choice is None:
            raise VMStateError(f"Cannot resume a choice while {self.state.value}")

        choice = self.pending_choice
        if index is None:
            self.pending_choice = None
            self._logger.info("choice_cancelled", extra={"pc": self.pc})
            self._finish(ScriptRunStatus.CANCELLED)
            return
        if not 0 <= index < len(choice.options):
            raise VMStateError(f"Choice index {index} out of range for {len(choice.options)} options")

        self.pending_choice = None
        marker = choice.markers[index]
        if marker and marker in self.labels:
            self.pc = self.labels[marker]
        self.state = VMState.RUNNING
        self._halt_if_exhausted()

    def stop(self) -> None:
        if self.state is not VMState.HALTED:
            self._finish(ScriptRunStatus.STOPPED)

    async def run(self, max_steps: int | None = None) -> ScriptRunResult:
        """Drive the script until it halts; handler failures end the run as ``failed``."""
        self._logger.info(
            "script_started",
            extra={"statement_count": len(self.statements), "label_count": len(self.labels)},
        )
        try:
            while self.state is not VMState.HALTED:
                if self.state is VMState.WAITING_TIMER:
                    await self._sleep(self.pending_wait_ms / 1000 * self._wait_time_scale)
                    self.resume_timer()
                elif self.state is VMState.WAITING_CHOICE:
                    options = list(self.pending_choice.options) if self.pending_choice else []
                    self.resume_choice(await self._output.choose(options))
                elif max_steps is not None and self.steps >= max_steps:
                    self._logger.info("script_step_limit", extra={"max_steps": max_steps, "pc": self.pc})
                    self.stop()
                else:
                    self.step()
        except asyncio.CancelledError:
            self._finish(ScriptRunStatus.CANCELLED)
            self._logger.info("script_cancelled", extra={"pc": self.pc, "steps": self.steps})
            raise
        except Exception as exc:  # noqa: BLE001 - a failing handler must not take the host down.
            self.error = f"{type(exc).__name__}: {exc}"
            self._logger.exception("script_failed", extra={"pc": self.pc, "steps": self.steps})
            self._output.append_line(f"Error during execution: {self.error}")
            self._finish(ScriptRunStatus.FAILED)

        self._logger.info(
            "script_finished",
            extra={"status": self.status.value, "steps": self.steps, "pc": self.pc},
        )
        return self.result()

    def resolve(self, param: Param | None) -> str:
        """Text of a parameter after variable reads and ``{Name}`` interpolation."""
        if param is None:
            return ""
        value = classify_value(param.raw_value)
        if isinstance(value, VarRef):
            return self._display(value.name)
        if isinstance(value, StringValue):
            if value.interpolated:
                return PLACEHOLDER_RE.sub(lambda match: self._display(match.group(1)), value.text)
            return value.text
        return param.value

    def _display(self, name: str) -> str:
        variable = self.variables.get(name)
        if variable is None:
            return ""
        if isinstance(variable.value, bool):
            return "true" if variable.value else "false"
        return str(variable.value)

    def _argument(self, statement: Statement, position: int) -> str:
        positional = statement.positional
        return self.resolve(positional[position]) if position < len(positional) else ""

    def _finish(self, status: ScriptRunStatus) -> None:
        self.state = VMState.HALTED
        self.status = status

    def _halt_if_exhausted(self) -> None:
        if self.state is VMState.RUNNING and self.pc >= len(self.statements):
            self._finish(ScriptRunStatus.COMPLETED)

    def _noop(self, statement: Statement) -> int | None:
        return None

    def _append_text(self, statement: Statement) -> int | None:
        self._output.append_line(self._argument(statement, 0))
        return None

    def _jump_to(self, statement: Statement) -> int | None:
        target = self._argument(statement, 0)
        index = self.labels.get(target)
        if index is None:
            self._logger.debug("jump_target_missing", extra={"marker": target, "pc": self.pc})
        return index

    def _assign(self, statement: Statement, var_type: ParamType, value: int | bool | str) -> None:
        name = self._argument(statement, 0)
        if not name:
            return
        self.variables[name] = Variable(name=name, type=var_type, value=value, declared_line=statement.line)
        self._logger.debug("variable_set", extra={"variable": name, "var_type": var_type})

    def _set_int(self, statement: Statement) -> int | None:
        self._assign(statement, "int", parse_int(self._argument(statement, 1)))
        return None

    def _set_bool(self, statement: Statement) -> int | None:
        self._assign(statement, "bool", self._argument(statement, 1).lower() == "true")
        return None

    def _set_string(self, statement: Statement) -> int | None:
        self._assign(statement, "string", self._argument(statement, 1))
        return None

    def _wait(self, statement: Statement) -> int | None:
        self.pending_wait_ms = max(0, parse_int(self._argument(statement, 0)))
        self.state = VMState.WAITING_TIMER
        return None

    def _show_options(self, statement: Statement) -> int | None:
        options: list[str] = []
        markers: list[str | None] = []
        for slot, param in enumerate(statement.positional[:3], start=1):
            text = self.resolve(param)
            if not text:
                continue
            options.append(text)
            markers.append(self.resolve(statement.named(f"lm{slot}")) or None)

        if options:
            self.pending_choice = PendingChoice(options=options, markers=markers)
            self.state = VMState.WAITING_CHOICE
        return None

    def _check_has(self, statement: Statement) -> int | None:
        if self._bridge is None:
            return self._unhandled(statement)
        person = self._argument(statement, 0)
        item = self._argument(statement, 1)
        passed = self._bridge.check_has(person, item)
        marker = self._argument(statement, 2 if passed else 3)
        return self.labels.get(marker)

    def _unhandled(self, statement: Statement) -> int | None:
        contract = self._catalog.resolve(statement.command)
        if contract is not None and self._bridge is not None:
            payload = GameCommand(
                name=contract.name,
                arguments=[self.resolve(param) for param in statement.positional],
                options={param.name: self.resolve(param) for param in statement.params if param.name is not None},
            )
            response = self._bridge.send(payload)
            self._logger.debug("game_command_sent", extra={"command": contract.name, "response": response})
            return None

        values = ", ".join(param.value for param in statement.params)
        self._output.append_line(f"(unhandled) {statement.command} {values}".rstrip())
        self._logger.debug("command_unhandled", extra={"command": statement.command, "pc": self.pc})
        return None


async def run_script(
    script: str | Sequence[Statement],
    output: ScriptOutput,
    *,
    max_steps: int | None = None,
    **options,
) -> ScriptRunResult:
    """Run a script to completion on a fresh VM."""
    return await OysterVM(script, output=output, **options).run(max_steps=max_steps)
