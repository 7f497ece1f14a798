"""Oyster script tooling: parser, catalog, validator and interpreter."""

from oyster.catalog import CommandCatalog, CommandDescription, default_catalog
from oyster.diagnostics import Diagnostic, has_errors
from oyster.models import CommandContract, CommandParam, Param, Statement
from oyster.parser import parse, split_params
from oyster.validator import OysterValidator, validate
from oyster.vm import OysterVM, ScriptOutput, ScriptRunResult, ScriptRunStatus, VMState, run_script

__all__ = [
    "CommandCatalog",
    "CommandContract",
    "CommandDescription",
    "CommandParam",
    "Diagnostic",
    "OysterVM",
    "OysterValidator",
    "Param",
    "ScriptOutput",
    "ScriptRunResult",
    "ScriptRunStatus",
    "Statement",
    "VMState",
    "default_catalog",
    "has_errors",
    "parse",
    "run_script",
    "split_params",
    "validate",
]
