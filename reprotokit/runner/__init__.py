"""Compiler invocation for reprotokit."""

from reprotokit.runner.command import ReprotoCommand, ProcessResult, DEFAULT_LANGUAGE

__all__ = ["ReprotoCommand", "ProcessResult", "DEFAULT_LANGUAGE"]
