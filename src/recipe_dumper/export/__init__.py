"""Dump output: the streaming JSON writer and the run orchestrator."""

from .recipe_dumper import DumpResult, DumpState, RecipeDumper
from .stream_emitter import StreamEmitter

__all__ = ["DumpResult", "DumpState", "RecipeDumper", "StreamEmitter"]
