"""
Journey Compiler
================

Compiles free-text journey scenarios into Playwright TypeScript tests and
keeps a learning Pattern Store so fewer steps need manual repair over time.

Usage:
    from journey_compiler import compile, render, load_journey, PatternStore

    store = PatternStore("/path/to/.pattern-store")
    journey = load_journey("journeys/JRN-0001.journey.md")
    ir, diagnostics = compile(journey, store.snapshot())
    source = render(ir)
"""

__version__ = "1.0.0"

from .compiler import (
    compile,
    compile_journey,
    render,
    render_module,
    compile_file,
    compile_batch,
    write_outputs,
    CompileResult,
    CompileSummary,
)
from .config import CompilerConfig, GeneratorConfig, PatternStoreConfig, load_config
from .journey_extractor import Journey, load_journey, parse_journey_content
from .pattern_store import PatternStore, StoreSnapshot

__all__ = [
    "compile",
    "compile_journey",
    "render",
    "render_module",
    "compile_file",
    "compile_batch",
    "write_outputs",
    "CompileResult",
    "CompileSummary",
    "CompilerConfig",
    "GeneratorConfig",
    "PatternStoreConfig",
    "load_config",
    "Journey",
    "load_journey",
    "parse_journey_content",
    "PatternStore",
    "StoreSnapshot",
    "__version__",
]
