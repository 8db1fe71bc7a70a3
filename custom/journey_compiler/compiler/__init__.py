"""
Compiler Module

Entry points usable without any CLI:

- ``compile(journey, store_snapshot) -> (IR, diagnostics)``
- ``render(IR) -> source_text``
- ``compile_file``, ``compile_batch`` and ``write_outputs`` for files on disk
"""

from .compiler import (
    compile_journey,
    render,
    render_module,
    CompileResult,
    CompileSummary,
    compile_file,
    compile_batch,
    write_outputs,
)

compile = compile_journey

__all__ = [
    "compile",
    "compile_journey",
    "render",
    "render_module",
    "CompileResult",
    "CompileSummary",
    "compile_file",
    "compile_batch",
    "write_outputs",
]
