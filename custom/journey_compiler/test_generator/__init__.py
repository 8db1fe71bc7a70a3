"""
Test Generator Module

Render IR into Playwright test files and reusable support modules.
"""

from .escape import escape_string, escape_regex, to_camel_case, to_pascal_case
from .templates import TEMPLATES, RenderContext, render_action, render_blocked, render_locator, render_value
from .test_generator import GeneratedTest, ImportStatement, TestGenerator, render, spec_filename
from .module_generator import GeneratedModule, ModuleGenerator, module_filename, render_module, write_module

__all__ = [
    "escape_string",
    "escape_regex",
    "to_camel_case",
    "to_pascal_case",
    "TEMPLATES",
    "RenderContext",
    "render_action",
    "render_blocked",
    "render_locator",
    "render_value",
    "GeneratedTest",
    "ImportStatement",
    "TestGenerator",
    "render",
    "spec_filename",
    "GeneratedModule",
    "ModuleGenerator",
    "module_filename",
    "render_module",
    "write_module",
]
