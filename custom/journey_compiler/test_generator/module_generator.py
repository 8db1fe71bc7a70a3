"""
Module Generator - Render IR into a reusable support module

A support module is a PascalCase page-object class whose locators are
readonly camelCase properties, plus one exported function per action
sequence that delegates to the class.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence, Set, Union

from journey_compiler.ir.types import Action, IRJourney, IRStep, Locator, LocatorStrategy, ValueType
from journey_compiler.test_generator.escape import escape_comment, to_camel_case, to_pascal_case
from journey_compiler.test_generator.templates import RenderContext, render_action, render_locator
from journey_compiler.test_generator.test_generator import INDENT, indent_lines
from journey_compiler.utils.errors import CodeGenerationError, handle_errors
from journey_compiler.utils.logger import get_logger


logger = get_logger("module_generator")


@dataclass
class ModuleLocator:
    name: str
    locator: Locator

    @property
    def playwright(self) -> str:
        return render_locator(self.locator)


@dataclass
class ModuleMethod:
    name: str
    description: str
    body: List[str] = field(default_factory=list)


@dataclass
class GeneratedModule:
    """A rendered support module"""
    module_name: str
    class_name: str
    filename: str
    code: str
    locators: List[ModuleLocator] = field(default_factory=list)
    methods: List[ModuleMethod] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module_name": self.module_name,
            "class_name": self.class_name,
            "filename": self.filename,
            "locators": [loc.name for loc in self.locators],
            "methods": [m.name for m in self.methods],
        }


def module_filename(name: str) -> str:
    """
    Examples:
        >>> module_filename("Order History")
        'order-history.ts'
    """
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return f"{slug or 'module'}.ts"


def locator_base_name(locator: Locator) -> str:
    """
    Property name stem for a locator

    Examples:
        >>> locator_base_name(Locator(LocatorStrategy.ROLE, "Save", role="button"))
        'saveButton'
        >>> locator_base_name(Locator(LocatorStrategy.LABEL, "Email"))
        'emailField'
    """
    strategy = locator.strategy
    if strategy == LocatorStrategy.ROLE:
        role = locator.role or "element"
        if locator.value:
            return to_camel_case(locator.value) + to_pascal_case(role)
        return to_camel_case(role) + "Element"
    if strategy in (LocatorStrategy.LABEL, LocatorStrategy.PLACEHOLDER, LocatorStrategy.TEXT):
        return to_camel_case(locator.value) + "Field"
    if strategy == LocatorStrategy.TESTID:
        return to_camel_case(locator.value)
    match = re.search(r"[#.]?([A-Za-z][A-Za-z0-9_-]*)", locator.value)
    return to_camel_case(match.group(1)) if match else "element"


class LocatorRegistry:
    """Assigns one unique property name per distinct locator"""

    def __init__(self, reserved: Sequence[str] = ()):
        self.locators: List[ModuleLocator] = []
        self._by_locator: Dict[Locator, ModuleLocator] = {}
        self._names: Set[str] = {"page", *reserved}

    def name_for(self, locator: Locator) -> str:
        existing = self._by_locator.get(locator)
        if existing is not None:
            return existing.name

        base = locator_base_name(locator)
        name = base
        counter = 1
        while name in self._names:
            name = f"{base}{counter}"
            counter += 1
        self._names.add(name)

        entry = ModuleLocator(name=name, locator=locator)
        self.locators.append(entry)
        self._by_locator[locator] = entry
        return name


class ModuleGenerator:
    """
    Generates a page-object style support module

    Args:
        suffix: Appended to the PascalCase class name
    """

    def __init__(self, suffix: str = "Page"):
        self.suffix = suffix

    @handle_errors(component="module_generator", reraise=True)
    def generate(self, source: Union[IRJourney, Sequence[Action]], name: str) -> GeneratedModule:
        """
        Render a support module named ``name``

        Args:
            source: An IRJourney (one method per step) or a flat action list
                (a single method)
            name: Module name; drives the class name and filename
        """
        if not name or not name.strip():
            raise CodeGenerationError("Module name must be non-empty", component="module_generator")

        steps = self._steps_from(source, name)
        class_name = to_pascal_case(name)
        if not class_name.endswith(self.suffix):
            class_name += self.suffix

        used: Set[str] = set()
        method_names = [self._unique(to_camel_case(step.step_id), used) for step in steps]

        # Class members share one namespace
        registry = LocatorRegistry(reserved=method_names)
        ctx = RenderContext(page="this.page", locator_ref=lambda loc: f"this.{registry.name_for(loc)}")

        methods: List[ModuleMethod] = []
        for step, method_name in zip(steps, method_names):
            body: List[str] = []
            for action in step.all_actions():
                body.extend(render_action(action, ctx))
            methods.append(ModuleMethod(name=method_name, description=step.description, body=body))

        if ctx.used_values & {ValueType.ACTOR, ValueType.TEST_DATA, ValueType.GENERATED}:
            logger.warning(
                f"⚠️  Module {name} uses run-time values; callers must provide actor/testData/runId in scope"
            )

        code = self._assemble(name, class_name, registry.locators, methods)
        logger.debug(f"✓ Rendered module {module_filename(name)} ({len(methods)} methods)")

        return GeneratedModule(
            module_name=name,
            class_name=class_name,
            filename=module_filename(name),
            code=code,
            locators=list(registry.locators),
            methods=methods,
        )

    def _steps_from(self, source: Union[IRJourney, Sequence[Action]], name: str) -> List[IRStep]:
        if isinstance(source, IRJourney):
            return list(source.steps)
        step = IRStep(step_id=f"run {name}", description=name)
        for action in source:
            step.add(action)
        return [step]

    @staticmethod
    def _unique(base: str, used: Set[str]) -> str:
        name = base
        counter = 1
        while name in used:
            name = f"{base}{counter}"
            counter += 1
        used.add(name)
        return name

    def _assemble(self,
                  name: str,
                  class_name: str,
                  locators: List[ModuleLocator],
                  methods: List[ModuleMethod]) -> str:
        lines = [
            "/**",
            f" * Support module: {escape_comment(name)}",
            " * Generated by journey_compiler. Do not edit by hand.",
            " */",
            "import { expect, type Locator, type Page } from '@playwright/test';",
            "",
            f"export class {class_name} {{",
            f"{INDENT}readonly page: Page;",
        ]
        lines.extend(f"{INDENT}readonly {loc.name}: Locator;" for loc in locators)
        lines.append("")
        lines.append(f"{INDENT}constructor(page: Page) {{")
        lines.append(f"{INDENT * 2}this.page = page;")
        lines.extend(f"{INDENT * 2}this.{loc.name} = page.{loc.playwright};" for loc in locators)
        lines.append(f"{INDENT}}}")

        for method in methods:
            lines.append("")
            if method.description:
                lines.append(f"{INDENT}/** {escape_comment(method.description)} */")
            lines.append(f"{INDENT}async {method.name}(): Promise<void> {{")
            lines.extend(indent_lines(method.body, 2))
            lines.append(f"{INDENT}}}")
        lines.append("}")

        for method in methods:
            lines.append("")
            lines.append(f"export async function {method.name}(page: Page): Promise<void> {{")
            lines.append(f"{INDENT}await new {class_name}(page).{method.name}();")
            lines.append("}")

        lines.append("")
        return "\n".join(lines)


def render_module(source: Union[IRJourney, Sequence[Action]], name: str) -> str:
    """Render a support module to source text"""
    return ModuleGenerator().generate(source, name).code


def write_module(module: GeneratedModule, directory: Union[str, Path]) -> Path:
    target = Path(directory)
    target.mkdir(parents=True, exist_ok=True)
    path = target / module.filename
    path.write_text(module.code, encoding="utf-8")
    logger.info(f"✓ Wrote {path}")
    return path


__all__ = [
    "ModuleLocator",
    "ModuleMethod",
    "GeneratedModule",
    "LocatorRegistry",
    "ModuleGenerator",
    "module_filename",
    "locator_base_name",
    "render_module",
    "write_module",
]
