"""
Test Generator - Render IR into Playwright test files

Produces one ``<journey id>.spec.ts`` per journey: a ``test.describe`` block
with ``beforeEach``/``afterEach`` hooks and one ``test.step`` per IR step.
Blocked actions are rendered as failing placeholders so an incomplete
journey can never pass.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from journey_compiler.config import GeneratorConfig
from journey_compiler.ir.types import ActionKind, IRJourney, IRStep, ValueType
from journey_compiler.test_generator.escape import escape_comment, quote
from journey_compiler.test_generator.templates import RenderContext, module_identifier, render_action
from journey_compiler.utils.errors import CodeGenerationError, handle_errors
from journey_compiler.utils.logger import get_logger


INDENT = "  "

# Fixture modules generated tests import run-time values from
ACTOR_FIXTURE_MODULE = "@fixtures/actors"
TEST_DATA_FIXTURE_MODULE = "@fixtures/test-data"
MODULE_IMPORT_PREFIX = "@modules/"


# ============================================================================
# Data Models
# ============================================================================

@dataclass
class ImportStatement:
    members: List[str]
    source: str

    def render(self) -> str:
        return f"import {{ {', '.join(self.members)} }} from {quote(self.source)};"


@dataclass
class GeneratedTest:
    """Represents a generated test file"""
    journey_id: str
    filename: str
    code: str
    imports: List[ImportStatement] = field(default_factory=list)
    blocked_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "journey_id": self.journey_id,
            "filename": self.filename,
            "imports": [imp.render() for imp in self.imports],
            "blocked_count": self.blocked_count,
        }


def spec_filename(journey_id: str) -> str:
    """
    Examples:
        >>> spec_filename("JRN-0042")
        'jrn-0042.spec.ts'
    """
    return f"{journey_id.lower()}.spec.ts"


def indent_lines(lines: List[str], depth: int) -> List[str]:
    prefix = INDENT * depth
    return [f"{prefix}{line}" if line else "" for line in lines]


# ============================================================================
# Test Generator
# ============================================================================

class TestGenerator:
    """
    Generates Playwright test files from IR

    Responsibilities:
    - Render every IR step through the per-kind templates
    - Collect module and fixture imports
    - Emit setup/teardown hooks
    """

    __test__ = False  # not a pytest class

    def __init__(self, config: Optional[GeneratorConfig] = None):
        self.logger = get_logger("test_generator")
        self.config = config or GeneratorConfig()

    @handle_errors(component="test_generator", reraise=True)
    def generate(self, ir: IRJourney) -> GeneratedTest:
        """
        Render ``ir`` into a complete test file

        Raises:
            CodeGenerationError: If an action has no template
        """
        ctx = RenderContext(page="page")
        body: List[str] = []
        for step in ir.steps:
            body.extend(self._render_step(step, ctx))

        imports = self._collect_imports(ir, ctx)
        code = self._assemble(ir, imports, ctx, body)
        blocked = len(ir.blocked_actions())

        if blocked:
            self.logger.warning(f"⚠️  {ir.journey_id}: rendered with {blocked} blocked placeholder(s)")
        else:
            self.logger.debug(f"✓ Rendered {spec_filename(ir.journey_id)}")

        return GeneratedTest(
            journey_id=ir.journey_id,
            filename=spec_filename(ir.journey_id),
            code=code,
            imports=imports,
            blocked_count=blocked,
        )

    def write(self, generated: GeneratedTest, output_directory: Optional[Union[str, Path]] = None) -> Path:
        """Write a generated test under the output directory"""
        directory = Path(output_directory or self.config.output_directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / generated.filename
        path.write_text(generated.code, encoding="utf-8")
        self.logger.info(f"✓ Wrote {path}")
        return path

    def _render_step(self, step: IRStep, ctx: RenderContext) -> List[str]:
        lines: List[str] = []
        for action in step.all_actions():
            if action.source_text and action.kind != ActionKind.BLOCKED:
                lines.append(f"// {escape_comment(action.source_text)}")
            lines.extend(render_action(action, ctx))

        title = quote(f"{step.step_id}: {step.description}" if step.description else step.step_id)
        return [
            f"await test.step({title}, async () => {{",
            *indent_lines(lines, 1),
            "});",
        ]

    def _collect_imports(self, ir: IRJourney, ctx: RenderContext) -> List[ImportStatement]:
        imports = [ImportStatement(["test", "expect"], "@playwright/test")]

        called = sorted({
            action.module for _, action in ir.iter_actions()
            if action.kind == ActionKind.CALL_MODULE and action.module
        })
        for module in called:
            imports.append(ImportStatement([module_identifier(module)], f"{MODULE_IMPORT_PREFIX}{module}"))

        if ValueType.ACTOR in ctx.used_values:
            imports.append(ImportStatement(["actors"], ACTOR_FIXTURE_MODULE))
        if ValueType.TEST_DATA in ctx.used_values:
            imports.append(ImportStatement(["testData"], TEST_DATA_FIXTURE_MODULE))
        return imports

    def _header(self, ir: IRJourney) -> List[str]:
        details = [f"Tier: {ir.tier}", f"Actor: {ir.actor}"]
        if ir.scope:
            details.append(f"Scope: {ir.scope}")
        lines = [
            "/**",
            f" * Journey: {escape_comment(ir.journey_id)} - {escape_comment(ir.title)}",
            f" * {escape_comment(' | '.join(details))}",
        ]
        if ir.source_path:
            lines.append(f" * Source: {escape_comment(ir.source_path)}")
        lines.append(f" * Generated by journey_compiler (patterns {ir.pattern_version}). Do not edit by hand.")
        lines.append(" */")
        return lines

    def _hooks(self, ir: IRJourney) -> List[str]:
        before = [f"test.setTimeout({int(self.config.test_timeout_ms)});"]
        if ir.data_strategy:
            before.insert(0, f"// Data strategy: {escape_comment(ir.data_strategy)}")

        after: List[str] = []
        if ir.cleanup_strategy:
            after.append(f"// Cleanup strategy: {escape_comment(ir.cleanup_strategy)}")
        after.append("await page.context().clearCookies();")

        return [
            "test.beforeEach(async ({ page }) => {",
            *indent_lines(before, 1),
            "});",
            "",
            "test.afterEach(async ({ page }) => {",
            *indent_lines(after, 1),
            "});",
        ]

    def _assemble(self,
                  ir: IRJourney,
                  imports: List[ImportStatement],
                  ctx: RenderContext,
                  body: List[str]) -> str:
        lines = self._header(ir)
        lines.extend(imp.render() for imp in imports)
        lines.append("")

        if ValueType.ACTOR in ctx.used_values:
            lines.append(f"const actor = actors[{quote(ir.actor)}];")
        if ValueType.GENERATED in ctx.used_values:
            lines.append("const runId = Date.now().toString(36);")
        if ValueType.ACTOR in ctx.used_values or ValueType.GENERATED in ctx.used_values:
            lines.append("")

        tags = [f"@{ir.tier}"] + [f"@{tag}" for tag in ir.tags]
        tag_list = ", ".join(quote(tag) for tag in tags)
        describe_title = quote(f"{ir.journey_id}: {ir.title}")

        inner: List[str] = [f"test.use({{ baseURL: {quote(self.config.base_url)} }});", ""]
        inner.extend(self._hooks(ir))
        inner.append("")
        inner.append(f"test({quote(ir.title)}, async ({{ page }}) => {{")
        inner.extend(indent_lines(body, 1))
        inner.append("});")

        lines.append(f"test.describe({describe_title}, {{ tag: [{tag_list}] }}, () => {{")
        lines.extend(indent_lines(inner, 1))
        lines.append("});")
        lines.append("")
        return "\n".join(lines)


def render(ir: IRJourney, config: Optional[GeneratorConfig] = None) -> str:
    """Render IR to test source text"""
    if not isinstance(ir, IRJourney):
        raise CodeGenerationError(
            f"render() expects an IRJourney, got {type(ir).__name__}",
            component="test_generator",
        )
    return TestGenerator(config).generate(ir).code


__all__ = [
    "ImportStatement",
    "GeneratedTest",
    "TestGenerator",
    "spec_filename",
    "render",
]
