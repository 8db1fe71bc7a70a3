"""
Unit tests for test file and support module generation
"""

import pytest

from journey_compiler.config import GeneratorConfig
from journey_compiler.ir.builder import build_ir
from journey_compiler.ir.types import (
    Action,
    ActionKind,
    BlockedCategory,
    BlockedReason,
    IRJourney,
    IRStep,
    Locator,
    LocatorStrategy,
    ValueSpec,
    ValueType,
)
from journey_compiler.mapping.patterns import label_locator, role_locator
from journey_compiler.test_generator import templates
from journey_compiler.test_generator.escape import (
    escape_comment,
    escape_regex,
    property_access,
    quote,
    to_camel_case,
    to_pascal_case,
)
from journey_compiler.test_generator.module_generator import (
    ModuleGenerator,
    locator_base_name,
    module_filename,
    write_module,
)
from journey_compiler.test_generator.templates import (
    RenderContext,
    render_action,
    render_blocked,
    render_locator,
    render_value,
)
from journey_compiler.test_generator.test_generator import TestGenerator, render, spec_filename
from journey_compiler.utils.errors import CodeGenerationError


@pytest.fixture
def generated(sample_journey):
    ir, _ = build_ir(sample_journey)
    return TestGenerator().generate(ir)


class TestEscaping:
    """Test string and identifier helpers"""

    def test_quote(self):
        """Test: quotes and newlines are escaped."""
        assert quote("it's") == "'it\\'s'"
        assert quote("a\nb") == "'a\\nb'"

    def test_escape_regex(self):
        """Test: slashes and dots are escaped for regex literals."""
        assert escape_regex("/a.b") == "\\/a\\.b"

    def test_escape_comment(self):
        """Test: comment terminators and newlines are neutralized."""
        assert escape_comment("a */ b\nc") == "a * / b c"

    def test_case_helpers(self):
        """Test: PascalCase and camelCase conversions."""
        assert to_pascal_case("order-history page") == "OrderHistoryPage"
        assert to_camel_case("AC-1") == "ac1"
        assert to_pascal_case("1st step") == "M1stStep"

    def test_property_access(self):
        """Test: non-identifier segments use bracket access."""
        assert property_access("actor", "email") == "actor.email"
        assert property_access("testData", "user.first-name") == "testData['user']['first-name']"


class TestTemplates:
    """Test per-kind rendering"""

    def test_render_locator(self):
        """Test: each locator strategy."""
        assert render_locator(role_locator("button", "Save")) == "getByRole('button', { name: 'Save' })"
        assert render_locator(Locator(LocatorStrategy.ROLE, "", role="dialog")) == "getByRole('dialog')"
        assert render_locator(label_locator("country")) == "getByLabel('country')"
        assert render_locator(Locator(LocatorStrategy.TESTID, "save")) == "getByTestId('save')"
        assert render_locator(Locator(LocatorStrategy.TEXT, "Hi", exact=True)) == "getByText('Hi', { exact: true })"

    def test_render_value(self):
        """Test: each value type."""
        assert render_value(ValueSpec(ValueType.ACTOR, "email")) == "actor.email"
        assert render_value(ValueSpec(ValueType.TEST_DATA, "order.id")) == "testData.order.id"
        assert render_value(ValueSpec(ValueType.GENERATED, "user-${runId}")) == "`user-${runId}`"
        assert render_value(ValueSpec(ValueType.LITERAL, "USA")) == "'USA'"

    def test_select(self):
        """Test: select renders selectOption."""
        action = Action(ActionKind.SELECT, locator=label_locator("country"), option="USA")
        assert render_action(action) == ["await page.getByLabel('country').selectOption('USA');"]

    def test_toast_with_message(self):
        """Test: a toast message becomes a text visibility check."""
        action = Action(ActionKind.ASSERT_TOAST, toast_type="success", message="Account created")
        assert render_action(action) == ["await expect(page.getByText('Account created')).toBeVisible();"]

    def test_timeout_option(self):
        """Test: timeouts become an options object."""
        action = Action(ActionKind.CLICK, locator=role_locator("button", "Save"), timeout_ms=5000)
        assert render_action(action) == [
            "await page.getByRole('button', { name: 'Save' }).click({ timeout: 5000 });"
        ]

    def test_dialog_handler(self):
        """Test: alerts register a one-shot dialog handler."""
        assert render_action(Action(ActionKind.ACCEPT_ALERT)) == ["page.once('dialog', dialog => dialog.accept());"]

    def test_call_module(self):
        """Test: module calls pass the page first."""
        action = Action(ActionKind.CALL_MODULE, module="auth", method="loginAs", args=("admin",))
        assert render_action(action) == ['await auth.loginAs(page, "admin");']

    def test_call_module_requires_method(self):
        """Test: a module call without method is an error."""
        with pytest.raises(CodeGenerationError):
            render_action(Action(ActionKind.CALL_MODULE, module="auth"))

    def test_used_values_tracked(self):
        """Test: the render context records run-time values."""
        ctx = RenderContext()
        render_action(Action(ActionKind.FILL, locator=label_locator("Email"),
                             value=ValueSpec(ValueType.ACTOR, "email")), ctx)
        assert ValueType.ACTOR in ctx.used_values

    def test_missing_template(self, monkeypatch):
        """Test: a kind with no template raises CodeGenerationError."""
        monkeypatch.delitem(templates.TEMPLATES, ActionKind.HOVER)
        with pytest.raises(CodeGenerationError) as exc_info:
            render_action(Action(ActionKind.HOVER, locator=label_locator("x"), source_text="hover x"))
        assert "hover" in str(exc_info.value)

    def test_missing_locator(self):
        """Test: a locator action without a locator is an error."""
        with pytest.raises(CodeGenerationError):
            render_action(Action(ActionKind.CLICK))


class TestBlockedPlaceholder:
    """Test failing placeholders for blocked steps"""

    def test_structured_reason(self):
        """Test: structured reasons render a block comment and a throw."""
        action = Action(
            ActionKind.BLOCKED,
            source_text="Verify the totals",
            blocked=BlockedReason("Could not map step", BlockedCategory.ASSERTION, "Add a locator"),
        )
        lines = render_blocked(action)
        assert lines[0] == "/*"
        assert " * BLOCKED: Could not map step" in lines
        assert " * Reason: assertion" in lines
        assert " * Suggestion: Add a locator" in lines
        assert " * Source: Verify the totals" in lines
        assert lines[-1] == "throw new Error('BLOCKED: Could not map step - Verify the totals');"

    def test_legacy_reason(self):
        """Test: string reasons render a single-line comment."""
        lines = render_blocked(Action(ActionKind.BLOCKED, source_text="x", blocked="no pattern"))
        assert lines == [
            "// BLOCKED: no pattern (source: x)",
            "throw new Error('BLOCKED: no pattern - x');",
        ]


class TestTestGenerator:
    """Test full test file rendering"""

    def test_filename(self, generated):
        """Test: lowercased journey id with .spec.ts."""
        assert generated.filename == "jrn-0001.spec.ts"
        assert spec_filename("JRN-0042") == "jrn-0042.spec.ts"

    def test_imports(self, generated):
        """Test: playwright and actor fixture imports."""
        assert "import { test, expect } from '@playwright/test';" in generated.code
        assert "import { actors } from '@fixtures/actors';" in generated.code
        assert "const actor = actors['new-customer'];" in generated.code
        assert "@fixtures/test-data" not in generated.code

    def test_describe_and_tags(self, generated):
        """Test: describe block carries tier and tags."""
        assert (
            "test.describe('JRN-0001: Create an account', "
            "{ tag: ['@smoke', '@accounts', '@onboarding'] }, () => {"
        ) in generated.code
        assert "test.use({ baseURL: 'http://localhost:3000' });" in generated.code

    def test_hooks(self, generated):
        """Test: data and cleanup strategies are noted in the hooks."""
        assert "// Data strategy: seed" in generated.code
        assert "// Cleanup strategy: delete-created-user" in generated.code
        assert "test.setTimeout(30000);" in generated.code

    def test_steps(self, generated):
        """Test: one test.step per IR step with rendered statements."""
        code = generated.code
        assert "await test.step('AC-1: Sign up form', async () => {" in code
        assert "await page.goto('/signup');" in code
        assert "await page.getByLabel('Email').fill(actor.email);" in code
        assert "await page.getByLabel('country').selectOption('USA');" in code
        assert "await page.getByRole('button', { name: 'Save' }).click();" in code
        assert "await expect(page.getByText('Account created')).toBeVisible();" in code
        assert "waitForLoadState('networkidle'" in code
        assert "await expect(page).toHaveURL(/\\/dashboard/);" in code

    def test_source_comments(self, generated):
        """Test: every mapped action is preceded by its step text."""
        assert "// Click the 'Save' button" in generated.code

    def test_blocked_placeholder_emitted(self, generated):
        """Test: the blocked step fails loudly."""
        assert generated.blocked_count == 1
        assert (
            "throw new Error('BLOCKED: Could not map step - Verify the dashboard shows correct totals');"
        ) in generated.code

    def test_deterministic(self, sample_journey):
        """Test: the same IR renders identical text."""
        ir, _ = build_ir(sample_journey)
        assert render(ir) == render(ir)

    def test_module_import(self):
        """Test: called modules are imported by identifier."""
        ir = IRJourney(journey_id="JRN-0002", title="Orders", tier="release", actor="admin")
        step = IRStep(step_id="AC-1", description="Open")
        step.add(Action(ActionKind.CALL_MODULE, module="order-history", method="open", source_text="open"))
        ir.steps.append(step)
        code = render(ir)
        assert "import { orderHistory } from '@modules/order-history';" in code
        assert "await orderHistory.open(page);" in code

    def test_render_rejects_non_ir(self):
        """Test: render() only accepts IR."""
        with pytest.raises(CodeGenerationError):
            render({"journey_id": "JRN-0001"})

    def test_write(self, generated, tmp_path):
        """Test: write puts the file under the output directory."""
        generator = TestGenerator(GeneratorConfig(output_directory=str(tmp_path / "out")))
        path = generator.write(generated)
        assert path.name == "jrn-0001.spec.ts"
        assert path.read_text(encoding="utf-8") == generated.code


class TestModuleGenerator:
    """Test support module rendering"""

    def _actions(self):
        return [
            Action(ActionKind.FILL, locator=label_locator("Email"), value=ValueSpec(ValueType.LITERAL, "a@b.co")),
            Action(ActionKind.CLICK, locator=role_locator("button", "Save")),
            Action(ActionKind.ASSERT_VISIBLE, locator=role_locator("button", "Save")),
        ]

    def test_names(self):
        """Test: class, file and method names come from the module name."""
        module = ModuleGenerator().generate(self._actions(), "Order History")
        assert module.class_name == "OrderHistoryPage"
        assert module.filename == "order-history.ts"
        assert [m.name for m in module.methods] == ["runOrderHistory"]

    def test_locators_deduplicated(self):
        """Test: one property per distinct locator."""
        module = ModuleGenerator().generate(self._actions(), "Order History")
        assert [loc.name for loc in module.locators] == ["emailField", "saveButton"]
        assert "  readonly saveButton: Locator;" in module.code
        assert "    this.saveButton = page.getByRole('button', { name: 'Save' });" in module.code
        assert "await this.saveButton.click();" in module.code
        assert "await expect(this.saveButton).toBeVisible();" in module.code

    def test_exported_function(self):
        """Test: each method has an exported wrapper."""
        code = ModuleGenerator().generate(self._actions(), "Order History").code
        assert "export async function runOrderHistory(page: Page): Promise<void> {" in code
        assert "  await new OrderHistoryPage(page).runOrderHistory();" in code

    def test_from_ir(self, sample_journey):
        """Test: an IR gives one method per step."""
        ir, _ = build_ir(sample_journey)
        module = ModuleGenerator().generate(ir, "signup")
        assert [m.name for m in module.methods] == ["ac1", "ac2", "ps2"]
        assert module.class_name == "SignupPage"

    def test_empty_name_rejected(self):
        """Test: a blank module name is an error."""
        with pytest.raises(CodeGenerationError):
            ModuleGenerator().generate(self._actions(), "  ")

    def test_helpers(self, tmp_path):
        """Test: filename and locator naming helpers, and writing."""
        assert module_filename("Order History") == "order-history.ts"
        assert locator_base_name(label_locator("Email")) == "emailField"
        module = ModuleGenerator().generate(self._actions(), "Order History")
        path = write_module(module, tmp_path / "modules")
        assert path.read_text(encoding="utf-8") == module.code
