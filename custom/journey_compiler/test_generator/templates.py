"""
Action Templates

One template per ActionKind. Both render targets (full test file and support
module) go through ``render_action``; they differ only in how the page and
locators are referenced, which ``RenderContext`` captures.
"""

import json
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from journey_compiler.ir.types import Action, ActionKind, BlockedReason, Locator, LocatorStrategy, ValueSpec, ValueType
from journey_compiler.utils.errors import CodeGenerationError
from journey_compiler.test_generator.escape import (
    escape_comment,
    escape_regex,
    escape_template_literal,
    is_identifier,
    property_access,
    quote,
    to_camel_case,
)


BLOCKED_MARKER = "BLOCKED"


# ============================================================================
# Locators and values
# ============================================================================

def render_locator(locator: Locator) -> str:
    """
    Playwright locator call for ``locator`` (without the receiver)

    Examples:
        >>> render_locator(Locator(LocatorStrategy.ROLE, "Save", role="button"))
        "getByRole('button', { name: 'Save' })"
    """
    strategy = locator.strategy
    if strategy == LocatorStrategy.ROLE:
        options = []
        if locator.value:
            options.append(f"name: {quote(locator.value)}")
        if locator.exact:
            options.append("exact: true")
        if locator.level is not None:
            options.append(f"level: {int(locator.level)}")
        role = quote(locator.role or "button")
        if options:
            return f"getByRole({role}, {{ {', '.join(options)} }})"
        return f"getByRole({role})"

    exact = ", { exact: true }" if locator.exact else ""
    if strategy == LocatorStrategy.LABEL:
        return f"getByLabel({quote(locator.value)}{exact})"
    if strategy == LocatorStrategy.PLACEHOLDER:
        return f"getByPlaceholder({quote(locator.value)}{exact})"
    if strategy == LocatorStrategy.TEXT:
        return f"getByText({quote(locator.value)}{exact})"
    if strategy == LocatorStrategy.TESTID:
        return f"getByTestId({quote(locator.value)})"
    if strategy == LocatorStrategy.CSS:
        return f"locator({quote(locator.value)})"

    raise CodeGenerationError(f"Unknown locator strategy: {strategy}", component="test_generator")


def render_value(value: Optional[ValueSpec]) -> str:
    """TypeScript expression for a step value"""
    if value is None:
        return "''"
    if value.value_type == ValueType.ACTOR:
        return property_access("actor", value.value)
    if value.value_type == ValueType.TEST_DATA:
        return property_access("testData", value.value)
    if value.value_type == ValueType.GENERATED:
        return f"`{escape_template_literal(value.value)}`"
    return quote(value.value)


def render_url_pattern(pattern: str) -> str:
    return f"/{escape_regex(pattern)}/"


def module_identifier(module: str) -> str:
    """Import binding for a support module name ('order-history' -> orderHistory)"""
    return module if is_identifier(module) else to_camel_case(module)


# ============================================================================
# Render context
# ============================================================================

@dataclass
class RenderContext:
    """
    How generated statements reach the page

    Args:
        page: Expression for the Playwright page (``page`` or ``this.page``)
        locator_ref: Optional override mapping a Locator to an expression,
            used by support modules to reference class properties
    """
    page: str = "page"
    locator_ref: Optional[Callable[[Locator], str]] = None
    used_values: set = field(default_factory=set)

    def locate(self, locator: Optional[Locator]) -> str:
        if locator is None:
            raise CodeGenerationError("Action requires a locator", component="test_generator")
        if self.locator_ref is not None:
            return self.locator_ref(locator)
        return f"{self.page}.{render_locator(locator)}"

    def value(self, value: Optional[ValueSpec]) -> str:
        if value is not None and value.value_type != ValueType.LITERAL:
            self.used_values.add(value.value_type)
        return render_value(value)


def _options(action: Action) -> str:
    if action.timeout_ms:
        return f"{{ timeout: {int(action.timeout_ms)} }}"
    return ""


def _with_options(action: Action, leading: str = "") -> str:
    options = _options(action)
    if not options:
        return leading
    return f"{leading}, {options}" if leading else options


# ============================================================================
# Per-kind templates
# ============================================================================

Template = Callable[[Action, RenderContext], List[str]]


def _navigate(action: Action, ctx: RenderContext) -> List[str]:
    return [f"await {ctx.page}.goto({quote(action.url or '/')});"]


def _simple_page_call(method: str) -> Template:
    def render(action: Action, ctx: RenderContext) -> List[str]:
        return [f"await {ctx.page}.{method}();"]
    return render


def _wait_for_url(action: Action, ctx: RenderContext) -> List[str]:
    pattern = render_url_pattern(action.pattern or action.url or "")
    return [f"await {ctx.page}.waitForURL({_with_options(action, pattern)});"]


def _wait_for_load_state(state: str) -> Template:
    def render(action: Action, ctx: RenderContext) -> List[str]:
        lines = [f"await {ctx.page}.waitForLoadState({_with_options(action, quote(state))});"]
        if action.pattern:
            lines.insert(0, f"// Waiting for requests matching: {escape_comment(action.pattern)}")
        return lines
    return render


def _wait_for_timeout(action: Action, ctx: RenderContext) -> List[str]:
    return [f"await {ctx.page}.waitForTimeout({int(action.timeout_ms or 1000)});"]


def _wait_for_state(state: str) -> Template:
    def render(action: Action, ctx: RenderContext) -> List[str]:
        options = [f"state: {quote(state)}"]
        if action.timeout_ms:
            options.append(f"timeout: {int(action.timeout_ms)}")
        return [f"await {ctx.locate(action.locator)}.waitFor({{ {', '.join(options)} }});"]
    return render


def _locator_call(method: str, argument: Optional[Callable[[Action, RenderContext], str]] = None) -> Template:
    def render(action: Action, ctx: RenderContext) -> List[str]:
        arg = argument(action, ctx) if argument else ""
        return [f"await {ctx.locate(action.locator)}.{method}({_with_options(action, arg)});"]
    return render


def _fill(action: Action, ctx: RenderContext) -> List[str]:
    return [f"await {ctx.locate(action.locator)}.fill({_with_options(action, ctx.value(action.value))});"]


def _select(action: Action, ctx: RenderContext) -> List[str]:
    option = action.option if action.option is not None else (action.value.value if action.value else "")
    return [f"await {ctx.locate(action.locator)}.selectOption({_with_options(action, quote(option))});"]


def _press(action: Action, ctx: RenderContext) -> List[str]:
    key = quote(action.key or "Enter")
    if action.locator is not None:
        return [f"await {ctx.locate(action.locator)}.press({key});"]
    return [f"await {ctx.page}.keyboard.press({key});"]


def _dismiss_modal(action: Action, ctx: RenderContext) -> List[str]:
    return [
        f"await {ctx.page}.getByRole('dialog')"
        f".getByRole('button', {{ name: /close|cancel|dismiss/i }}).click();"
    ]


def _dialog_handler(method: str) -> Template:
    def render(action: Action, ctx: RenderContext) -> List[str]:
        return [f"{ctx.page}.once('dialog', dialog => dialog.{method}());"]
    return render


def _expect_locator(matcher: str, argument: Optional[Callable[[Action, RenderContext], str]] = None) -> Template:
    def render(action: Action, ctx: RenderContext) -> List[str]:
        arg = argument(action, ctx) if argument else ""
        return [f"await expect({ctx.locate(action.locator)}).{matcher}({_with_options(action, arg)});"]
    return render


def _assert_text(action: Action, ctx: RenderContext) -> str:
    if action.value is not None:
        return ctx.value(action.value)
    return quote(action.text or "")


def _assert_url(action: Action, ctx: RenderContext) -> List[str]:
    pattern = render_url_pattern(action.pattern or action.url or "")
    return [f"await expect({ctx.page}).toHaveURL({_with_options(action, pattern)});"]


def _assert_title(action: Action, ctx: RenderContext) -> List[str]:
    return [f"await expect({ctx.page}).toHaveTitle({_with_options(action, quote(action.text or ''))});"]


def _assert_toast(action: Action, ctx: RenderContext) -> List[str]:
    if action.message:
        target = f"{ctx.page}.getByText({quote(action.message)})"
    else:
        target = f"{ctx.page}.getByRole('alert')"
    lines = [f"await expect({target}).toBeVisible({_options(action)});"]
    if action.toast_type and action.message is None:
        lines.insert(0, f"// Expecting a {escape_comment(action.toast_type)} notification")
    return lines


def _assert_count(action: Action, ctx: RenderContext) -> List[str]:
    count = int(action.count or 0)
    return [f"await expect({ctx.locate(action.locator)}).toHaveCount({_with_options(action, str(count))});"]


def _call_module(action: Action, ctx: RenderContext) -> List[str]:
    if not action.module or not action.method:
        raise CodeGenerationError(
            "callModule requires module and method",
            component="test_generator",
            context={"source_text": action.source_text},
        )
    args = [ctx.page] + [json.dumps(arg, ensure_ascii=False) for arg in action.args]
    return [f"await {module_identifier(action.module)}.{action.method}({', '.join(args)});"]


def render_blocked(action: Action) -> List[str]:
    """
    Loud failing placeholder for a step nothing could map

    Structured reasons render as a block comment; legacy string reasons
    (or a missing reason) fall back to a single-line comment.
    """
    reason = action.blocked
    source = escape_comment(action.source_text)

    if isinstance(reason, BlockedReason):
        lines = [
            "/*",
            f" * {BLOCKED_MARKER}: {escape_comment(reason.summary)}",
            f" * Reason: {reason.category.value}",
            f" * Suggestion: {escape_comment(reason.suggestion)}",
            f" * Source: {source}",
            " */",
        ]
        summary = reason.summary
    else:
        summary = str(reason) if reason else "Could not map step"
        lines = [f"// {BLOCKED_MARKER}: {escape_comment(summary)} (source: {source})"]

    message = f"{BLOCKED_MARKER}: {summary}"
    if action.source_text:
        message += f" - {action.source_text}"
    lines.append(f"throw new Error({quote(message)});")
    return lines


TEMPLATES: Dict[ActionKind, Template] = {
    # Navigation
    ActionKind.NAVIGATE: _navigate,
    ActionKind.RELOAD: _simple_page_call("reload"),
    ActionKind.GO_BACK: _simple_page_call("goBack"),
    ActionKind.GO_FORWARD: _simple_page_call("goForward"),

    # Waits
    ActionKind.WAIT_FOR_URL: _wait_for_url,
    ActionKind.WAIT_FOR_LOADING_COMPLETE: _wait_for_load_state("load"),
    ActionKind.WAIT_FOR_NETWORK_IDLE: _wait_for_load_state("networkidle"),
    ActionKind.WAIT_FOR_TIMEOUT: _wait_for_timeout,
    ActionKind.WAIT_FOR_VISIBLE: _wait_for_state("visible"),
    ActionKind.WAIT_FOR_HIDDEN: _wait_for_state("hidden"),

    # Interactions
    ActionKind.CLICK: _locator_call("click"),
    ActionKind.DBLCLICK: _locator_call("dblclick"),
    ActionKind.RIGHT_CLICK: _locator_call("click", lambda a, c: "{ button: 'right' }"),
    ActionKind.FILL: _fill,
    ActionKind.CLEAR: _locator_call("clear"),
    ActionKind.SELECT: _select,
    ActionKind.CHECK: _locator_call("check"),
    ActionKind.UNCHECK: _locator_call("uncheck"),
    ActionKind.PRESS: _press,
    ActionKind.HOVER: _locator_call("hover"),
    ActionKind.FOCUS: _locator_call("focus"),
    ActionKind.DISMISS_MODAL: _dismiss_modal,
    ActionKind.ACCEPT_ALERT: _dialog_handler("accept"),
    ActionKind.DISMISS_ALERT: _dialog_handler("dismiss"),

    # Assertions
    ActionKind.ASSERT_VISIBLE: _expect_locator("toBeVisible"),
    ActionKind.ASSERT_NOT_VISIBLE: _expect_locator("not.toBeVisible"),
    ActionKind.ASSERT_TEXT: _expect_locator("toHaveText", _assert_text),
    ActionKind.ASSERT_VALUE: _expect_locator("toHaveValue", _assert_text),
    ActionKind.ASSERT_URL: _assert_url,
    ActionKind.ASSERT_TITLE: _assert_title,
    ActionKind.ASSERT_TOAST: _assert_toast,
    ActionKind.ASSERT_ENABLED: _expect_locator("toBeEnabled"),
    ActionKind.ASSERT_DISABLED: _expect_locator("toBeDisabled"),
    ActionKind.ASSERT_CHECKED: _expect_locator("toBeChecked"),
    ActionKind.ASSERT_COUNT: _assert_count,

    # Modules
    ActionKind.CALL_MODULE: _call_module,

    ActionKind.BLOCKED: lambda action, ctx: render_blocked(action),
}


def render_action(action: Action, ctx: Optional[RenderContext] = None) -> List[str]:
    """
    Render one Action to TypeScript statement lines (unindented)

    Raises:
        CodeGenerationError: If no template exists for the action kind
    """
    ctx = ctx or RenderContext()
    template = TEMPLATES.get(action.kind)
    if template is None:
        raise CodeGenerationError(
            f"No template for action kind: {getattr(action.kind, 'value', action.kind)}",
            component="test_generator",
            context={"source_text": action.source_text},
        )
    return template(action, ctx)


__all__ = [
    "BLOCKED_MARKER",
    "TEMPLATES",
    "RenderContext",
    "render_locator",
    "render_value",
    "render_url_pattern",
    "module_identifier",
    "render_blocked",
    "render_action",
]
