"""Recording stand-ins for the Playwright page and locator surface."""

import pytest

NARROWING_METHODS = {
    "locator",
    "get_by_alt_text",
    "get_by_label",
    "get_by_placeholder",
    "get_by_role",
    "get_by_test_id",
    "get_by_text",
    "get_by_title",
    "frame_locator",
    "or_",
    "and_",
    "filter",
    "nth",
}

TERMINAL_METHODS = {
    "click", "dblclick", "fill", "set_checked", "select_option", "press_sequentially",
    "press", "set_input_files", "focus", "blur", "check", "uncheck", "clear", "drag_to",
    "hover", "tap", "wait_for",
    "is_visible", "count", "text_content", "is_hidden", "is_enabled", "is_editable",
    "is_disabled", "is_checked", "input_value", "inner_html", "inner_text",
    "get_attribute", "all_text_contents", "all_inner_texts",
}


class FakeLocator:
    """
    Records every call into a list shared with its page.

    Narrowing returns a new FakeLocator whose ``name`` spells out the path
    that produced it, e.g. ``locator('body').get_by_role``.
    """

    def __init__(self, calls, name, results):
        self.calls = calls
        self.name = name
        self.results = results

    def __repr__(self):
        return f"FakeLocator({self.name})"

    def _narrow(self, method, *args, **kwargs):
        self.calls.append((method, args, kwargs))
        return FakeLocator(self.calls, f"{self.name}.{method}", self.results)

    @property
    def first(self):
        return self._narrow("first")

    @property
    def last(self):
        return self._narrow("last")

    def __getattr__(self, method):
        if method in NARROWING_METHODS:
            return lambda *args, **kwargs: self._narrow(method, *args, **kwargs)

        if method in TERMINAL_METHODS:
            async def terminal(*args, **kwargs):
                self.calls.append((method, args, kwargs))
                result = self.results.get(method)
                if isinstance(result, Exception):
                    raise result
                return result
            return terminal

        raise AttributeError(method)


class FakePage:
    """Page double: ``locator()`` hands out root scopes, recorded in ``roots``."""

    def __init__(self):
        self.calls = []
        self.results = {}
        self.roots = []

    def locator(self, selector, **kwargs):
        self.roots.append(selector)
        return FakeLocator(self.calls, f"locator({selector!r})", self.results)

    def call_names(self):
        return [name for name, _, _ in self.calls]


@pytest.fixture
def page():
    return FakePage()
