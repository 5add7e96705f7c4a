"""Tests for selector resolution and visible-text checks."""
import asyncio

import pytest

from journey_fakes import FakePage
from journeyqa.src.browser.selectors import find_visible_text, resolve_selector


class TestResolveSelector:
    """Each selector form maps onto the right locator call."""

    @pytest.mark.parametrize(
        "selector, expected",
        [
            ('role=button[name="Submit order"]', ("get_by_role", ("button",), {"name": "Submit order"})),
            ("role=navigation", ("get_by_role", ("navigation",), {})),
            ("text=Welcome back", ("get_by_text", ("Welcome back",), {})),
            ("label=Email", ("get_by_label", ("Email",), {})),
            ("placeholder=Search...", ("get_by_placeholder", ("Search...",), {})),
            ("css=div.card > a", ("locator", ("div.card > a",), {})),
            ('link "About us"', ("get_by_role", ("link",), {"name": "About us"})),
            ('button "text=Save"', ("get_by_role", ("button",), {"name": "Save"})),
            ('a[text="Home"]', ("get_by_role", ("link",), {"name": "Home"})),
            ('h2[text="Pricing"]', ("get_by_role", ("heading",), {"name": "Pricing"})),
            ('input[text="Name"]', ("get_by_role", ("textbox",), {"name": "Name"})),
            ('span[text="Beta"]', ("get_by_text", ("Beta",), {})),
            ("Sign in", ("get_by_text", ("Sign in",), {})),
            ("#login-form input[type=email]", ("locator", ("#login-form input[type=email]",), {})),
            ("button.primary", ("locator", ("button.primary",), {})),
        ],
    )
    def test_forms(self, selector, expected):
        page = FakePage()
        resolve_selector(page, selector)
        assert page.calls == [expected]

    def test_strips_whitespace(self):
        page = FakePage()
        resolve_selector(page, "  role=button  ")
        assert page.calls == [("get_by_role", ("button",), {})]


class TestFindVisibleText:
    def test_visible_text_locator(self):
        page = FakePage(visible={("text", "Welcome")})
        assert asyncio.run(find_visible_text(page, "Welcome")) == "text"

    def test_heading_fallback(self):
        page = FakePage(visible={("role", "heading", "Dashboard")})
        assert asyncio.run(find_visible_text(page, "Dashboard")) == "heading"

    def test_label_after_driver_error(self):
        page = FakePage(visible={("label", "Email")}, raising={("text", "Email")})
        assert asyncio.run(find_visible_text(page, "Email")) == "label"

    def test_body_is_case_insensitive(self):
        page = FakePage(body="Your ORDER has shipped")
        assert asyncio.run(find_visible_text(page, "order has")) == "body"

    def test_title(self):
        page = FakePage(title="Checkout - Shop")
        assert asyncio.run(find_visible_text(page, "checkout")) == "title"

    def test_not_found(self):
        page = FakePage(body="nothing here", title="Home")
        assert asyncio.run(find_visible_text(page, "Invoices")) is None
