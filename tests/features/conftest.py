"""Pytest-bdd configuration and shared steps for order engine features."""

import pytest
from pytest_bdd import given, parsers, then

from order_engine import MenuItemRef, StaticMenu
from order_engine.errors import OrderEngineError


@pytest.fixture
def context():
    """Shared test context for scenario state."""
    return {"error": None, "menu": StaticMenu()}


def attempt(context, operation, *args, **kwargs):
    """Run operation, keeping any engine error for a later Then step."""
    context["error"] = None
    try:
        return operation(*args, **kwargs)
    except OrderEngineError as e:
        context["error"] = e
        return None


@pytest.fixture
def run(context):
    def _run(operation, *args, **kwargs):
        return attempt(context, operation, *args, **kwargs)

    return _run


@given(parsers.parse('a menu item "{item_id}" named "{name}" priced {price:d} with {servings:d} servings'))
def given_menu_item(context, item_id, name, price, servings):
    context["menu"].put(MenuItemRef(item_id, name, price, available_servings=servings))


@then(parsers.parse('the last operation fails with "{error_name}"'))
def then_fails_with(context, error_name):
    assert context["error"] is not None, "expected an error"
    assert type(context["error"]).__name__ == error_name


@then("no error occurred")
def then_no_error(context):
    assert context["error"] is None, context["error"]
