import importlib
import pkgutil

import pytest

import food_client

MODULES = [info.name for info in pkgutil.iter_modules(food_client.__path__, "food_client.")]


def test_package_has_modules():
    assert "food_client.session" in MODULES


@pytest.mark.parametrize("name", MODULES)
def test_every_module_is_documented(name):
    module = importlib.import_module(name)
    assert module.__doc__ and module.__doc__.strip()
