"""
Unit tests for Azure resource naming.
"""

import pytest

from function_deployer.providers.azure import naming


class TestRandomResourceName:

    def test_length_and_prefix(self):
        name = naming.random_resource_name("webapp1-", 20)
        assert len(name) == 20
        assert name.startswith("webapp1-")

    def test_odd_random_length(self):
        name = naming.random_resource_name("rg1NEMV_", 23)
        assert len(name) == 23

    def test_names_are_unique(self):
        names = {naming.random_resource_name("webapp1-", 20) for _ in range(50)}
        assert len(names) == 50

    def test_generated_names_are_valid(self):
        assert naming.is_valid_function_app_name(naming.random_resource_name("webapp2-", 20))
        assert naming.is_valid_resource_group_name(naming.random_resource_name("rg1NEMV_", 24))

    def test_too_short_raises(self):
        with pytest.raises(ValueError, match="random characters"):
            naming.random_resource_name("webapp1-", 12)


@pytest.mark.parametrize("name, valid", [
    ("webapp1-abc123", True),
    ("a1", True),
    ("a", False),
    ("-leading", False),
    ("trailing-", False),
    ("under_score", False),
    ("x" * 60, True),
    ("x" * 61, False),
])
def test_function_app_name_rules(name, valid):
    assert naming.is_valid_function_app_name(name) is valid


@pytest.mark.parametrize("name, valid", [
    ("rg1NEMV_abc123", True),
    ("rg.with(parens)-x", True),
    ("ends.", False),
    ("", False),
    ("x" * 91, False),
])
def test_resource_group_name_rules(name, valid):
    assert naming.is_valid_resource_group_name(name) is valid


def test_hosts():
    assert naming.site_host("myapp") == "myapp.azurewebsites.net"
    assert naming.scm_host("myapp") == "myapp.scm.azurewebsites.net"


def test_hosting_plan_name():
    assert naming.hosting_plan_name("webapp1-abc") == "webapp1-abc-plan"


def test_storage_account_name():
    name = naming.storage_account_name("webapp1-ABCDEF0123456789xyz")
    assert name == name.lower()
    assert name.isalnum()
    assert len(name) <= 24
    assert naming.storage_account_name("webapp1-abc") == "webapp1abcst"
