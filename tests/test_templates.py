import json

import pytest

from mdtoword_mcp.default_styles import create_default_style_config
from mdtoword_mcp.errors import TemplateNotFoundError
from mdtoword_mcp.templates import DEFAULT_TEMPLATE_ID, PresetTemplate, PresetTemplateLoader
from mdtoword_mcp.tools.resources import get_template_details, get_template_list


@pytest.fixture
def loader():
    return PresetTemplateLoader()


def test_default_template_is_builtin_config(loader):
    assert loader.get_default_template_id() == DEFAULT_TEMPLATE_ID
    assert loader.get_default_template().id == "customer-analysis"
    assert loader.get_default_style_config() == create_default_style_config()


def test_default_style_config_is_a_copy(loader):
    config = loader.get_default_style_config()
    config["document"]["defaultFont"] = "Comic Sans MS"
    assert loader.get_default_style_config()["document"]["defaultFont"] == "宋体"


def test_template_list_marks_default(loader):
    templates = loader.get_template_list()
    ids = [template["id"] for template in templates]

    assert ids == ["customer-analysis", "academic", "business", "technical", "minimal"]
    assert [template["id"] for template in templates if template["isDefault"]] == ["customer-analysis"]


def test_unknown_preset(loader):
    assert loader.get_preset_template("does-not-exist") is None
    with pytest.raises(TemplateNotFoundError) as exc:
        loader.require_preset_template("does-not-exist")
    assert "does-not-exist" in str(exc.value)
    assert exc.value.template_id == "does-not-exist"


def test_loader_without_default():
    loader = PresetTemplateLoader(templates=[PresetTemplate("x", "X", "general", "only one")], default_id="missing")
    assert loader.get_default_template() is None
    assert loader.get_default_style_config() is None


def test_template_details_resource():
    details = json.loads(get_template_details("academic"))
    assert details["id"] == "academic"
    assert details["styleConfig"]["headerFooter"]["footer"]["showPageNumber"] is True

    assert get_template_details("nope") == 'Template "nope" not found'


def test_template_list_resource():
    listing = get_template_list()
    assert listing.startswith("# Available Templates")
    assert "**customer-analysis**: 客户分析 (default)" in listing
