"""Tests for the product catalog."""

import json

import pytest
from pydantic import ValidationError

from leadwidget.tools.catalog import (
    DEFAULT_CATALOG,
    ProductCatalog,
    ResourceType,
    load_catalog,
)


class TestDefaultCatalog:
    def test_categories(self):
        assert list(DEFAULT_CATALOG.categories) == ["doors", "windows", "steel_look", "lanterns"]

    def test_designer_sample_resource(self):
        sub = DEFAULT_CATALOG.get_subcategory("doors", "designer")
        sample = sub.resources["sample"]
        assert sample.type == ResourceType.LEAD_CAPTURE_SAMPLE
        assert sample.value == "Request Sample: Designer Entrance Door"

    def test_every_subcategory_has_resources(self):
        for category in DEFAULT_CATALOG.categories.values():
            assert category.subcategories
            for sub in category.subcategories.values():
                assert sub.resources


class TestLookups:
    def test_missing_category_is_none(self):
        assert DEFAULT_CATALOG.get_category("roofs") is None

    def test_missing_subcategory_is_none(self):
        assert DEFAULT_CATALOG.get_subcategory("doors", "garage") is None
        assert DEFAULT_CATALOG.get_subcategory("roofs", "designer") is None

    def test_catalog_is_frozen(self):
        with pytest.raises(ValidationError):
            DEFAULT_CATALOG.categories["doors"].label = "Gates"


class TestFromDict:
    def test_unknown_resource_type_rejected(self):
        with pytest.raises(ValidationError):
            ProductCatalog.from_dict({
                "x": {"label": "X", "subcategories": {
                    "y": {"label": "Y", "resources": {"r": {"label": "R", "type": "fax", "value": ""}}},
                }},
            })

    def test_load_from_json_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({
            "gates": {"label": "Gates", "subcategories": {}},
        }), encoding="utf-8")
        catalog = load_catalog(path)
        assert catalog.get_category("gates").label == "Gates"
        assert catalog.get_category("gates").subcategories == {}
