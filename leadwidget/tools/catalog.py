"""Static product catalog browsed by the enquiry flow.

Category -> Subcategory -> resources. The catalog is read-only at
runtime; lookups by key return None rather than raising so the
controller can fail closed on a bad key.
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class ResourceType(str, Enum):
    LINK = "link"
    GALLERY = "gallery"
    VIDEO = "video"
    PRICE_GUIDE = "price_guide"
    LEAD_CAPTURE_CONTACT = "lead_capture_contact"
    LEAD_CAPTURE_SAMPLE = "lead_capture_sample"


URL_RESOURCE_TYPES = frozenset(
    {ResourceType.LINK, ResourceType.GALLERY, ResourceType.VIDEO, ResourceType.PRICE_GUIDE}
)


class Resource(BaseModel):
    """One action offered for a product: a URL to open or a lead form to show."""

    model_config = ConfigDict(frozen=True)

    label: str
    type: ResourceType
    value: str = ""


class Subcategory(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    prompt: Optional[str] = None
    product_page_url: Optional[str] = None
    resources: dict[str, Resource] = Field(default_factory=dict)


class Category(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    prompt: Optional[str] = None
    subcategories: dict[str, Subcategory] = Field(default_factory=dict)


class ProductCatalog(BaseModel):
    model_config = ConfigDict(frozen=True)

    categories: dict[str, Category] = Field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProductCatalog":
        return cls.model_validate({"categories": data})

    def get_category(self, key: str) -> Optional[Category]:
        return self.categories.get(key)

    def get_subcategory(self, category_key: str, subcategory_key: str) -> Optional[Subcategory]:
        category = self.get_category(category_key)
        if category is None:
            return None
        return category.subcategories.get(subcategory_key)


CATALOG_DATA: dict[str, dict] = {
    "doors": {
        "label": "Doors",
        "prompt": "Which door type can I help you with today?",
        "subcategories": {
            "smoothfold": {
                "label": "Smoothfold Bi-folding Doors",
                "product_page_url": "https://www.daws.co.uk/products/smoothfold-bifolding-doors",
                "prompt": "Our Smoothfold system offers thermally-broken aluminium frames, custom-made sizes, and multiple colours. Would you like to:",
                "resources": {
                    "techSheet": {"label": "View Technical Data Sheet", "type": "link", "value": "/placeholder/smoothfold-tech.pdf"},
                    "measureGuide": {"label": "See Measuring Guide", "type": "link", "value": "/placeholder/smoothfold-measure-guide.pdf"},
                },
            },
            "smoothslide": {
                "label": "Smoothslide Sliding Doors",
                "product_page_url": "https://www.daws.co.uk/products/smoothslide-sliding-doors",
                "prompt": "Smoothslide features ultra-smooth rollers, slim sightlines, and U-values down to 1.4 W/m²K. What would you like?",
                "resources": {
                    "gallery": {"label": "View Gallery", "type": "gallery", "value": "https://www.daws.co.uk/products/smoothslide-sliding-doors#gallery"},
                    "techSheet": {"label": "Download Tech Sheet", "type": "link", "value": "/placeholder/smoothslide-tech.pdf"},
                    "priceGuide": {"label": "Get Price Guide", "type": "price_guide", "value": "/placeholder/smoothslide-price-guide.pdf"},
                },
            },
            "designer": {
                "label": "Designer Entrance Doors",
                "product_page_url": "https://www.daws.co.uk/products/designer-entrance-doors",
                "prompt": "Our Designer Entrance Doors come with multi-point locking and security glass options. You can:",
                "resources": {
                    "sample": {"label": "Request a Sample Door Finish", "type": "lead_capture_sample", "value": "Request Sample: Designer Entrance Door"},
                    "specSheet": {"label": "Download Specification Sheet", "type": "link", "value": "/placeholder/designer-spec.pdf"},
                },
            },
        },
    },
    "windows": {
        "label": "Windows",
        "prompt": "Looking for windows? Pick a system below.",
        "subcategories": {
            "smoothsash400": {
                "label": "Smoothsash 400 Windows",
                "product_page_url": "https://www.daws.co.uk/products/smoothsash-400-windows",
                "prompt": "Smoothsash 400 combines a heritage casement style with polyamide thermal break technology (U-values from 1.3 W/m²K). Would you like:",
                "resources": {
                    "techData": {"label": "View Technical Data", "type": "link", "value": "/placeholder/smoothsash400-tech.pdf"},
                    "contact": {"label": "Contact Trade Sales", "type": "lead_capture_contact", "value": "Contact Request: Smoothsash 400"},
                },
            },
        },
    },
    "steel_look": {
        "label": "Steel-Look Products",
        "prompt": "Explore our steel-look aluminium systems.",
        "subcategories": {
            "legacy": {
                "label": "Legacy Steel-Look Collection",
                "product_page_url": "https://www.daws.co.uk/products/legacy-steel-look-collection",
                "prompt": "Legacy offers authentic sightlines from 25 mm and a variety of RAL colours. To proceed:",
                "resources": {
                    "productSheet": {"label": "Download Product Sheet", "type": "link", "value": "/placeholder/legacy-steel-sheet.pdf"},
                    "caseStudies": {"label": "View Case Studies", "type": "link", "value": "/placeholder/legacy-steel-casestudies"},
                },
            },
            "autograph": {
                "label": "Autograph Steel-Look Doors",
                "product_page_url": "https://www.daws.co.uk/products/autograph-steel-collection",
                "prompt": "Autograph doors offer a premium steel-look aesthetic. What would you like?",
                "resources": {
                    "contact": {"label": "Contact Sales", "type": "lead_capture_contact", "value": "Contact Request: Autograph Steel-Look"},
                },
            },
        },
    },
    "lanterns": {
        "label": "Lanterns",
        "prompt": "Interested in roof lanterns?",
        "subcategories": {
            "standard": {
                "label": "Standard Roof Lanterns",
                "product_page_url": "https://www.daws.co.uk/products/standard-roof-lanterns",
                "prompt": "Our double-glazed aluminium lanterns deliver U-values down to 1.4 W/m²K. Would you like:",
                "resources": {
                    "video": {"label": "Watch Installation Video", "type": "video", "value": "/placeholder/standard-lantern-video"},
                },
            },
            "walk_on": {
                "label": "Walk-On Lanterns",
                "product_page_url": "https://www.daws.co.uk/products/walk-on-lanterns",
                "prompt": "Our walk-on lanterns provide light and functional roof access. What would you like?",
                "resources": {
                    "contact": {"label": "Contact Sales", "type": "lead_capture_contact", "value": "Contact Request: Walk-On Lanterns"},
                },
            },
        },
    },
}


def load_catalog(path: Optional[Union[str, Path]] = None) -> ProductCatalog:
    """Load a catalog from a JSON file, or the built-in one when no path is given."""
    if path is None:
        return ProductCatalog.from_dict(CATALOG_DATA)
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    catalog = ProductCatalog.from_dict(data)
    logger.info("Loaded product catalog from %s (%d categories)", path, len(catalog.categories))
    return catalog


DEFAULT_CATALOG = load_catalog()
