"""Category handler chain answering directly from the accounting source."""

from .base import CategoryDefinition, HandlerContext, HandlerResult, row_value
from .router import CategoryRouter, build_categories, determine_category

__all__ = [
    "CategoryDefinition",
    "CategoryRouter",
    "HandlerContext",
    "HandlerResult",
    "build_categories",
    "determine_category",
    "row_value",
]
