"""
Variant configuration and resolution engine.

Pure functions and frozen dataclasses; the only modules that touch the ORM
are ``persistence`` and ``stock``, and only through their Django-backed
collaborators.
"""

from .attributes import AttributeConfig, resolve_attribute_names
from .assets import AttributeValueAssets
from .combinations import VariantCombination, generate_combinations
from .records import LegacyColor, StructuredAttributes, VariantRecord
from .reconciler import find_orphans, reconcile_variants, validate_variant
from .images import build_swatches, gallery_index, product_gallery, resolve_variant_media
from .selector import SelectorState, choose, initialize, receive_stock, start_selector
from .editor import ProductVariantEditorState, load_editor

__all__ = [
    'AttributeConfig',
    'resolve_attribute_names',
    'AttributeValueAssets',
    'VariantCombination',
    'generate_combinations',
    'LegacyColor',
    'StructuredAttributes',
    'VariantRecord',
    'find_orphans',
    'reconcile_variants',
    'validate_variant',
    'build_swatches',
    'gallery_index',
    'product_gallery',
    'resolve_variant_media',
    'SelectorState',
    'choose',
    'initialize',
    'receive_stock',
    'start_selector',
    'ProductVariantEditorState',
    'load_editor',
]
