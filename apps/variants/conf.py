"""
App settings for the variants engine.

Values come from the ``VARIANTS`` dict in Django settings, falling back to
the defaults below. Read them at call time through ``variant_settings`` so
``override_settings`` in tests is honoured.
"""

from django.conf import settings

DEFAULTS = {
    'COLOR_ATTRIBUTE_NAME': 'Color',
    'DEFAULT_COLOR_HEX': '#cccccc',
    'DEFAULT_WAREHOUSE_ID': None,
    'PLACEHOLDER_IMAGE_URL': '/placeholder.svg?height=600&width=600',
    'SIZE_ORDER': ['XS', 'S', 'M', 'L', 'XL', 'XXL', 'XXXL'],
}


class VariantSettings:

    def __getattr__(self, name):
        if name not in DEFAULTS:
            raise AttributeError(f"Invalid variants setting: '{name}'")
        user_settings = getattr(settings, 'VARIANTS', None) or {}
        return user_settings.get(name, DEFAULTS[name])


variant_settings = VariantSettings()
