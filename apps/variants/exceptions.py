"""
Errors raised by the variant engine.

All of them are scoped to one attribute, one variant or one selector step;
callers report them and carry on with the rest of the batch.
"""


class VariantEngineError(Exception):
    """Base class for every engine error."""


class AttributeConfigError(VariantEngineError, ValueError):
    """Invalid attribute name or value in the attribute configuration."""


class AssetError(VariantEngineError, ValueError):
    """Invalid image-attribute selection, image URL or color code."""


class MissingAttributeError(VariantEngineError):
    """A variant has no value (or a blank one) for a configured attribute."""

    def __init__(self, attribute, variant=None):
        self.attribute = attribute
        self.variant = variant
        super().__init__(f"Atributo obrigatório ausente: '{attribute}'")


class SelectionError(VariantEngineError, ValueError):
    """A selector transition that the current state does not allow."""
