"""
Django signals for the variants app.
Keeps the single primary image column in step with the gallery.
"""

import logging

from django.db.models.signals import pre_save
from django.dispatch import receiver

from .models import Product, ProductVariant
from .services.codec import parse_media_urls

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=ProductVariant)
def sync_variant_primary_image(sender, instance, **kwargs):
    """
    Set ``image_url`` to the first gallery image.

    Rows that only have ``image_url`` (older data) keep it.
    """
    media = parse_media_urls(instance.media_urls)
    if media and instance.image_url != media[0]:
        logger.debug(f"[SIGNAL] Variant {instance.pk}: primary image -> {media[0]}")
        instance.image_url = media[0]


@receiver(pre_save, sender=Product)
def sync_product_primary_image(sender, instance, **kwargs):
    media = parse_media_urls(instance.media_urls)
    if media and not instance.image_url:
        instance.image_url = media[0]
