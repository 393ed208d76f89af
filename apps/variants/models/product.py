import json

from django.db import models
from django.utils.text import slugify
from simple_history.models import HistoricalRecords


class Product(models.Model):
    """
    Base product sold in one or more variants.

    The attribute names the variants are built from are kept in
    ``variant_attributes`` (JSON array text, in display order). Their values
    are not stored here; they are whatever the variants hold.
    """
    name = models.CharField(
        max_length=255,
        verbose_name='Nome'
    )
    slug = models.SlugField(
        max_length=255,
        unique=True,
        verbose_name='Slug'
    )
    description = models.TextField(
        blank=True,
        verbose_name='Descrição'
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        verbose_name='Preço'
    )
    image_url = models.CharField(
        max_length=1000,
        blank=True,
        verbose_name='Imagem principal'
    )
    media_urls = models.TextField(
        blank=True,
        default='[]',
        verbose_name='Galeria',
        help_text='Lista JSON de URLs de imagens do produto'
    )
    variant_attributes = models.TextField(
        blank=True,
        default='[]',
        verbose_name='Atributos de variação',
        help_text='Lista JSON com os nomes dos atributos, em ordem (ex: ["Color", "Size"])'
    )

    # Availability
    sell_when_out_of_stock = models.BooleanField(
        default=False,
        verbose_name='Vender sem estoque'
    )
    always_available = models.BooleanField(
        default=False,
        verbose_name='Sempre disponível'
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name='Ativo'
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Criado em'
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Atualizado em'
    )

    # History tracking
    history = HistoricalRecords()

    class Meta:
        ordering = ['name']
        verbose_name = 'Produto'
        verbose_name_plural = 'Produtos'

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)

    @property
    def variant_count(self):
        return self.variants.count()

    @property
    def active_variant_count(self):
        return self.variants.filter(is_active=True).count()

    def get_attribute_names(self):
        """Stored attribute names; malformed JSON reads as no names."""
        from apps.variants.services.attributes import parse_attribute_names
        return parse_attribute_names(self.variant_attributes)

    def set_attribute_names(self, names):
        self.variant_attributes = json.dumps(list(names), ensure_ascii=False)

    def get_media_urls(self):
        from apps.variants.services.codec import parse_media_urls
        return list(parse_media_urls(self.media_urls))

    def get_variant_records(self, active_only=False):
        """Variants parsed into engine records, legacy color rows included."""
        from apps.variants.services.codec import variant_from_model
        variants = self.variants.order_by('id')
        if active_only:
            variants = variants.filter(is_active=True)
        return [variant_from_model(v) for v in variants]
