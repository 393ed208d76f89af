import json
from decimal import Decimal

from django.core.validators import MinValueValidator, RegexValidator
from django.db import models
from simple_history.models import HistoricalRecords

color_hex_validator = RegexValidator(
    regex=r'^#[0-9A-Fa-f]{6}$',
    message='Cor deve estar no formato hexadecimal (#RRGGBB)'
)


class ProductVariant(models.Model):
    """
    One sellable configuration of a product.

    ``attributes`` holds the attribute set as JSON object text, e.g.
    ``{"Color": "Red", "Size": "M"}``. Older rows only have ``color``; they
    are read as ``{"Color": color}``.
    """
    product = models.ForeignKey(
        'variants.Product',
        on_delete=models.CASCADE,
        related_name='variants',
        verbose_name='Produto'
    )
    attributes = models.TextField(
        blank=True,
        default='',
        verbose_name='Atributos',
        help_text='Objeto JSON nome do atributo -> valor'
    )
    color = models.CharField(
        max_length=100,
        blank=True,
        verbose_name='Cor (legado)'
    )
    color_hex = models.CharField(
        max_length=7,
        blank=True,
        validators=[color_hex_validator],
        verbose_name='Código de cor',
        help_text='Formato: #RRGGBB'
    )
    image_url = models.CharField(
        max_length=1000,
        blank=True,
        verbose_name='Imagem principal',
        help_text='Primeira imagem da galeria, mantida para clientes antigos'
    )
    media_urls = models.TextField(
        blank=True,
        default='[]',
        verbose_name='Galeria',
        help_text='Lista JSON de URLs de imagens'
    )

    # Pricing
    price_override = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Preço específico',
        help_text='Substitui o preço do produto quando preenchido'
    )
    sku = models.CharField(
        max_length=100,
        blank=True,
        verbose_name='SKU'
    )

    # Status
    is_active = models.BooleanField(
        default=True,
        verbose_name='Ativo'
    )

    # Timestamps
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
        ordering = ['product', 'id']
        verbose_name = 'Variante'
        verbose_name_plural = 'Variantes'

    def __str__(self):
        label = self.get_combination().label()
        return f"{self.product.name} - {label}" if label else f"{self.product.name} #{self.pk}"

    def get_combination(self):
        from apps.variants.services.codec import parse_attribute_set
        return parse_attribute_set(self.attributes, self.color).to_combination()

    def get_media_urls(self):
        from apps.variants.services.codec import parse_media_urls
        return list(parse_media_urls(self.media_urls, self.image_url))

    def set_media_urls(self, urls):
        urls = [u for u in urls if u]
        self.media_urls = json.dumps(urls, ensure_ascii=False)
        self.image_url = urls[0] if urls else ''

    def effective_price(self):
        if self.price_override is not None:
            return self.price_override
        return self.product.price
