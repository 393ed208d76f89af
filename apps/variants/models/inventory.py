from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class Warehouse(models.Model):
    name = models.CharField(
        max_length=255,
        verbose_name='Nome'
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name='Ativo'
    )

    class Meta:
        ordering = ['name']
        verbose_name = 'Depósito'
        verbose_name_plural = 'Depósitos'

    def __str__(self):
        return self.name


class VariantInventory(models.Model):
    """Stock of one variant in one warehouse."""
    variant = models.ForeignKey(
        'variants.ProductVariant',
        on_delete=models.CASCADE,
        related_name='inventory',
        verbose_name='Variante'
    )
    warehouse = models.ForeignKey(
        Warehouse,
        on_delete=models.CASCADE,
        related_name='inventory',
        verbose_name='Depósito'
    )
    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name='Quantidade'
    )
    pos_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name='Quantidade no PDV'
    )
    unit = models.CharField(
        max_length=20,
        default='un',
        verbose_name='Unidade'
    )
    min_stock_level = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0'))],
        verbose_name='Estoque mínimo'
    )
    max_stock_level = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0'))],
        verbose_name='Estoque máximo'
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Atualizado em'
    )

    class Meta:
        ordering = ['variant', 'warehouse']
        unique_together = ['variant', 'warehouse']
        verbose_name = 'Estoque da Variante'
        verbose_name_plural = 'Estoques das Variantes'

    def __str__(self):
        return f"{self.variant} @ {self.warehouse}: {self.quantity}"

    @property
    def is_low_stock(self):
        if self.min_stock_level is None:
            return False
        return self.quantity <= self.min_stock_level
