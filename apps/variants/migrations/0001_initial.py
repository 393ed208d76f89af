from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import simple_history.models
from django.conf import settings
from django.db import migrations, models


HISTORY_TYPE_CHOICES = [('+', 'Created'), ('~', 'Changed'), ('-', 'Deleted')]
COLOR_HEX_VALIDATOR = django.core.validators.RegexValidator(
    message='Cor deve estar no formato hexadecimal (#RRGGBB)',
    regex='^#[0-9A-Fa-f]{6}$',
)


def product_fields(slug_field):
    return [
        ('name', models.CharField(max_length=255, verbose_name='Nome')),
        ('slug', slug_field),
        ('description', models.TextField(blank=True, verbose_name='Descrição')),
        ('price', models.DecimalField(decimal_places=2, default=0, max_digits=10, verbose_name='Preço')),
        ('image_url', models.CharField(blank=True, max_length=1000, verbose_name='Imagem principal')),
        ('media_urls', models.TextField(blank=True, default='[]', help_text='Lista JSON de URLs de imagens do produto', verbose_name='Galeria')),
        ('variant_attributes', models.TextField(blank=True, default='[]', help_text='Lista JSON com os nomes dos atributos, em ordem (ex: ["Color", "Size"])', verbose_name='Atributos de variação')),
        ('sell_when_out_of_stock', models.BooleanField(default=False, verbose_name='Vender sem estoque')),
        ('always_available', models.BooleanField(default=False, verbose_name='Sempre disponível')),
        ('is_active', models.BooleanField(default=True, verbose_name='Ativo')),
    ]


def variant_fields():
    return [
        ('attributes', models.TextField(blank=True, default='', help_text='Objeto JSON nome do atributo -> valor', verbose_name='Atributos')),
        ('color', models.CharField(blank=True, max_length=100, verbose_name='Cor (legado)')),
        ('color_hex', models.CharField(blank=True, help_text='Formato: #RRGGBB', max_length=7, validators=[COLOR_HEX_VALIDATOR], verbose_name='Código de cor')),
        ('image_url', models.CharField(blank=True, help_text='Primeira imagem da galeria, mantida para clientes antigos', max_length=1000, verbose_name='Imagem principal')),
        ('media_urls', models.TextField(blank=True, default='[]', help_text='Lista JSON de URLs de imagens', verbose_name='Galeria')),
        ('price_override', models.DecimalField(blank=True, decimal_places=2, help_text='Substitui o preço do produto quando preenchido', max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))], verbose_name='Preço específico')),
        ('sku', models.CharField(blank=True, max_length=100, verbose_name='SKU')),
        ('is_active', models.BooleanField(default=True, verbose_name='Ativo')),
    ]


def history_fields():
    return [
        ('history_id', models.AutoField(primary_key=True, serialize=False)),
        ('history_date', models.DateTimeField(db_index=True)),
        ('history_change_reason', models.CharField(max_length=100, null=True)),
        ('history_type', models.CharField(choices=HISTORY_TYPE_CHOICES, max_length=1)),
        ('history_user', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
    ]


def history_options(name, plural):
    return {
        'verbose_name': f'historical {name}',
        'verbose_name_plural': f'historical {plural}',
        'ordering': ('-history_date', '-history_id'),
        'get_latest_by': ('history_date', 'history_id'),
    }


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *product_fields(models.SlugField(max_length=255, unique=True, verbose_name='Slug')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Criado em')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Atualizado em')),
            ],
            options={
                'verbose_name': 'Produto',
                'verbose_name_plural': 'Produtos',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Warehouse',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255, verbose_name='Nome')),
                ('is_active', models.BooleanField(default=True, verbose_name='Ativo')),
            ],
            options={
                'verbose_name': 'Depósito',
                'verbose_name_plural': 'Depósitos',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='ProductVariant',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *variant_fields(),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Criado em')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Atualizado em')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='variants', to='variants.product', verbose_name='Produto')),
            ],
            options={
                'verbose_name': 'Variante',
                'verbose_name_plural': 'Variantes',
                'ordering': ['product', 'id'],
            },
        ),
        migrations.CreateModel(
            name='VariantInventory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Quantidade')),
                ('pos_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Quantidade no PDV')),
                ('unit', models.CharField(default='un', max_length=20, verbose_name='Unidade')),
                ('min_stock_level', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0'))], verbose_name='Estoque mínimo')),
                ('max_stock_level', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0'))], verbose_name='Estoque máximo')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Atualizado em')),
                ('variant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory', to='variants.productvariant', verbose_name='Variante')),
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory', to='variants.warehouse', verbose_name='Depósito')),
            ],
            options={
                'verbose_name': 'Estoque da Variante',
                'verbose_name_plural': 'Estoques das Variantes',
                'ordering': ['variant', 'warehouse'],
                'unique_together': {('variant', 'warehouse')},
            },
        ),
        migrations.CreateModel(
            name='HistoricalProduct',
            fields=[
                ('id', models.BigIntegerField(auto_created=True, blank=True, db_index=True, verbose_name='ID')),
                *product_fields(models.SlugField(max_length=255, verbose_name='Slug')),
                ('created_at', models.DateTimeField(blank=True, editable=False, verbose_name='Criado em')),
                ('updated_at', models.DateTimeField(blank=True, editable=False, verbose_name='Atualizado em')),
                *history_fields(),
            ],
            options=history_options('Produto', 'Produtos'),
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        migrations.CreateModel(
            name='HistoricalProductVariant',
            fields=[
                ('id', models.BigIntegerField(auto_created=True, blank=True, db_index=True, verbose_name='ID')),
                *variant_fields(),
                ('created_at', models.DateTimeField(blank=True, editable=False, verbose_name='Criado em')),
                ('updated_at', models.DateTimeField(blank=True, editable=False, verbose_name='Atualizado em')),
                *history_fields(),
                ('product', models.ForeignKey(blank=True, db_constraint=False, null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name='+', to='variants.product', verbose_name='Produto')),
            ],
            options=history_options('Variante', 'Variantes'),
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
    ]
