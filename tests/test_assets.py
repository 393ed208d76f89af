"""Tests for the attribute value asset registry."""

import pytest

from apps.variants.exceptions import AssetError
from apps.variants.services.assets import (
    AttributeValueAssets,
    dedupe_urls,
    normalize_color_hex,
)
from apps.variants.services.attributes import AttributeConfig


@pytest.fixture
def config():
    return AttributeConfig.from_pairs([('Color', ['Red', 'Blue']), ('Size', ['S', 'M'])])


class TestNormalizeColorHex:

    @pytest.mark.parametrize('raw,expected', [
        ('#FF0000', '#ff0000'),
        ('ff0000', '#ff0000'),
        (' #00aAbB ', '#00aabb'),
    ])
    def test_normalized(self, raw, expected):
        assert normalize_color_hex(raw) == expected

    @pytest.mark.parametrize('raw', [None, '', '   '])
    def test_blank_clears(self, raw):
        assert normalize_color_hex(raw) is None

    @pytest.mark.parametrize('raw', ['#fff', 'red', '#gg0000', '#ff00001'])
    def test_invalid(self, raw):
        with pytest.raises(AssetError):
            normalize_color_hex(raw)


def test_dedupe_urls_keeps_first_occurrence():
    assert dedupe_urls(['a.png', 'b.png', 'a.png', '', None, ' c.png ']) == ('a.png', 'b.png', 'c.png')


class TestAttributeValueAssets:

    def test_images_are_deduplicated_and_ordered(self, config):
        assets = AttributeValueAssets().select_image_attribute('Color', config)
        assets = assets.set_images('Red', ['r2.png', 'r1.png', 'r2.png'])
        assert assets.images_for('Red') == ('r2.png', 'r1.png')

    def test_add_and_remove_image(self, config):
        assets = AttributeValueAssets().select_image_attribute('Color', config)
        assets = assets.add_image('Red', 'r1.png').add_image('Red', 'r2.png').add_image('Red', 'r1.png')
        assert assets.images_for('Red') == ('r1.png', 'r2.png')
        assets = assets.remove_image('Red', 'r1.png')
        assert assets.images_for('Red') == ('r2.png',)

    def test_image_attribute_must_be_configured(self, config):
        with pytest.raises(AssetError):
            AttributeValueAssets().select_image_attribute('Material', config)

    def test_changing_image_attribute_clears_other_associations(self, config):
        assets = AttributeValueAssets().select_image_attribute('Color', config)
        assets = assets.set_images('Red', ['r1.png']).set_color('Red', '#FF0000')

        switched = assets.select_image_attribute('Size', config)
        assert switched.image_attribute == 'Size'
        assert switched.entries == {}
        assert switched.images_for('Red') == ()

    def test_reselecting_same_attribute_keeps_associations(self, config):
        assets = AttributeValueAssets().select_image_attribute('Color', config).set_images('Red', ['r1.png'])
        assert assets.select_image_attribute('Color', config).images_for('Red') == ('r1.png',)

    def test_color_only_for_color_attribute(self, config):
        assets = AttributeValueAssets().select_image_attribute('Size', config)
        with pytest.raises(AssetError):
            assets.set_color('S', '#000000')

    def test_color_needs_image_attribute(self):
        with pytest.raises(AssetError):
            AttributeValueAssets().set_color('Red', '#000000')

    def test_color_is_normalized(self, config):
        assets = AttributeValueAssets().select_image_attribute('Color', config).set_color('Red', 'FF0000')
        assert assets.color_for('Red') == '#ff0000'

    def test_color_attribute_match_is_case_insensitive(self):
        config = AttributeConfig.from_pairs({'COLOR': ['Red']})
        assets = AttributeValueAssets().select_image_attribute('COLOR', config)
        assert assets.carries_color
        assert assets.set_color('Red', '#123456').color_for('Red') == '#123456'

    def test_emptied_entry_is_dropped(self, config):
        assets = AttributeValueAssets().select_image_attribute('Color', config).set_images('Red', ['r1.png'])
        assert assets.set_images('Red', []).entries == {}

    def test_forget_value(self, config):
        assets = AttributeValueAssets().select_image_attribute('Color', config)
        assets = assets.set_images('Red', ['r1.png']).set_images('Blue', ['b1.png'])
        assets = assets.forget_value('Color', 'Red')
        assert assets.images_for('Red') == ()
        assert assets.images_for('Blue') == ('b1.png',)
