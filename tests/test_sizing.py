"""
Tests for fit-sizing, pagination and page geometry.
"""

import pytest

from sprouttie.layout.geometry import PageGeometry
from sprouttie.layout.pagination import paginate
from sprouttie.layout.sizing import FitParams, apply_safety_shrink, compute_font_size, size_flashcards
from sprouttie.layout.surface import measuring_surface
from sprouttie.types import Flashcard


USABLE_WIDTH = PageGeometry().usable_width


# --------------------------------------------------------------------------- #
# compute_font_size
# --------------------------------------------------------------------------- #

class TestComputeFontSize:
    def test_short_word_keeps_the_ceiling(self, linear_surface_cls):
        assert compute_font_size('cat', linear_surface_cls(), USABLE_WIDTH) == 250

    def test_long_word_that_fits_gets_long_shrink(self, linear_surface_cls):
        # 8 characters fit at 250; floor(250 * 0.99) = 247
        assert compute_font_size('mountain', linear_surface_cls(), USABLE_WIDTH) == 247

    def test_medium_word_gets_medium_shrink(self, linear_surface_cls):
        # floor(250 * 0.995) = 248
        assert compute_font_size('lion', linear_surface_cls(), USABLE_WIDTH) == 248

    def test_proportional_estimate_then_shrink(self, linear_surface_cls):
        # 502mm at 250 -> floor(281 / 502 * 250) = 139 fits (280mm) -> floor(139 * 0.99)
        surface = linear_surface_cls(per_char=0.1, overhead=2.0)
        assert compute_font_size('x' * 20, surface, USABLE_WIDTH) == 137

    def test_walks_down_when_estimate_still_overflows(self, linear_surface_cls):
        # estimate 200 measures 300mm; 181 is the first size that fits (281mm)
        surface = linear_surface_cls(per_char=0.1, overhead=100.0)
        size = compute_font_size('x' * 10, surface, USABLE_WIDTH)
        assert size == 179
        measured = [font_size for _, font_size, _ in surface.calls]
        assert measured[:3] == [250, 200, 199]
        assert measured[-1] == 181

    def test_never_below_the_floor(self, linear_surface_cls):
        assert compute_font_size('x' * 1000, linear_surface_cls(), USABLE_WIDTH) == 40

    def test_empty_text_is_not_an_error(self, linear_surface_cls):
        assert compute_font_size('', linear_surface_cls(), USABLE_WIDTH) == 250

    def test_measures_in_bold(self, linear_surface_cls):
        surface = linear_surface_cls()
        compute_font_size('x' * 30, surface, USABLE_WIDTH)
        assert {weight for _, _, weight in surface.calls} == {'bold'}

    def test_rejects_non_positive_width(self, linear_surface_cls):
        with pytest.raises(ValueError):
            compute_font_size('cat', linear_surface_cls(), 0)

    def test_custom_bounds(self, linear_surface_cls):
        params = FitParams(ceiling=100, floor=10)
        assert compute_font_size('ab', linear_surface_cls(), USABLE_WIDTH, params=params) == 100
        assert compute_font_size('x' * 1000, linear_surface_cls(), USABLE_WIDTH, params=params) == 10

    @pytest.mark.parametrize('word', ['Dog', 'Elephant', 'Mountain', 'Caterpillar', 'supercalifragilistic'])
    def test_real_metrics_stay_within_usable_width(self, bare_resolver, word):
        surface = measuring_surface(bare_resolver, PageGeometry())
        size = compute_font_size(word, surface, USABLE_WIDTH)
        assert 40 <= size <= 250
        assert surface.measure(word, size, 'bold') <= USABLE_WIDTH

    @pytest.mark.parametrize('word', ['狗', '狗狗狗狗狗狗狗狗', 'gǒu', 'zhōngguórénmín', 'Wǒ ài nǐ'])
    def test_loaded_faces_stay_within_usable_width(self, loaded_resolver, word):
        surface = measuring_surface(loaded_resolver, PageGeometry())
        size = compute_font_size(word, surface, USABLE_WIDTH)
        assert 40 <= size <= 250
        assert surface.measure(word, size, 'bold') <= USABLE_WIDTH

    def test_real_metrics_are_deterministic(self, bare_resolver):
        surface = measuring_surface(bare_resolver, PageGeometry())
        assert compute_font_size('Elephant', surface, USABLE_WIDTH) == compute_font_size(
            'Elephant', surface, USABLE_WIDTH
        )


class TestMeasuringSurface:
    def test_font_is_reselected_for_every_measurement(self, loaded_resolver):
        surface = measuring_surface(loaded_resolver, PageGeometry())
        seen = []
        for text in ('猫', 'cat', 'māo'):
            width = surface.measure(text, 120, 'bold')
            fresh = measuring_surface(loaded_resolver, PageGeometry()).measure(text, 120, 'bold')
            seen.append(surface.font_name)
            assert width == pytest.approx(fresh)
        assert seen == ['NotoSansSC-Regular', 'Helvetica-Bold', 'NotoSans-Regular']

    def test_measurement_order_does_not_change_widths(self, loaded_resolver):
        surface = measuring_surface(loaded_resolver, PageGeometry())
        forward = [surface.measure(text, 80, 'bold') for text in ('猫', 'cat', 'māo')]
        backward = [surface.measure(text, 80, 'bold') for text in ('māo', 'cat', '猫')]
        assert forward == list(reversed(backward))


class TestSafetyShrink:
    @pytest.mark.parametrize(
        'length, expected',
        [(0, 200), (3, 200), (4, 199), (6, 199), (7, 198), (40, 198)],
    )
    def test_tiers(self, length, expected):
        assert apply_safety_shrink(200, length, FitParams()) == expected


class TestSizeFlashcards:
    def test_carries_card_fields_and_category_names(self, deck, linear_surface_cls):
        names = {'animals': 'Animals', 'zh': 'Chinese'}
        sized = size_flashcards(
            deck.flashcards[:2] + deck.flashcards[-1:],
            linear_surface_cls(),
            USABLE_WIDTH,
            category_name=lambda category_id: names.get(category_id, 'Unknown'),
        )
        assert [item.id for item in sized] == ['a1', 'a2', 'z2']
        assert [item.font_size for item in sized] == [250, 250, 250]
        assert sized[0].gloss_text == 'Dog'
        assert sized[2].category_name == 'Chinese'

    def test_unknown_category_without_lookup(self, linear_surface_cls):
        sized = size_flashcards([Flashcard(id='q', word='hello')], linear_surface_cls(), USABLE_WIDTH)
        assert sized[0].category_name == 'Unknown'
        assert sized[0].font_size == 248


# --------------------------------------------------------------------------- #
# Pagination
# --------------------------------------------------------------------------- #

class TestPaginate:
    def test_pairs_in_order(self):
        assert paginate(['a', 'b', 'c', 'd']) == [('a', 'b'), ('c', 'd')]

    def test_last_page_may_be_short(self):
        pages = paginate(list('abcdefg'))
        assert len(pages) == 4
        assert pages[-1] == ('g',)
        assert [item for page in pages for item in page] == list('abcdefg')

    def test_empty(self):
        assert paginate([]) == []

    def test_rejects_bad_page_size(self):
        with pytest.raises(ValueError):
            paginate(['a'], per_page=0)


# --------------------------------------------------------------------------- #
# Geometry
# --------------------------------------------------------------------------- #

class TestPageGeometry:
    def test_a4_landscape_defaults(self):
        geometry = PageGeometry()
        assert geometry.usable_width == 281
        assert geometry.midline_y == 105
        assert round(geometry.aspect_ratio, 3) == 1.414

    def test_anchors(self):
        geometry = PageGeometry()
        assert geometry.front_anchor(0) == (148.5, 52.5)
        assert geometry.front_anchor(1) == (148.5, 157.5)
        assert geometry.back_anchor(0) == (277, 20)
        assert geometry.back_anchor(1) == (277, 125)
        assert geometry.divider() == (0.0, 105, 297, 105)

    def test_slot_out_of_range(self):
        with pytest.raises(ValueError):
            PageGeometry().front_anchor(2)
