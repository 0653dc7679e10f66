"""
Shared fixtures: isolated settings, fake font assets and recording surfaces.
"""

import asyncio
from collections import Counter
from pathlib import Path

import pytest
import reportlab

from sprouttie.adapters.card_store import CardStore
from sprouttie.config import get_settings
from sprouttie.layout import fonts as fonts_module
from sprouttie.layout.fonts import FontResolver
from sprouttie.layout.geometry import PageGeometry
from sprouttie.types import CardDeck, Category, Flashcard, FontKind


class FakeFontProvider:
    """Stands in for the HTTP font endpoints and counts requests per kind."""

    def __init__(self, payloads=None, *, fail=(), delay=0.0):
        self.payloads = payloads or {}
        self.fail = set(fail)
        self.delay = delay
        self.calls = Counter()

    def source_for(self, kind):
        return f'fake://{kind.value}'

    async def fetch(self, kind):
        self.calls[kind] += 1
        await asyncio.sleep(self.delay)
        if kind in self.fail:
            raise RuntimeError(f'{kind.value} endpoint unavailable')
        return self.payloads[kind]


class LinearSurface:
    """Measuring surface whose widths are len(text) * size * per_char + overhead."""

    def __init__(self, per_char=0.1, overhead=0.0):
        self.per_char = per_char
        self.overhead = overhead
        self.calls = []

    def measure(self, text, font_size, weight='normal'):
        self.calls.append((text, font_size, weight))
        if not text:
            return 0.0
        return len(text) * font_size * self.per_char + self.overhead


class RecordingSurface:
    """Records the drawing instructions the renderer issues."""

    def __init__(self, geometry=None):
        self.geometry = geometry or PageGeometry()
        self.ops = []
        self.color = None
        self.page_count = 1

    def set_text_color(self, rgb):
        self.color = rgb

    def place_text(self, text, x, y, *, font_size, weight='normal', align='left', baseline='alphabetic'):
        self.ops.append(
            {
                'op': 'text',
                'page': self.page_count,
                'text': text,
                'x': x,
                'y': y,
                'font_size': font_size,
                'weight': weight,
                'align': align,
                'baseline': baseline,
                'color': self.color,
            }
        )

    def draw_line(self, x1, y1, x2, y2, *, width, rgb=(0, 0, 0)):
        self.ops.append({'op': 'line', 'page': self.page_count, 'coords': (x1, y1, x2, y2), 'width': width})

    def new_page(self):
        self.page_count += 1
        self.ops.append({'op': 'page', 'page': self.page_count})

    def texts(self, page=None):
        return [op for op in self.ops if op['op'] == 'text' and (page is None or op['page'] == page)]

    def lines(self, page=None):
        return [op for op in self.ops if op['op'] == 'line' and (page is None or op['page'] == page)]


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv('SPROUTTIE_DATA_DIR', str(tmp_path / 'data'))
    monkeypatch.setattr(fonts_module, '_RESOLVER', None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def vera_bytes():
    path = Path(reportlab.__file__).parent / 'fonts' / 'Vera.ttf'
    if not path.exists():
        pytest.skip('reportlab bundled Vera.ttf not available')
    return path.read_bytes()


@pytest.fixture
def fake_provider_cls():
    return FakeFontProvider


@pytest.fixture
def linear_surface_cls():
    return LinearSurface


@pytest.fixture
def recording_surface():
    return RecordingSurface()


@pytest.fixture
def bare_resolver():
    """Resolver whose fonts never loaded: everything falls back to Helvetica."""
    return FontResolver(provider=FakeFontProvider())


@pytest.fixture
def loaded_resolver(vera_bytes):
    provider = FakeFontProvider({FontKind.cjk: vera_bytes, FontKind.latin: vera_bytes})
    resolver = FontResolver(provider=provider)
    asyncio.run(resolver.ensure_loaded())
    return resolver


@pytest.fixture
def deck():
    categories = [Category(id='animals', name='Animals'), Category(id='zh', name='Chinese')]
    flashcards = [
        Flashcard(id='a1', word='Dog', english='Dog', categoryId='animals'),
        Flashcard(id='a2', word='Cat', categoryId='animals'),
        Flashcard(id='a3', word='Horse', categoryId='animals'),
        Flashcard(id='a4', word='Lion', categoryId='animals'),
        Flashcard(id='a5', word='Tiger', categoryId='animals'),
        Flashcard(id='a6', word='Mountain', categoryId='animals'),
        Flashcard(id='a7', word='Elephant', categoryId='animals'),
        Flashcard(id='z1', word='狗', english='Dog', pinyin='gǒu', categoryId='zh'),
        Flashcard(id='z2', word='猫', english='Cat', pinyin='', categoryId='zh'),
    ]
    return CardDeck(categories=categories, flashcards=flashcards)


@pytest.fixture
def store(deck, tmp_path):
    return CardStore(tmp_path / 'cards.json', deck=deck)
