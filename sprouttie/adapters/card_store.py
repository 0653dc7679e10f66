from __future__ import annotations

import csv
import logging
import time
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from sprouttie.config import get_settings
from sprouttie.storage import read_json, write_json_atomic
from sprouttie.types import Category, CardDeck, CsvImportReport, Flashcard, FlashcardSet


logger = logging.getLogger(__name__)

UNKNOWN_CATEGORY = 'Unknown'

_DEFAULT_CATEGORIES = [
    ('cat1', 'Animals'),
    ('cat2', 'Vehicles'),
    ('cat3', 'Household'),
    ('cat4', 'Nature'),
    ('cat5', 'Body Parts'),
]

_DEFAULT_WORDS = {
    'cat1': ['Dog', 'Cat', 'Horse', 'Lion', 'Tiger'],
    'cat2': ['Car', 'Truck', 'Bus', 'Train', 'Airplane'],
    'cat3': ['Chair', 'Table', 'Bed', 'Lamp', 'Sofa'],
    'cat4': ['Tree', 'Flower', 'River', 'Mountain', 'Sun'],
    'cat5': ['Hand', 'Foot', 'Head', 'Ear', 'Eye'],
}


def default_deck() -> CardDeck:
    categories = [Category(id=cat_id, name=name) for cat_id, name in _DEFAULT_CATEGORIES]
    flashcards: list[Flashcard] = []
    counter = 0
    for cat_id, _ in _DEFAULT_CATEGORIES:
        for word in _DEFAULT_WORDS[cat_id]:
            counter += 1
            flashcards.append(Flashcard(id=f'f{counter}', display_text=word, category_id=cat_id))

    # Set n takes the n-th word of every category.
    sets = [
        FlashcardSet(
            id=str(n + 1),
            name=f'Set {n + 1}',
            flashcard_ids=[f'f{n + 1 + 5 * column}' for column in range(5)],
        )
        for n in range(5)
    ]
    return CardDeck(categories=categories, flashcards=flashcards, sets=sets)


class CardStore:
    """JSON-file backed deck of categories, flashcards and named sets."""

    def __init__(self, path: Path | None = None, deck: CardDeck | None = None):
        self.path = path
        self.deck = deck if deck is not None else self._load()

    @classmethod
    def from_settings(cls) -> CardStore:
        return cls(get_settings().cards_path())

    def _load(self) -> CardDeck:
        if self.path is None or not self.path.exists():
            return default_deck()
        try:
            return CardDeck.model_validate(read_json(self.path))
        except (OSError, ValueError, ValidationError) as exc:
            logger.error('Error loading card deck from %s, falling back to defaults: %s', self.path, exc)
            return default_deck()

    def save(self) -> None:
        if self.path is None:
            return
        write_json_atomic(self.path, self.deck.model_dump(mode='json'))

    # Reads

    def lookup(self, item_id: str) -> Flashcard | None:
        token = str(item_id)
        for card in self.deck.flashcards:
            if card.id == token:
                return card
        return None

    def resolve(self, item_ids: Iterable[str]) -> list[Flashcard]:
        resolved: list[Flashcard] = []
        for item_id in item_ids:
            card = self.lookup(item_id)
            if card is None:
                logger.debug('Dropping unknown flashcard id %s from selection', item_id)
                continue
            resolved.append(card)
        return resolved

    def flashcards(self, category_id: str | None = None) -> list[Flashcard]:
        if category_id is None or category_id == 'all':
            return list(self.deck.flashcards)
        return [card for card in self.deck.flashcards if card.category_id == category_id]

    def categories(self) -> list[Category]:
        return list(self.deck.categories)

    def sets(self) -> list[FlashcardSet]:
        return list(self.deck.sets)

    def category_name(self, category_id: str | None) -> str:
        for category in self.deck.categories:
            if category.id == category_id:
                return category.name
        return UNKNOWN_CATEGORY

    def ids_for_sets(self, set_ids: Iterable[str]) -> list[str]:
        seen: set[str] = set()
        ordered: list[str] = []
        by_id = {str(item.id): item for item in self.deck.sets}
        for set_id in set_ids:
            selected = by_id.get(str(set_id))
            if selected is None:
                continue
            for card_id in selected.flashcard_ids:
                if card_id in seen:
                    continue
                seen.add(card_id)
                ordered.append(card_id)
        return ordered

    # Writes

    def _new_id(self, prefix: str) -> str:
        existing = {card.id for card in self.deck.flashcards} | {cat.id for cat in self.deck.categories}
        stamp = int(time.time() * 1000)
        while f'{prefix}{stamp}' in existing:
            stamp += 1
        return f'{prefix}{stamp}'

    def add_category(self, name: str) -> Category:
        category = Category(id=self._new_id('cat'), name=name.strip())
        self.deck.categories.append(category)
        return category

    def add_flashcard(
        self,
        word: str,
        category_id: str | None,
        *,
        english: str = '',
        pinyin: str = '',
    ) -> Flashcard:
        card = Flashcard(
            id=self._new_id('f'),
            display_text=word.strip(),
            gloss_text=english.strip(),
            transliteration_text=pinyin.strip(),
            category_id=category_id,
        )
        self.deck.flashcards.append(card)
        return card

    def _find_category_by_name(self, name: str) -> Category | None:
        wanted = name.strip().lower()
        for category in self.deck.categories:
            if category.name.strip().lower() == wanted:
                return category
        return None

    def _word_exists(self, word: str, category_id: str) -> bool:
        wanted = word.strip().lower()
        return any(
            card.display_text.strip().lower() == wanted and card.category_id == category_id
            for card in self.deck.flashcards
        )

    def import_csv(self, path: Path) -> CsvImportReport:
        """Import a sheet whose header row names categories and whose columns hold words."""
        with path.open(newline='', encoding='utf-8-sig') as f:
            rows = [row for row in csv.reader(f) if any(cell.strip() for cell in row)]

        if len(rows) < 2:
            raise ValueError(
                'Invalid data format. The file should have at least a header row and one data row.'
            )

        columns: list[tuple[int, str]] = []
        for index, header in enumerate(rows[0]):
            name = header.strip()
            if name:
                columns.append((index, name))

        report = CsvImportReport()
        for index, name in columns:
            category = self._find_category_by_name(name)
            if category is None:
                category = self.add_category(name)
                report.categories_added.append(name)
            else:
                report.categories_mapped.append(name)

            for row in rows[1:]:
                if index >= len(row):
                    continue
                word = row[index].strip()
                if not word:
                    continue
                if self._word_exists(word, category.id):
                    report.flashcards_skipped += 1
                    continue
                self.add_flashcard(word, category.id)
                report.flashcards_added += 1

        self.save()
        return report
