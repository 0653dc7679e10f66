from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScriptClass(str, Enum):
    cjk = 'cjk'
    latin_diacritic = 'latin_diacritic'
    ascii = 'ascii'


class FontKind(str, Enum):
    cjk = 'cjk'
    latin = 'latin'


class FontLoadState(str, Enum):
    absent = 'absent'
    loading = 'loading'
    loaded = 'loaded'
    failed = 'failed'


class PreviewSide(str, Enum):
    front = 'front'
    back = 'back'


class Category(BaseModel):
    id: str
    name: str


class Flashcard(BaseModel):
    """A selectable item as supplied by the card store."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_text: str = Field(validation_alias=AliasChoices('display_text', 'word'))
    gloss_text: str = Field(default='', validation_alias=AliasChoices('gloss_text', 'english'))
    transliteration_text: str = Field(
        default='',
        validation_alias=AliasChoices('transliteration_text', 'pinyin'),
    )
    category_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices('category_id', 'categoryId'),
    )


class SizedItem(Flashcard):
    font_size: int = Field(gt=0)
    category_name: str = 'Unknown'


# Slot 0 is the top half, slot 1 (when present) the bottom half.
Page = Tuple[SizedItem, ...]


class FlashcardSet(BaseModel):
    id: int | str
    name: str
    flashcard_ids: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices('flashcard_ids', 'flashcardIds'),
    )


class CardDeck(BaseModel):
    categories: list[Category] = Field(default_factory=list)
    flashcards: list[Flashcard] = Field(default_factory=list)
    sets: list[FlashcardSet] = Field(default_factory=list)


class PrintJob(BaseModel):
    item_ids: list[str] = Field(default_factory=list)
    include_back_pages: bool = False
    preview_side: PreviewSide = PreviewSide.front
    created_at: datetime = Field(default_factory=utcnow)


class PrintOutcome(BaseModel):
    ok: bool
    message: str
    flashcard_count: int = 0
    page_count: int = 0
    output_path: str | None = None
    notes: list[str] = Field(default_factory=list)


class CsvImportReport(BaseModel):
    categories_added: list[str] = Field(default_factory=list)
    categories_mapped: list[str] = Field(default_factory=list)
    flashcards_added: int = 0
    flashcards_skipped: int = 0
