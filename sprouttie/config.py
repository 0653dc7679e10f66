from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        env_prefix='SPROUTTIE_',
        case_sensitive=False,
        extra='ignore',
    )

    app_name: str = 'Sprouttie Flashcards'

    data_dir: Path = Field(default=Path('./data'))
    cards_file: str = 'cards.json'
    exports_dir: Path | None = None
    output_filename: str = 'sprouttie-flashcards.pdf'

    # Font assets: http(s) URLs or local file paths
    cjk_font_source: str = Field(
        default='./assets/fonts/NotoSansSC-Regular.ttf',
        validation_alias=AliasChoices('SPROUTTIE_CJK_FONT_SOURCE', 'CJK_FONT_URL'),
    )
    latin_font_source: str = Field(
        default='./assets/fonts/NotoSans-Regular.ttf',
        validation_alias=AliasChoices('SPROUTTIE_LATIN_FONT_SOURCE', 'LATIN_FONT_URL'),
    )
    font_fetch_timeout_seconds: int = 30

    # Page geometry (A4 landscape, millimetres)
    page_margin_mm: float = 8.0

    # Shrink-to-fit tuning. Empirical values; keep them unless the page changes.
    fit_ceiling: int = 250
    fit_floor: int = 40
    fit_medium_shrink: float = 0.995
    fit_long_shrink: float = 0.99

    # On-screen preview
    preview_scale_down: float = 3.0
    preview_max_font_px: float = 100.0
    preview_max_height_px: int = 400

    log_level: str = 'INFO'

    def cards_path(self) -> Path:
        return self.data_dir / self.cards_file

    def exports_path(self) -> Path:
        return self.exports_dir or (self.data_dir / 'exports')


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.exports_path().mkdir(parents=True, exist_ok=True)
    return settings
