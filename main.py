from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from sprouttie.adapters.card_store import CardStore
from sprouttie.config import get_settings
from sprouttie.errors import PrintError
from sprouttie.layout.fonts import get_font_resolver
from sprouttie.layout.preview import render_preview_html
from sprouttie.printing import PrintSession
from sprouttie.storage import append_event, read_events, write_bytes_atomic
from sprouttie.types import PreviewSide


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _load_fonts() -> None:
    resolver = get_font_resolver()
    asyncio.run(resolver.ensure_loaded())


def _session_from_args(args: argparse.Namespace) -> PrintSession | None:
    store = CardStore.from_settings()
    session = PrintSession(store)
    side = PreviewSide(getattr(args, 'side', None) or PreviewSide.front.value)
    if args.sets:
        session.select_sets(args.sets, include_back_pages=args.back, preview_side=side)
    elif args.ids:
        session.select(args.ids, include_back_pages=args.back, preview_side=side)
    elif args.category:
        ids = [card.id for card in store.flashcards(args.category)]
        session.select(ids, include_back_pages=args.back, preview_side=side)
    else:
        _print_json({'status': 'error', 'message': 'Select flashcards with --ids, --sets or --category.'})
        return None
    return session


def cmd_cards(args: argparse.Namespace) -> int:
    store = CardStore.from_settings()
    cards = store.flashcards(args.category)
    _print_json(
        {
            'count': len(cards),
            'flashcards': [
                {
                    **card.model_dump(mode='json'),
                    'category_name': store.category_name(card.category_id),
                }
                for card in cards
            ],
        }
    )
    return 0


def cmd_sets(args: argparse.Namespace) -> int:
    store = CardStore.from_settings()
    _print_json(
        {
            'categories': [category.model_dump(mode='json') for category in store.categories()],
            'sets': [item.model_dump(mode='json') for item in store.sets()],
        }
    )
    return 0


def cmd_import_csv(args: argparse.Namespace) -> int:
    csv_path = Path(args.file).expanduser().resolve()
    if not csv_path.exists() or not csv_path.is_file():
        _print_json({'status': 'error', 'message': f'CSV not found: {csv_path}'})
        return 2

    store = CardStore.from_settings()
    try:
        report = store.import_csv(csv_path)
    except (ValueError, UnicodeDecodeError) as exc:
        _print_json({'status': 'error', 'message': str(exc)})
        return 2

    append_event('csv_imported', source=str(csv_path), **report.model_dump(mode='json'))
    _print_json({'status': 'ok', **report.model_dump(mode='json')})
    return 0


def cmd_fonts(args: argparse.Namespace) -> int:
    _load_fonts()
    _print_json(get_font_resolver().status())
    return 0


def cmd_preview(args: argparse.Namespace) -> int:
    session = _session_from_args(args)
    if session is None:
        return 2
    _load_fonts()

    outcome = session.generate_preview()
    if not outcome.ok:
        _print_json({'status': 'error', **outcome.model_dump(mode='json')})
        return 2

    try:
        document = session.preview()
    except PrintError as exc:
        _print_json({'status': 'error', 'message': exc.user_message})
        return 2

    payload: dict = {'status': 'ok', **outcome.model_dump(mode='json')}
    if args.html:
        html_path = Path(args.html).expanduser().resolve()
        write_bytes_atomic(html_path, render_preview_html(document).encode('utf-8'))
        payload['html_path'] = str(html_path)
    else:
        payload['preview'] = document.model_dump(mode='json')
    _print_json(payload)
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    session = _session_from_args(args)
    if session is None:
        return 2
    _load_fonts()

    outcome = session.generate_preview()
    if not outcome.ok:
        _print_json({'status': 'error', **outcome.model_dump(mode='json')})
        return 2

    output_path = Path(args.output).expanduser().resolve() if args.output else None
    outcome = session.download(output_path)
    status = 'ok' if outcome.ok else 'error'
    _print_json({'status': status, **outcome.model_dump(mode='json')})
    return 0 if outcome.ok else 2


def cmd_events(args: argparse.Namespace) -> int:
    rows = read_events(args.event)
    if args.limit:
        rows = rows[-args.limit:]
    _print_json({'count': len(rows), 'events': rows})
    return 0


def _add_selection_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--ids', nargs='+', required=False, help='Flashcard IDs in print order')
    parser.add_argument('--sets', nargs='+', required=False, help='Set IDs; their flashcards are merged')
    parser.add_argument('--category', required=False, help='Print every flashcard of a category')
    parser.add_argument('--back', action='store_true', help='Add a back page for every front page')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Sprouttie flashcard sheet printer')
    sub = parser.add_subparsers(dest='command', required=True)

    cards = sub.add_parser('cards', help='List flashcards')
    cards.add_argument('--category', required=False, help='Category ID filter')
    cards.set_defaults(func=cmd_cards)

    sets = sub.add_parser('sets', help='List categories and sets')
    sets.set_defaults(func=cmd_sets)

    import_csv = sub.add_parser('import-csv', help='Import flashcards from a CSV sheet')
    import_csv.add_argument('--file', required=True, help='CSV file, one category per column')
    import_csv.set_defaults(func=cmd_import_csv)

    fonts = sub.add_parser('fonts', help='Load font assets and report their state')
    fonts.set_defaults(func=cmd_fonts)

    preview = sub.add_parser('preview', help='Generate a print preview')
    _add_selection_args(preview)
    preview.add_argument('--side', choices=[side.value for side in PreviewSide], default='front')
    preview.add_argument('--html', required=False, help='Write the preview as an HTML page')
    preview.set_defaults(func=cmd_preview)

    export = sub.add_parser('export', help='Generate the flashcard PDF')
    _add_selection_args(export)
    export.add_argument('--output', required=False, help='Output PDF path')
    export.set_defaults(func=cmd_export)

    events = sub.add_parser('events', help='Show the event log')
    events.add_argument('--event', required=False, help='Only events with this name')
    events.add_argument('--limit', type=int, default=20, help='Most recent N events (0 for all)')
    events.set_defaults(func=cmd_events)

    return parser


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, str(settings.log_level).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == '__main__':
    raise SystemExit(main())
