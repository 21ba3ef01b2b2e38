"""
excusemaster/cli.py
Command-line interface for ExcuseMaster.

USAGE:
  excusemaster generate "missed my friend's birthday dinner" --category Social --tone Funny
  excusemaster generate "late report" -c Work -t Professional -d "boss is strict" --no-save
  excusemaster test
  excusemaster history --search traffic
  excusemaster history --delete 3f2a...
  excusemaster config --api-key xai-... --model grok-4-1-fast-reasoning

Settings live in ./excusemaster_config.json; a blank api_key falls back
to $XAI_API_KEY.
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from excusemaster.api import ExcuseMasterAPI
from excusemaster.config import ensure_config, redact_config
from excusemaster.errors import ExcuseGeneratorError
from excusemaster.models.record import AIModel, Category, ExcuseRecord, Tone

logger = logging.getLogger(__name__)

# ANSI colors
GREEN  = '\033[92m'
YELLOW = '\033[93m'
RED    = '\033[91m'
CYAN   = '\033[96m'
DIM    = '\033[2m'
RESET  = '\033[0m'
BOLD   = '\033[1m'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog        = 'excusemaster',
        description = 'ExcuseMaster — structured excuses from a chat model',
        formatter_class = argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        '--verbose', '-v',
        action  = 'store_true',
        help    = 'Enable debug logging',
    )
    parser.add_argument(
        '--root',
        type    = Path,
        default = Path.cwd(),
        help    = 'Directory holding excusemaster_config.json (default: cwd)',
    )
    sub = parser.add_subparsers(dest='command', required=True)

    gen = sub.add_parser('generate', help='Generate 3 excuses')
    gen.add_argument('situation', help='What you need an excuse for')
    gen.add_argument(
        '--category', '-c',
        default = Category.WORK.value,
        help    = f"One of: {', '.join(c.value for c in Category)} (default: Work)",
    )
    gen.add_argument(
        '--tone', '-t',
        default = Tone.PROFESSIONAL.value,
        help    = f"One of: {', '.join(t.value for t in Tone)} (default: Professional)",
    )
    gen.add_argument('--details', '-d', default='', help='Extra details for the model')
    gen.add_argument(
        '--model', '-m',
        default = None,
        help    = f"Model id (default from config; known: {', '.join(m.value for m in AIModel)})",
    )
    gen.add_argument('--temperature', type=float, default=None,
                     help='Sampling temperature (default from config, 0.8)')
    gen.add_argument('--no-save', action='store_true', help='Do not add results to history')

    sub.add_parser('test', help='Test API key and connectivity')

    hist = sub.add_parser('history', help='Show, search, or edit saved excuses')
    hist.add_argument('--search', '-s', default='', help='Substring filter on text/rationale')
    hist.add_argument('--delete', metavar='ID', help='Delete one excuse by id')
    hist.add_argument('--clear', action='store_true', help='Delete all saved excuses')

    cfg = sub.add_parser('config', help='Show or update settings')
    cfg.add_argument('--api-key', help='x.ai API key')
    cfg.add_argument('--model', help='Default model id')
    cfg.add_argument('--temperature', type=float, help='Default temperature')
    cfg.add_argument('--base-url', help='OpenAI-compatible base URL')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # ── LOGGING SETUP ────────────────────────────────────────
    logging.basicConfig(
        level   = logging.DEBUG if args.verbose else logging.WARNING,
        format  = '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt = '%H:%M:%S',
    )

    api = ExcuseMasterAPI(config=ensure_config(args.root), project_root=args.root)

    try:
        if args.command == 'generate':
            return _cmd_generate(api, args)
        if args.command == 'test':
            return _cmd_test(api)
        if args.command == 'history':
            return _cmd_history(api, args)
        return _cmd_config(api, args)
    except ExcuseGeneratorError as e:
        _print(f"{RED}✗ {e.message}{RESET}")
        return 1
    except ValueError as e:
        _print(f"{RED}✗ {e}{RESET}")
        return 2


# ── COMMANDS ─────────────────────────────────────────────────

def _cmd_generate(api: ExcuseMasterAPI, args) -> int:
    _step("Generating excuses...")
    t0 = time.time()
    excuses = api.generate(
        situation   = args.situation,
        category    = args.category,
        tone        = args.tone,
        details     = args.details,
        model       = args.model,
        temperature = args.temperature,
        save        = not args.no_save,
    )
    _ok(f"{len(excuses)} excuses in {_elapsed(t0)}")
    for i, excuse in enumerate(excuses, 1):
        _print_excuse(excuse, index=i)
    return 0


def _cmd_test(api: ExcuseMasterAPI) -> int:
    _step("Testing connection...")
    api.test_connection()
    _ok("Connection successful.")
    return 0


def _cmd_history(api: ExcuseMasterAPI, args) -> int:
    if args.clear:
        api.clear_history()
        _ok("History cleared.")
        return 0
    if args.delete:
        if api.delete_excuse(args.delete):
            _ok(f"Deleted {args.delete}")
            return 0
        _print(f"{YELLOW}No excuse with id {args.delete}{RESET}")
        return 1

    excuses = api.get_history(args.search)
    if not excuses:
        _print(f"{YELLOW}No saved excuses{' matching ' + repr(args.search) if args.search else ''}.{RESET}")
        return 0
    for excuse in excuses:
        _print_excuse(excuse, show_meta=True)
    return 0


def _cmd_config(api: ExcuseMasterAPI, args) -> int:
    updates = {
        key: value for key, value in (
            ('api_key',     args.api_key),
            ('model',       args.model),
            ('temperature', args.temperature),
            ('base_url',    args.base_url),
        )
        if value is not None
    }
    if updates:
        api.update_config(updates)
        _ok("Settings saved.")
    for key, value in redact_config(api.config).items():
        _print(f"  {key:<13}: {CYAN}{value}{RESET}")
    return 0


# ── PRINT HELPERS ────────────────────────────────────────────

def _print_excuse(excuse: ExcuseRecord, index: Optional[int] = None, show_meta: bool = False):
    prefix = f"{index}. " if index is not None else "• "
    _print(f"\n{BOLD}{prefix}{excuse.text}{RESET}")
    if excuse.rationale:
        _print(f"   💡 {excuse.rationale}")
    if excuse.mechanics:
        names = ', '.join(excuse.mechanic_names)
        _print(f"   {CYAN}⚙ Mechanics: {', '.join(map(str, excuse.mechanics))} ({names}){RESET}")
    if show_meta:
        _print(f"   {DIM}{excuse.created_at:%Y-%m-%d %H:%M} · {excuse.id}{RESET}")


def _step(msg):  _print(f"  {CYAN}→{RESET} {msg}")
def _ok(msg):    _print(f"  {GREEN}✓{RESET} {msg}")
def _print(msg): print(msg)


def _elapsed(t0: float) -> str:
    s = time.time() - t0
    return f"{s:.1f}s" if s < 60 else f"{int(s//60)}m {int(s%60)}s"


if __name__ == '__main__':
    sys.exit(main())
