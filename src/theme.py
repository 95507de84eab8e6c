"""Color & style helpers for the task list.

Decisions:
- Truecolor when COLORTERM advertises it, otherwise the 256-color cube.
- Disabled when stdout is not a TTY unless FORCE_COLOR=1; NO_COLOR wins.
- Palette overrides come from the environment, then a project .env file.
"""
from __future__ import annotations
import os, sys
from pathlib import Path

_FORCE = os.environ.get("FORCE_COLOR", "").lower() in {"1", "true", "yes", "on"}
_NO_COLOR = os.environ.get("NO_COLOR") is not None
_ENABLE = (_FORCE or sys.stdout.isatty()) and not _NO_COLOR
_COLORTERM = os.environ.get("COLORTERM", "").lower()
_USE_TRUECOLOR = _ENABLE and any(tok in _COLORTERM for tok in ("truecolor", "24bit"))

PALETTE_KEYS = ('ATOR_PRIMARY', 'ATOR_OPEN', 'ATOR_LATE', 'ATOR_DONE')


def _code(part: str) -> str:
    return f"\033[{part}m" if _ENABLE else ''


def _hex_to_rgb(hex_code: str) -> tuple[int, int, int]:
    h = hex_code.lstrip('#')
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def _is_hex(value: str) -> bool:
    h = value.lstrip('#')
    return len(h) == 6 and all(c in '0123456789abcdefABCDEF' for c in h)


def _fg_256(r: int, g: int, b: int) -> str:
    """Approximate RGB to xterm 256-color cube."""
    def to_6(x: int) -> int:
        return int(round(x / 255 * 5))
    idx = 16 + 36 * to_6(r) + 6 * to_6(g) + to_6(b)
    return f"\033[38;5;{idx}m"


def _from_hex(hex_code: str) -> str:
    if not _ENABLE:
        return ''
    r, g, b = _hex_to_rgb(hex_code)
    if _USE_TRUECOLOR:
        return f"\033[38;2;{r};{g};{b}m"
    return _fg_256(r, g, b)


def _read_env_file(path: Path) -> dict[str, str]:
    """Palette entries from a KEY=VALUE file; invalid lines are skipped."""
    found: dict[str, str] = {}
    if not path.exists():
        return found
    for line in path.read_text(encoding='utf-8').splitlines():
        line = line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        k, v = (part.strip() for part in line.split('=', 1))
        if k in PALETTE_KEYS and _is_hex(v):
            found[k] = '#' + v.lstrip('#')
    return found


def _resolve(key: str, default: str, overrides: dict[str, str]) -> str:
    """Priority: real env var > .env override > default."""
    value = os.environ.get(key)
    if value and _is_hex(value):
        return '#' + value.lstrip('#')
    return overrides.get(key, default)


RESET = _code('0')
BOLD = _code('1')
DIM = _code('2')

HEX_PRIMARY_DEFAULT = '#476EAE'
HEX_OPEN_DEFAULT = '#48B3AF'
HEX_LATE_DEFAULT = '#E0645C'
HEX_DONE_DEFAULT = '#A7E399'

_ENV_OVERRIDES = _read_env_file(Path(__file__).resolve().parent.parent / '.env')

HEX_PRIMARY = _resolve('ATOR_PRIMARY', HEX_PRIMARY_DEFAULT, _ENV_OVERRIDES)
HEX_OPEN = _resolve('ATOR_OPEN', HEX_OPEN_DEFAULT, _ENV_OVERRIDES)
HEX_LATE = _resolve('ATOR_LATE', HEX_LATE_DEFAULT, _ENV_OVERRIDES)
HEX_DONE = _resolve('ATOR_DONE', HEX_DONE_DEFAULT, _ENV_OVERRIDES)

PRIMARY = _from_hex(HEX_PRIMARY)

STATE_COLOR = {
    'open': _from_hex(HEX_OPEN),
    'late': _from_hex(HEX_LATE),
    'done': _from_hex(HEX_DONE),
}

HEADER_COLOR = PRIMARY
ID_COLOR = PRIMARY + BOLD
EMPTY_COLOR = DIM + PRIMARY


def color(text: str, *styles: str) -> str:
    """Apply ANSI styles to a given text."""
    if not _ENABLE:
        return text
    return ''.join(styles) + text + RESET


__all__ = [
    'color', 'RESET', 'BOLD', 'DIM', 'STATE_COLOR', 'HEADER_COLOR', 'ID_COLOR', 'EMPTY_COLOR',
    'HEX_PRIMARY', 'HEX_OPEN', 'HEX_LATE', 'HEX_DONE',
]
