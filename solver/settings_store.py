import configparser
from pathlib import Path

SETTINGS_PATH = Path(__file__).with_name("solver.ini")
SECTION = "search"

# Blank limits mean "unbounded".
DEFAULT_SETTINGS = {
    "max_nodes": "",
    "max_seconds": "",
    "max_frontier": "",
    "auto_promote_margin": "1",
    "limit_empty_destinations": "true",
    "count_dragon_work": "true",
    "require_cleared_tableau": "false",
    "reuse_dragon_cell": "false",
}

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


def _optional_int(raw, default):
    raw = str(raw).strip()
    if raw in ("", "None"):
        return None
    try:
        value = int(raw)
    except ValueError:
        return default
    if value <= 0:
        return default
    return value


def _optional_float(raw, default):
    raw = str(raw).strip()
    if raw in ("", "None"):
        return None
    try:
        value = float(raw)
    except ValueError:
        return default
    if value <= 0:
        return default
    return value


def _flag(raw, default):
    raw = str(raw).strip().lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    return default


def _sanitize(settings):
    """Typed settings; every unreadable value falls back to its default."""
    data = dict(DEFAULT_SETTINGS)
    data.update({k: v for k, v in settings.items() if v is not None})

    out = {
        "max_nodes": _optional_int(data["max_nodes"], None),
        "max_seconds": _optional_float(data["max_seconds"], None),
        "max_frontier": _optional_int(data["max_frontier"], None),
    }

    try:
        margin = int(str(data["auto_promote_margin"]).strip())
    except ValueError:
        margin = int(DEFAULT_SETTINGS["auto_promote_margin"])
    if margin < 0:
        margin = 0
    out["auto_promote_margin"] = margin

    flags = (
        "limit_empty_destinations",
        "count_dragon_work",
        "require_cleared_tableau",
        "reuse_dragon_cell",
    )
    for key in flags:
        out[key] = _flag(data[key], _flag(DEFAULT_SETTINGS[key], False))
    return out


def _to_ini(value):
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def load_settings(path=None):
    path = Path(path) if path is not None else SETTINGS_PATH
    if not path.exists():
        return _sanitize({})
    parser = configparser.ConfigParser()
    try:
        parser.read(path, encoding="utf-8")
    except configparser.Error:
        return _sanitize({})
    if SECTION not in parser:
        return _sanitize({})
    raw = {key: parser[SECTION].get(key, DEFAULT_SETTINGS[key]) for key in DEFAULT_SETTINGS}
    return _sanitize(raw)


def save_settings(settings, path=None):
    path = Path(path) if path is not None else SETTINGS_PATH
    data = _sanitize(settings)
    parser = configparser.ConfigParser()
    parser[SECTION] = {key: _to_ini(value) for key, value in data.items()}
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        parser.write(f)
