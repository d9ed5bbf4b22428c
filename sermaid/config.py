"""Configuration file loading and merging for sermaid.

Reads TOML config from ./config.toml, or the file given with --config.
Precedence: CLI > config file > environment (api_token only) > defaults.
"""

import argparse
import os
import sys
import tomllib
from pathlib import Path
from typing import Any

from .client import DEFAULT_MODEL
from .errors import ConfigError

_UNSET = object()  # Sentinel for "not set by CLI"

DEFAULT_CONFIG_PATH = "./config.toml"
API_TOKEN_ENV = "OPENAI_API_KEY"


# --- Schema ---

CONFIG_KEYS: dict[str, type | tuple[type, ...]] = {
    "api_token": str,
    "history_file": str,
    "model": str,
    "base_url": str,
    "color": bool,
}

# Argparse dest -> hardcoded default
_ARGPARSE_DEFAULTS: dict[str, Any] = {
    "api_token": None,
    "history_file": None,
    "model": DEFAULT_MODEL,
    "base_url": None,
    "color": False,
    "no_color": False,
}


# --- Internal helpers ---


def _type_name(expected: type | tuple[type, ...]) -> str:
    """Format an expected type spec as a human-readable string."""
    if isinstance(expected, tuple):
        return " or ".join(t.__name__ for t in expected)
    return expected.__name__


def _validate_config(config: dict, source: str) -> None:
    """Validate types in a parsed config dict.

    Raises ConfigError for type mismatches. Prints warnings for unknown keys.
    """
    for key, value in config.items():
        if key not in CONFIG_KEYS:
            print(f"warning: {source}: unknown config key {key!r}", file=sys.stderr)
            continue

        expected = CONFIG_KEYS[key]
        # bool is a subclass of int in Python, so isinstance(True, int) is True.
        # Reject bools for non-bool fields explicitly.
        if isinstance(value, bool) and expected is not bool:
            raise ConfigError(
                f"{source}: {key!r} expected {_type_name(expected)}, got bool"
            )
        if not isinstance(value, expected):
            raise ConfigError(
                f"{source}: {key!r} expected {_type_name(expected)}, got {type(value).__name__}"
            )


def _resolve_paths(config: dict, config_dir: Path) -> None:
    """Resolve a relative history_file against the config file's directory.

    Applies expanduser() before checking is_absolute(), so that ~/... paths
    expand to the user's home directory instead of becoming <config_dir>/~/...
    """
    if "history_file" in config:
        expanded = Path(config["history_file"]).expanduser()
        if not expanded.is_absolute():
            expanded = config_dir / expanded
        config["history_file"] = str(expanded)


# --- Public API ---


def load_config(path: str | Path | None = None) -> dict:
    """Load and validate the TOML config file.

    With ``path`` None the default ./config.toml is used and may be absent,
    in which case an empty dict is returned. An explicitly given path must
    exist. Only keys actually set in the file are included.
    """
    explicit = path is not None
    config_path = Path(path if explicit else DEFAULT_CONFIG_PATH)
    if not config_path.is_file():
        if explicit:
            raise ConfigError(f"{config_path}: config file not found")
        return {}

    label = str(config_path)
    try:
        with open(config_path, "rb") as f:
            config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{label}: invalid TOML: {e}") from e
    except OSError as e:
        raise ConfigError(f"{label}: cannot read file: {e}") from e

    _validate_config(config, label)
    known = {k: v for k, v in config.items() if k in CONFIG_KEYS}
    _resolve_paths(known, config_path.resolve().parent)
    return known


def apply_config_to_args(args: argparse.Namespace, config: dict) -> None:
    """Apply config values to argparse namespace where CLI didn't set a value.

    Config keys map one-to-one onto argparse dests. After processing all
    config keys, remaining _UNSET sentinels are replaced with the hardcoded
    defaults from _ARGPARSE_DEFAULTS, and a missing api_token falls back to
    the OPENAI_API_KEY environment variable.
    """

    def _is_unset(dest: str) -> bool:
        return getattr(args, dest, _UNSET) is _UNSET

    # Special handling for color: single config key controls mutual-exclusive pair
    if "color" in config:
        color_val = config["color"]
        if _is_unset("color") and _is_unset("no_color"):
            args.color = color_val
            args.no_color = not color_val

    for key, value in config.items():
        if key == "color":
            continue  # Already handled above
        if _is_unset(key):
            setattr(args, key, value)

    if _is_unset("api_token") and os.environ.get(API_TOKEN_ENV):
        args.api_token = os.environ[API_TOKEN_ENV]

    # Sweep: replace remaining sentinels with hardcoded defaults
    for dest, default in _ARGPARSE_DEFAULTS.items():
        if _is_unset(dest):
            setattr(args, dest, default)


def generate_config() -> str:
    """Return a commented-out template config string."""
    lines = [
        "# sermaid configuration file",
        f"# Default location: {DEFAULT_CONFIG_PATH} (override with --config)",
        "#",
        "# CLI flags override these values. Only uncomment what you need.",
        "",
        "# --- Backend ---",
        f'# api_token = "sk-..."        # falls back to ${API_TOKEN_ENV}',
        f'# model = "{DEFAULT_MODEL}"',
        '# base_url = "https://api.openai.com/v1"',
        "",
        "# --- Session ---",
        '# history_file = "history.txt"   # relative to this file',
        "",
        "# --- UI ---",
        "# color = true       # true = force color, false = force no-color, absent = auto",
        "",
    ]
    return "\n".join(lines)
