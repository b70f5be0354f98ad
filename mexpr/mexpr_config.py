"""
Loads a Config and numeric backend from a mapping or JSON / YAML / TOML text.

Recognised keys:

    implicit_multiplication: true
    precision: 53
    root_policy: principal      # or: all
    backend: float              # float | complex | rational | mpreal | mpcomplex
"""

import collections.abc
import json
import re
import tomllib
from typing import Any, Dict, Optional, Tuple, Type, Union

import yaml

from mexpr.mexpr_context import Config
from mexpr.mexpr_numbers import Float, Num, get_backend

CONFIG_KEYS = ('implicit_multiplication', 'precision', 'root_policy', 'backend')

_TOML_ASSIGNMENT = re.compile(r'^\s*[A-Za-z_][\w-]*\s*=', re.MULTILINE)


def _norm_text(data: Union[bytes, bytearray, str]) -> str:
    if isinstance(data, (bytes, bytearray)):
        return data.decode('utf-8')
    return data


def detect_format(text: str) -> str:
    """Returns 'json', 'toml' or 'yaml' by sniffing the text."""
    s = text.lstrip()
    if s.startswith('{'):
        return 'json'
    if _TOML_ASSIGNMENT.search(text):
        return 'toml'
    return 'yaml'


def deserialize(text: str, fmt: str) -> Any:
    """Parses text in the given format, raising ValueError on malformed input."""
    match fmt.lower():
        case 'json':
            return json.loads(text)
        case 'yaml' | 'yml':
            try:
                return yaml.safe_load(text)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML configuration: {e}") from e
        case 'toml':
            return tomllib.loads(text)
    raise ValueError(f"Unsupported configuration format {fmt!r}")


def load_config(data: Union[str, bytes, collections.abc.Mapping],
                fmt: Optional[str] = None) -> Tuple[Config, Type[Num]]:
    """Builds a (Config, backend class) pair from a mapping or serialized text."""
    if isinstance(data, collections.abc.Mapping):
        settings = data
    elif isinstance(data, (str, bytes, bytearray)):
        text = _norm_text(data)
        settings = deserialize(text, fmt or detect_format(text))
    else:
        raise TypeError(f"Cannot load configuration from {type(data).__name__}")

    if settings is None:
        settings = {}
    if not isinstance(settings, collections.abc.Mapping):
        raise ValueError(f"Configuration must be a mapping, got {type(settings).__name__}")

    unknown = sorted(set(settings) - set(CONFIG_KEYS))
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(map(str, unknown))}")

    options: Dict[str, Any] = {k: v for k, v in settings.items() if k != 'backend'}
    backend = get_backend(settings['backend']) if 'backend' in settings else Float
    return Config(**options), backend


__all__ = ["CONFIG_KEYS", "detect_format", "deserialize", "load_config"]
