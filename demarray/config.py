"""
demarray Configuration
======================
Defaults for dimension inference, collapsing and table coercion.
Single source of truth, loaded from defaults.yaml beside this module.

Usage:
    from demarray.config import CONFIG, get
    probs = get('collapse.quantile_probs')
    # → [0.025, 0.25, 0.5, 0.75, 0.975]
"""

from pathlib import Path
from typing import Any, Dict

import yaml


DEFAULTS_PATH = Path(__file__).parent / 'defaults.yaml'


def load(path: Path = DEFAULTS_PATH) -> Dict[str, Any]:
    """Read a config document. Missing or empty files give {}."""
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


CONFIG: Dict[str, Any] = load()


def get(path: str, default=None):
    """
    Get a config value by dot-separated path.

    Usage:
        get('inference.sex_labels')     → ['female', 'male']
        get('align.strict')             → False
    """
    keys = path.split('.')
    val = CONFIG
    for key in keys:
        if isinstance(val, dict) and key in val:
            val = val[key]
        else:
            return default
    return val
