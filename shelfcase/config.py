from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from .paths import user_data_dir


logger = logging.getLogger(__name__)

QUOTE_STYLES = ("braces", "quotes")


@dataclass
class AppConfig:
    # formatting
    auto_capitalize: bool = True
    auto_format: bool = True
    articles: List[str] = field(default_factory=lambda: ["the", "l'"])
    no_capitalization: List[str] = field(default_factory=lambda: [
        "a", "an", "and", "in", "of", "the", "to", "de", "et", "du", "la", "le", "les",
    ])
    name_suffixes: List[str] = field(default_factory=lambda: ["jr.", "jr", "sr.", "sr", "ii", "iii", "iv"])
    surname_prefixes: List[str] = field(default_factory=lambda: [
        "de", "van", "von", "der", "da", "di", "du", "la", "le",
    ])

    # bibtex export
    bibtex_quote_style: str = "braces"  # or "quotes"
    bibtex_expand_macros: bool = False
    bibtex_url_package: bool = True
    bibtex_skip_empty_keys: bool = False

    default_collection: str = "book"
    csl_style: str = "harvard1"  # bundled style name or path to a .csl file
    last_file: str = ""
    log_level: str = "INFO"


def config_path() -> Path:
    d = user_data_dir()
    d.mkdir(parents=True, exist_ok=True)
    return d / "config.json"


def _coerce(default: Any, value: Any) -> Any:
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        raise ValueError(f"expected true or false, got {value!r}")
    if isinstance(default, list):
        if not isinstance(value, list):
            raise ValueError(f"expected a list, got {value!r}")
        return [str(v) for v in value]
    return str(value)


def config_from_dict(data: Dict[str, Any]) -> AppConfig:
    """Unknown keys are ignored; keys of the wrong shape keep their default."""
    cfg = AppConfig()
    for f in fields(AppConfig):
        if f.name not in data:
            continue
        try:
            setattr(cfg, f.name, _coerce(getattr(cfg, f.name), data[f.name]))
        except ValueError as e:
            logger.warning("config key %r ignored: %s", f.name, e)
    if cfg.bibtex_quote_style not in QUOTE_STYLES:
        logger.warning("unknown bibtex quote style %r", cfg.bibtex_quote_style)
        cfg.bibtex_quote_style = "braces"
    return cfg


def load_config(path: Optional[Path] = None) -> AppConfig:
    p = path or config_path()
    if not p.exists():
        return AppConfig()
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("could not read %s, using defaults: %s", p, e)
        return AppConfig()
    if not isinstance(data, dict):
        logger.warning("%s does not hold a JSON object, using defaults", p)
        return AppConfig()
    return config_from_dict(data)


def save_config(cfg: AppConfig, path: Optional[Path] = None) -> None:
    p = path or config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(asdict(cfg), ensure_ascii=False, indent=2), encoding="utf-8")
