"""
Locale catalogs: one `<locale>.json` per locale, keyed by namespace.

    {"DashboardPage": {"SectionTitle1": "Welcome"}}

The source locale receives the extracted text (new values win). Every other
locale receives the same keys with empty strings, keeping whatever a
translator already filled in.
"""
from __future__ import annotations

import json
import logging
import pathlib
from typing import Any, Dict, Mapping, Sequence

from i18n_keygen.utils.fs import atomic_write

logger = logging.getLogger(__name__)

INDENT = 2


def catalog_path(out_dir: pathlib.Path, locale: str) -> pathlib.Path:
    return pathlib.Path(out_dir) / f"{locale}.json"


def read_catalog(path: pathlib.Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8") or "{}")
    except (OSError, ValueError) as e:
        logger.warning("Could not read catalog %s, starting from an empty one: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Catalog %s is not a JSON object, starting from an empty one", path)
        return {}
    return data


def write_catalog(path: pathlib.Path, catalog: Mapping[str, Any]) -> None:
    atomic_write(path, json.dumps(catalog, ensure_ascii=False, indent=INDENT) + "\n")


def merge_namespace(
    catalog: Dict[str, Any],
    namespace: str,
    translations: Mapping[str, str],
    is_source: bool,
) -> Dict[str, Any]:
    """Merge one namespace into `catalog` in place and return it."""
    section = catalog.get(namespace)
    if not isinstance(section, dict):
        section = {}
    if is_source:
        section.update(translations)
    else:
        for key in translations:
            section.setdefault(key, "")
    catalog[namespace] = section
    return catalog


def merge_translations(
    out_dir: pathlib.Path,
    translations: Mapping[str, str],
    namespace: str,
    locales: Sequence[str],
    source_locale: str,
) -> Dict[str, pathlib.Path]:
    """Merge one file's key table into every locale catalog. Returns locale -> path written."""
    written: Dict[str, pathlib.Path] = {}
    if not translations:
        return written
    for locale in locales:
        path = catalog_path(out_dir, locale)
        catalog = merge_namespace(read_catalog(path), namespace, translations, locale == source_locale)
        write_catalog(path, catalog)
        written[locale] = path
    logger.debug("Merged %d keys into namespace %s", len(translations), namespace)
    return written
