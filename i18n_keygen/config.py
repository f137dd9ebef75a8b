"""
Rule configuration for the key generator.

The defaults below describe which component props and text children are
translatable, which attribute names are never touched, and how lowercase tag
names map to key categories. A user document (i18n-config.json) is merged on
top of them; user values win on key collision.

Loading is never fatal: a missing file means defaults, a malformed file means
defaults plus a warning.
"""
from __future__ import annotations

import copy
import dataclasses
import json
import logging
import pathlib
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Text"
DEFAULT_CONFIG_NAME = "i18n-config.json"

DEFAULT_DOCUMENT: Dict[str, Any] = {
    "components": {
        "Combobox": {"props": ["placeholder", "searchPlaceholder", "emptyText"]},
        "ClipboardButton": {"props": ["tooltipCopy", "tooltipCopied"]},
        "TooltipContent": {"textChild": True},
        "InstallButton": {"textChild": True},
    },
    "ignoreProps": ["className", "variant", "id", "key", "style"],
    "nodeTypeMap": {
        "h1": "Title",
        "h2": "Title",
        "h3": "Title",
        "h4": "Title",
        "h5": "Title",
        "h6": "Title",
        "p": "Subtitle",
        "div": "Text",
        "span": "Text",
        "Fragment": "Text",
    },
    "runtime": {
        "lookup": "t",
        "clientModule": "next-intl",
        "serverModule": "next-intl/server",
        "clientAccessor": "useTranslations",
        "serverAccessor": "getTranslations",
    },
    "locales": ["en", "zh"],
    "sourceLocale": "en",
    "include": ["**/*.tsx"],
    "exclude": [],
    "logLevel": None,
}


@dataclasses.dataclass(frozen=True)
class ComponentRule:
    """Translatable props of one component.

    `text_child` records that the component's children were seen translated.
    `infer-config` writes it and loading validates it, but no rewrite rule reads
    it: text children of every named element are extracted regardless.
    """
    props: FrozenSet[str] = frozenset()
    text_child: bool = False


@dataclasses.dataclass(frozen=True)
class RuntimeNames:
    lookup: str = "t"
    client_module: str = "next-intl"
    server_module: str = "next-intl/server"
    client_accessor: str = "useTranslations"
    server_accessor: str = "getTranslations"

    @property
    def modules(self) -> Tuple[str, str]:
        return (self.client_module, self.server_module)

    @property
    def accessors(self) -> Tuple[str, str]:
        return (self.client_accessor, self.server_accessor)


@dataclasses.dataclass(frozen=True)
class RuleConfig:
    components: Mapping[str, ComponentRule]
    ignore_props: FrozenSet[str]
    node_type_map: Mapping[str, str]
    runtime: RuntimeNames = RuntimeNames()

    def component(self, name: Optional[str]) -> Optional[ComponentRule]:
        if not name:
            return None
        return self.components.get(name)

    def is_translatable_prop(self, component: Optional[str], prop: str) -> bool:
        rule = self.component(component)
        return bool(rule and prop in rule.props)


@dataclasses.dataclass(frozen=True)
class KeygenConfig:
    """Everything a batch run needs: the rule set plus file/locale settings."""
    rules: RuleConfig
    locales: Tuple[str, ...] = ("en", "zh")
    source_locale: str = "en"
    include: Tuple[str, ...] = ("**/*.tsx",)
    exclude: Tuple[str, ...] = ()
    log_level: Optional[str] = None


def _str_list(value: Any, field: str) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"'{field}' must be a list of strings")
    return list(value)


def _str_map(value: Any, field: str) -> Dict[str, str]:
    if not isinstance(value, dict) or not all(isinstance(v, str) for v in value.values()):
        raise ValueError(f"'{field}' must be an object of strings")
    return dict(value)


def _name(doc: Mapping[str, Any], key: str, default: str) -> str:
    value = doc.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"'runtime.{key}' must be a non-empty string")
    return value


def _normalize_user_document(doc: Any) -> Dict[str, Any]:
    """Accept the flat shape and the legacy {"processing": {...}, "nodeTypeMap": {...}} shape."""
    if not isinstance(doc, dict):
        raise ValueError("config root must be a JSON object")
    out = dict(doc)
    processing = out.pop("processing", None)
    if processing is not None:
        if not isinstance(processing, dict):
            raise ValueError("'processing' must be a JSON object")
        for k in ("components", "ignoreProps"):
            if k in processing and k not in out:
                out[k] = processing[k]
    return out


def merge_documents(base: Mapping[str, Any], user: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge a user document over the defaults.

    `components`, `nodeTypeMap` and `runtime` merge by key; every other entry
    (including `ignoreProps`) is replaced wholesale by the user value.
    """
    merged = copy.deepcopy(dict(base))
    user = _normalize_user_document(user)
    for key, value in user.items():
        if key in ("components", "nodeTypeMap", "runtime"):
            if not isinstance(value, dict):
                raise ValueError(f"'{key}' must be a JSON object")
            merged[key] = {**merged.get(key, {}), **value}
        else:
            merged[key] = value
    return merged


def rules_from_document(doc: Mapping[str, Any]) -> RuleConfig:
    components: Dict[str, ComponentRule] = {}
    raw_components = doc.get("components") or {}
    if not isinstance(raw_components, dict):
        raise ValueError("'components' must be a JSON object")
    for name, entry in raw_components.items():
        if not isinstance(entry, dict):
            raise ValueError(f"component rule for {name!r} must be a JSON object")
        props = _str_list(entry.get("props", []), f"components.{name}.props")
        text_child = entry.get("textChild", False)
        if not isinstance(text_child, bool):
            raise ValueError(f"'components.{name}.textChild' must be true or false")
        components[name] = ComponentRule(props=frozenset(props), text_child=text_child)

    runtime_doc = doc.get("runtime") or {}
    runtime = RuntimeNames(
        lookup=_name(runtime_doc, "lookup", RuntimeNames.lookup),
        client_module=_name(runtime_doc, "clientModule", RuntimeNames.client_module),
        server_module=_name(runtime_doc, "serverModule", RuntimeNames.server_module),
        client_accessor=_name(runtime_doc, "clientAccessor", RuntimeNames.client_accessor),
        server_accessor=_name(runtime_doc, "serverAccessor", RuntimeNames.server_accessor),
    )
    return RuleConfig(
        components=components,
        ignore_props=frozenset(_str_list(doc.get("ignoreProps", []), "ignoreProps")),
        node_type_map=_str_map(doc.get("nodeTypeMap", {}), "nodeTypeMap"),
        runtime=runtime,
    )


def config_from_document(doc: Mapping[str, Any]) -> KeygenConfig:
    locales = tuple(_str_list(doc.get("locales", []), "locales")) or ("en",)
    source_locale = doc.get("sourceLocale") or locales[0]
    if source_locale not in locales:
        locales = (source_locale,) + locales
    return KeygenConfig(
        rules=rules_from_document(doc),
        locales=locales,
        source_locale=source_locale,
        include=tuple(_str_list(doc.get("include", []), "include")) or ("**/*.tsx",),
        exclude=tuple(_str_list(doc.get("exclude", []), "exclude")),
        log_level=doc.get("logLevel"),
    )


def default_config() -> KeygenConfig:
    return config_from_document(DEFAULT_DOCUMENT)


def default_rules() -> RuleConfig:
    return default_config().rules


def load_config(path: Optional[Union[str, pathlib.Path]] = None) -> KeygenConfig:
    """Load i18n-config.json merged with defaults. Never raises on a bad file."""
    if path is None:
        logger.debug("No config path given, using defaults")
        return default_config()
    cfg_path = pathlib.Path(path)
    if not cfg_path.exists():
        logger.debug("Config %s not found, using defaults", cfg_path)
        return default_config()
    try:
        raw = cfg_path.read_text(encoding="utf-8")
        user = json.loads(raw or "{}")
        return config_from_document(merge_documents(DEFAULT_DOCUMENT, user))
    except (OSError, ValueError) as e:
        # json.JSONDecodeError is a ValueError
        logger.warning("Failed to load config from %s, using default config: %s", cfg_path, e)
        return default_config()


def load_rules(path: Optional[Union[str, pathlib.Path]] = None) -> RuleConfig:
    return load_config(path).rules
