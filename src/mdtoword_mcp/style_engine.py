"""
Style resolution for mdtoword-mcp.

Provides the StyleEngine class, which owns the built-in default style
configuration and turns optional user/template overrides into the effective
style configuration used for a single conversion.

Key behaviors:
- Never raises on malformed user input: invalid colors and out-of-range sizes
  are replaced with the built-in default's value and reported as warnings
- Deep merge never mutates its inputs
- Effective configs are cached by serialized input in a bounded LRU cache
  (thread-safe; concurrent recomputation of the same key is harmless)
"""

import copy
import json
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .config import settings
from .default_styles import DEFAULT_COLOR, DEFAULT_SIZE, create_default_style_config
from .logging_config import get_logger
from .style_models import MAX_SIZE, MIN_SIZE, is_valid_color, is_valid_size

logger = get_logger(__name__)


@dataclass
class ValidationResult:
    """Outcome of validate_style_config. Errors make a config invalid; warnings do not."""
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class StyleContext:
    """Where an element sits in the document, used to pick its style record."""
    element_type: str  # paragraph|heading|list|table|code|blockquote|inline|image
    level: Optional[int] = None
    in_list: bool = False
    in_table: bool = False
    ordered: bool = False


class StyleCache:
    """
    Bounded LRU cache of effective style configurations.

    Keys are serialized user configs. Values are stored as private deep
    copies so callers can never mutate a cached entry.
    """

    def __init__(self, max_entries: int = 128):
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, dict]" = OrderedDict()
        self._lock = threading.Lock()

        # Metrics
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[dict]:
        with self._lock:
            value = self._entries.get(key)
            if value is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return copy.deepcopy(value)

    def set(self, key: str, value: dict) -> None:
        with self._lock:
            self._entries[key] = copy.deepcopy(value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted_key, _ = self._entries.popitem(last=False)
                logger.debug("style_cache_evicted", key_length=len(evicted_key))

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def __len__(self) -> int:
        return len(self._entries)


class StyleEngine:
    """
    Style engine: validation, merging, sanitizing and context lookup.

    The template loader is optional. When present, its default template is the
    base every user config is merged over; otherwise the built-in default is.
    """

    def __init__(self, template_loader=None, cache: StyleCache = None):
        self.template_loader = template_loader
        self.cache = cache if cache is not None else StyleCache(settings.STYLE_CACHE_MAX_ENTRIES)
        self._default_config = create_default_style_config()

    def get_default_config(self) -> dict:
        """Return a deep copy of the built-in default configuration."""
        return copy.deepcopy(self._default_config)

    def _base_config(self) -> Optional[dict]:
        if self.template_loader is None:
            return None
        return self.template_loader.get_default_style_config()

    def get_effective_style_config(self, user_config: Optional[dict] = None) -> dict:
        """
        Resolve the effective style configuration for one conversion.

        Args:
            user_config: Optional style overrides (template config and/or user config)

        Returns:
            Fully merged, sanitized configuration. Callers own the returned dict.
        """
        if not user_config:
            template_default = self._base_config()
            if template_default:
                logger.debug("style_config_resolved", source="default_template")
                return self.clean_invalid_values(template_default)
            logger.debug("style_config_resolved", source="builtin_default")
            return self.get_default_config()

        cache_key = json.dumps(user_config, sort_keys=True, ensure_ascii=False, default=str)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        base = self._base_config() or self._default_config
        merged = self.merge_style_configs(base, user_config)
        cleaned = self.clean_invalid_values(merged)
        self.cache.set(cache_key, cleaned)
        logger.debug("style_config_resolved", source="merged", cache_size=len(self.cache))
        return cleaned

    def validate_style_config(self, config: dict) -> ValidationResult:
        """
        Check color format and size range in the document, heading and paragraph groups.

        Never raises. Bad colors are errors, out-of-range sizes are warnings.
        """
        errors: List[str] = []
        warnings: List[str] = []

        document = config.get("document") or {}
        if document.get("defaultSize") is not None and not is_valid_size(document["defaultSize"]):
            warnings.append(f"document.defaultSize should be between {MIN_SIZE} and {MAX_SIZE} half-points")
        if document.get("defaultColor") is not None and not is_valid_color(document["defaultColor"]):
            errors.append("document.defaultColor must be a 6-digit hex color")

        for group in ("headingStyles", "paragraphStyles"):
            for key, style in (config.get(group) or {}).items():
                if not isinstance(style, dict):
                    continue
                if style.get("size") is not None and not is_valid_size(style["size"]):
                    warnings.append(f"{group}.{key}.size should be between {MIN_SIZE} and {MAX_SIZE} half-points")
                if style.get("color") is not None and not is_valid_color(style["color"]):
                    errors.append(f"{group}.{key}.color must be a 6-digit hex color")

        return ValidationResult(valid=not errors, errors=errors, warnings=warnings)

    def merge_style_configs(
        self,
        base: dict,
        override: dict,
        deep: bool = True,
        override_existing: bool = True
    ) -> dict:
        """
        Merge ``override`` into ``base`` without mutating either.

        Args:
            base: Base configuration
            override: Configuration whose keys take precedence
            deep: Recurse into nested dicts (default). Shallow mode is a flat spread.
            override_existing: When False, keys already in base are kept

        Returns:
            New merged configuration
        """
        if not deep:
            if override_existing:
                return {**copy.deepcopy(base), **copy.deepcopy(override)}
            return {**copy.deepcopy(override), **copy.deepcopy(base)}

        return _deep_merge(copy.deepcopy(base), override, override_existing)

    def clean_invalid_values(self, config: dict) -> dict:
        """
        Replace malformed colors and out-of-range sizes with the built-in defaults.

        Covers the document, heading and paragraph style groups. Returns a new
        dict; the input is not modified.
        """
        cleaned = copy.deepcopy(config)
        defaults = self._default_config

        document = cleaned.get("document")
        if isinstance(document, dict):
            default_document = defaults["document"]
            color = document.get("defaultColor")
            if color is not None and not is_valid_color(color):
                logger.warning("style_config_cleaned", field="document.defaultColor", value=str(color))
                document["defaultColor"] = default_document.get("defaultColor", DEFAULT_COLOR)
            size = document.get("defaultSize")
            if size is not None and not is_valid_size(size):
                logger.warning("style_config_cleaned", field="document.defaultSize", value=str(size))
                document["defaultSize"] = default_document.get("defaultSize", DEFAULT_SIZE)

        for group in ("headingStyles", "paragraphStyles"):
            styles = cleaned.get(group)
            if not isinstance(styles, dict):
                continue
            default_group = defaults.get(group, {})
            for key, style in styles.items():
                if not isinstance(style, dict):
                    continue
                default_style = default_group.get(key) or {}
                color = style.get("color")
                if color is not None and not is_valid_color(color):
                    logger.warning("style_config_cleaned", field=f"{group}.{key}.color", value=str(color))
                    style["color"] = default_style.get("color", DEFAULT_COLOR)
                size = style.get("size")
                if size is not None and not is_valid_size(size):
                    logger.warning("style_config_cleaned", field=f"{group}.{key}.size", value=str(size))
                    style["size"] = default_style.get("size", DEFAULT_SIZE)

        return cleaned

    def get_style_for_context(self, context: StyleContext, config: dict) -> Optional[dict]:
        """
        Return the style record that applies to an element.

        Heading levels without their own record fall back to h1. List items
        outside a list use the normal paragraph style.
        """
        paragraph_styles = config.get("paragraphStyles") or {}
        element_type = context.element_type

        if element_type == "heading":
            headings = config.get("headingStyles") or {}
            return headings.get(f"h{context.level or 1}") or headings.get("h1")
        if element_type == "list":
            if not context.in_list:
                return paragraph_styles.get("normal")
            lists = config.get("listStyles") or {}
            if context.ordered:
                return lists.get("ordered") or lists.get("bullet")
            return lists.get("bullet") or lists.get("ordered")
        if element_type == "table":
            return (config.get("tableStyles") or {}).get("default")
        if element_type == "code":
            return config.get("codeBlockStyle")
        if element_type == "blockquote":
            return config.get("blockquoteStyle")
        if element_type == "inline":
            return config.get("inlineCodeStyle")
        if element_type == "image":
            return (config.get("imageStyles") or {}).get("default")
        return paragraph_styles.get("normal")

    def clear_cache(self) -> int:
        """Drop all cached effective configs. Returns the number of entries removed."""
        return self.cache.clear()


def _deep_merge(target: dict, source: dict, override: bool) -> dict:
    result = dict(target)
    for key, value in source.items():
        if isinstance(value, dict):
            existing = result.get(key)
            result[key] = _deep_merge(existing if isinstance(existing, dict) else {}, value, override)
        elif override or key not in result:
            result[key] = copy.deepcopy(value)
    return result


def _create_style_engine() -> StyleEngine:
    from .templates import preset_template_loader
    return StyleEngine(template_loader=preset_template_loader)


# Module-level singleton
style_engine = _create_style_engine()
