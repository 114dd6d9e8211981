"""Placeholder parsing for brace templates.

A template is plain SQL with named placeholders written as ``{name}``.
``{{`` and ``}}`` produce literal braces. Parsing is a single left-to-right
pass that rewrites each placeholder into positional markers and records the
1-based slots each name occupies.
"""

import re
import threading
from collections import OrderedDict
from collections.abc import Mapping
from typing import Final, Optional

from mypy_extensions import mypyc_attr

from sqlbind.config import DEFAULT_PARSE_CACHE_SIZE
from sqlbind.exceptions import MalformedPlaceholderError
from sqlbind.parameters.types import ListParameter, ParameterStyle, ParsedTemplate
from sqlbind.utils.logging import get_logger

__all__ = ("PlaceholderParser", "get_default_parser", "parse_template")

logger = get_logger("sqlbind.parameters.parser")

_BRACE_PATTERN: Final = re.compile(r"[{}]")
_NAME_PATTERN: Final = re.compile(r"[A-Za-z0-9_]*")


@mypyc_attr(allow_interpreted_subclasses=False)
class PlaceholderParser:
    """Parse brace templates into positional SQL.

    Results are kept in a bounded LRU cache keyed by the template text, the
    list declarations and the marker style, since the same query text is
    usually compiled many times.

    Args:
        cache_size: Maximum number of cached results. 0 disables caching.
    """

    __slots__ = ("_cache", "_cache_size", "_lock")

    def __init__(self, cache_size: int = DEFAULT_PARSE_CACHE_SIZE) -> None:
        self._cache: OrderedDict[tuple[object, ...], ParsedTemplate] = OrderedDict()
        self._cache_size = cache_size
        self._lock = threading.Lock()

    def parse(
        self,
        template: str,
        list_parameters: "Optional[Mapping[str, ListParameter]]" = None,
        style: ParameterStyle = ParameterStyle.QMARK,
    ) -> ParsedTemplate:
        """Rewrite ``template`` into positional form.

        Args:
            template: SQL text containing ``{name}`` placeholders.
            list_parameters: Declared list expansions keyed by placeholder name.
            style: Marker style of the compiled text.

        Raises:
            MalformedPlaceholderError: On an unterminated, empty or invalid placeholder.

        Returns:
            The compiled text and positional map.
        """
        declarations = list_parameters or {}
        if self._cache_size <= 0:
            return self._parse(template, declarations, style)

        key = (template, tuple(sorted(declarations.items(), key=lambda item: item[0])), style)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                return cached

        parsed = self._parse(template, declarations, style)
        with self._lock:
            self._cache[key] = parsed
            if len(self._cache) > self._cache_size:
                self._cache.popitem(last=False)
            cache_len = len(self._cache)
        logger.debug(
            "Parsed template into %d positional slots",
            parsed.parameter_count,
            extra={
                "extra_fields": {"sql": parsed.sql, "parameter_count": parsed.parameter_count, "cache_size": cache_len}
            },
        )
        return parsed

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    @property
    def cache_len(self) -> int:
        return len(self._cache)

    @staticmethod
    def _parse(template: str, declarations: "Mapping[str, ListParameter]", style: ParameterStyle) -> ParsedTemplate:
        parts: list[str] = []
        positions: dict[str, list[int]] = {}
        next_slot = 1
        escape_percent = style.escapes_percent
        length = len(template)
        index = 0

        while index < length:
            match = _BRACE_PATTERN.search(template, index)
            end = match.start() if match else length
            if end > index:
                literal = template[index:end]
                parts.append(literal.replace("%", "%%") if escape_percent else literal)
            if match is None:
                break

            brace = template[end]
            if end + 1 < length and template[end + 1] == brace:
                parts.append(brace)
                index = end + 2
                continue
            if brace == "}":
                parts.append(brace)
                index = end + 1
                continue

            name_match = _NAME_PATTERN.match(template, end + 1)
            name_end = name_match.end() if name_match else end + 1
            if name_end >= length:
                msg = "Unterminated placeholder"
                raise MalformedPlaceholderError(msg, template, end)
            if template[name_end] != "}":
                msg = f"Invalid character {template[name_end]!r} in placeholder name"
                raise MalformedPlaceholderError(msg, template, name_end)
            name = template[end + 1 : name_end]
            if not name:
                msg = "Empty placeholder name"
                raise MalformedPlaceholderError(msg, template, end)

            slots = positions.setdefault(name, [])
            declaration = declarations.get(name)
            if declaration is None:
                parts.append(style.marker(next_slot))
                slots.append(next_slot)
                next_slot += 1
            else:
                parts.append(declaration.render(style, next_slot))
                slot_count = declaration.slot_count
                slots.extend(range(next_slot, next_slot + slot_count))
                next_slot += slot_count
            index = name_end + 1

        return ParsedTemplate(
            "".join(parts), {name: tuple(slots) for name, slots in positions.items()}, next_slot - 1
        )


_default_parser = PlaceholderParser()


def get_default_parser() -> PlaceholderParser:
    """Return the process wide parser used when no parser is supplied."""
    return _default_parser


def parse_template(
    template: str,
    list_parameters: "Optional[Mapping[str, ListParameter]]" = None,
    style: ParameterStyle = ParameterStyle.QMARK,
) -> ParsedTemplate:
    """Parse ``template`` with the default parser."""
    return _default_parser.parse(template, list_parameters, style)
