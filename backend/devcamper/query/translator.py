"""
DevCamper Backend: Query Filter Translator
============================================

What:  Turns raw query parameters into a Query Descriptor (filter, sort,
       projection, page, limit) for one resource.
How:   Reserved keys (select, sort, page, limit) are peeled off first; every
       other key is parsed with the bracket operator grammar and checked
       against the resource allow-list.
Who:   The advanced-results dependency, once per list request.

Grammar:
    ?housing=true                 → {"housing": True}
    ?averageCost[lte]=10000       → {"averageCost": {"lte": 10000}}
    ?averageCost[gte]=5&averageCost[lte]=9
                                  → {"averageCost": {"gte": 5, "lte": 9}}
    ?minimumSkill[in]=beginner,advanced
                                  → {"minimumSkill": {"in": ["beginner", "advanced"]}}
    ?state=MA&state=CA            → {"state": {"in": ["MA", "CA"]}}
    ?title[regex]=x               → {"title": "x"}   (unknown operator: literal equals)
    ?select=name,careers          → select_fields {"name", "careers"}
    ?sort=-averageCost,name       → [("averageCost", desc), ("name", asc)]

Failure model:
    translate_query never raises. Keys outside the allow-list, malformed
    keys, unparsable page/limit values: each is dropped or defaulted on its
    own while the rest of the query still applies. The query string is
    untrusted input, so a bad parameter costs the client that parameter only.
"""

import logging
import re
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from devcamper.config import settings
from devcamper.resources import Resource

logger = logging.getLogger(__name__)

RawValue = Union[str, Sequence[str]]

RESERVED_KEYS = frozenset({"select", "sort", "page", "limit"})

# Operators with a single operand; `in` takes a list
COMPARISON_OPERATORS = frozenset({"gt", "gte", "lt", "lte"})
LIST_OPERATORS = frozenset({"in"})

_KEY_PATTERN = re.compile(r"^(?P<field>[^\[\]]+)\[(?P<operator>[^\[\]]*)\]$")
_INT_PATTERN = re.compile(r"^-?(0|[1-9]\d*)$")
_FLOAT_PATTERN = re.compile(r"^-?(0|[1-9]\d*)\.\d+$")

# Largest OFFSET a 64-bit SQL integer can hold
MAX_SKIP = 2**63 - 1


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


DEFAULT_SORT: Tuple[Tuple[str, SortDirection], ...] = (("createdAt", SortDirection.DESC),)


class QueryDescriptor(BaseModel):
    """
    Structured, allow-listed form of a list request's query string.

    filter:         field → operand (equals) or {operator: operand}
    sort_keys:      ordered (field, direction) pairs
    select_fields:  fields to project; empty means every allow-listed field
    page / limit:   1-based page number and page size (limit already capped)
    """

    model_config = ConfigDict(frozen=True)

    filter: Dict[str, Any] = Field(default_factory=dict)
    sort_keys: Tuple[Tuple[str, SortDirection], ...] = DEFAULT_SORT
    select_fields: FrozenSet[str] = frozenset()
    page: int = 1
    limit: int = 25


# ══════════════════════════════════════════════════════════════════════════
# Value helpers
# ══════════════════════════════════════════════════════════════════════════

class IntOperand(int):
    """An int that remembers the query text it was parsed from."""

    def __new__(cls, raw: str):
        number = super().__new__(cls, raw)
        number.raw = raw
        return number


class FloatOperand(float):
    """A float that remembers the query text it was parsed from ("1.50", not "1.5")."""

    def __new__(cls, raw: str):
        number = super().__new__(cls, raw)
        number.raw = raw
        return number


def coerce_operand(raw: str) -> Any:
    """
    Numeric-looking strings become int/float, "true"/"false" become bool.

    Zero-padded numbers ("02118") stay strings so postal codes keep their digits.
    Numbers keep their original text on `.raw` for comparison with text columns.
    """
    if raw == "true":
        return True
    if raw == "false":
        return False
    if _INT_PATTERN.match(raw):
        return IntOperand(raw)
    if _FLOAT_PATTERN.match(raw):
        return FloatOperand(raw)
    return raw


def _as_list(raw: Optional[RawValue]) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    return [str(item) for item in raw]


def _split_csv(raw: Optional[RawValue]) -> List[str]:
    items = []
    for value in _as_list(raw):
        items.extend(part.strip() for part in value.split(","))
    return [item for item in items if item]


def _positive_int(raw: Optional[RawValue], default: int) -> int:
    values = _as_list(raw)
    if not values:
        return default
    try:
        number = int(values[-1])
    except ValueError:
        return default
    return number if number >= 1 else default


def _split_key(key: str) -> Tuple[str, Optional[str]]:
    match = _KEY_PATTERN.match(key)
    if match is None:
        return key, None
    return match.group("field"), match.group("operator")


# ══════════════════════════════════════════════════════════════════════════
# Section parsers
# ══════════════════════════════════════════════════════════════════════════

def _parse_filter(params: Mapping[str, RawValue], resource: Resource) -> Dict[str, Any]:
    conditions: Dict[str, Dict[str, Any]] = {}

    for key, raw in params.items():
        if key in RESERVED_KEYS:
            continue

        field, operator = _split_key(key)
        if not resource.is_queryable(field):
            logger.debug("Dropping filter on %s.%s (not allow-listed)", resource.name, field)
            continue

        values = _as_list(raw)
        if not values:
            continue

        if operator is None:
            if len(values) > 1:
                conditions.setdefault(field, {})["in"] = [coerce_operand(v) for v in values]
            else:
                conditions.setdefault(field, {})["eq"] = coerce_operand(values[0])
        elif operator in LIST_OPERATORS:
            items = _split_csv(values)
            if items:
                conditions.setdefault(field, {})["in"] = [coerce_operand(i) for i in items]
        elif operator in COMPARISON_OPERATORS:
            conditions.setdefault(field, {})[operator] = coerce_operand(values[-1])
        else:
            # Unknown operator: equality on the raw string, no coercion
            conditions.setdefault(field, {})["eq"] = values[-1]

    # A lone equality is stored as the bare operand
    return {
        field: ops["eq"] if set(ops) == {"eq"} else ops
        for field, ops in conditions.items()
    }


def _parse_select(raw: Optional[RawValue], resource: Resource) -> FrozenSet[str]:
    return frozenset(name for name in _split_csv(raw) if resource.is_selectable(name))


def _parse_sort(
    raw: Optional[RawValue], resource: Resource
) -> Tuple[Tuple[str, SortDirection], ...]:
    keys: List[Tuple[str, SortDirection]] = []
    seen = set()
    for token in _split_csv(raw):
        direction = SortDirection.DESC if token.startswith("-") else SortDirection.ASC
        name = token[1:] if token.startswith("-") else token
        if name in seen or not resource.is_queryable(name):
            continue
        seen.add(name)
        keys.append((name, direction))
    return tuple(keys) or DEFAULT_SORT


# ══════════════════════════════════════════════════════════════════════════
# Public API
# ══════════════════════════════════════════════════════════════════════════

def translate_query(
    params: Mapping[str, RawValue],
    resource: Resource,
    default_limit: Optional[int] = None,
    max_limit: Optional[int] = None,
) -> QueryDescriptor:
    """
    Translate raw query parameters into a QueryDescriptor for `resource`.

    Args:
        params:         key → value, or key → list of values for repeated keys
        resource:       allow-list to validate field names against
        default_limit:  page size when `limit` is absent/invalid (settings default)
        max_limit:      cap applied to `limit` (settings default)

    Returns:
        QueryDescriptor. Translating the same mapping twice yields equal descriptors.
    """
    default_limit = default_limit or settings.default_page_limit
    max_limit = max_limit or settings.max_page_limit

    limit = min(_positive_int(params.get("limit"), default_limit), max_limit)
    # Past this page the skip no longer fits an SQL OFFSET; the page is empty either way
    page = min(_positive_int(params.get("page"), 1), MAX_SKIP // limit + 1)

    return QueryDescriptor(
        filter=_parse_filter(params, resource),
        sort_keys=_parse_sort(params.get("sort"), resource),
        select_fields=_parse_select(params.get("select"), resource),
        page=page,
        limit=limit,
    )


def query_params_to_mapping(query_params) -> Dict[str, RawValue]:
    """
    Flatten Starlette QueryParams into key → value, or key → list for repeated keys.
    """
    mapping: Dict[str, RawValue] = {}
    for key, value in query_params.multi_items():
        if key not in mapping:
            mapping[key] = value
        elif isinstance(mapping[key], list):
            mapping[key].append(value)
        else:
            mapping[key] = [mapping[key], value]
    return mapping
