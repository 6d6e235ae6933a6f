"""
Regrouping and reordering of top-level `@media` blocks.
"""
from __future__ import annotations

import re
import typing as t

import tinycss2
import tinycss2.ast as c2ast


_WIDTH_RE = re.compile(r'\(\s*(min|max)-width\s*:\s*(-?[\d.]+)\s*(px|em|rem)?\s*\)')
_UNIT_FACTORS = {None: 1.0, 'px': 1.0, 'em': 16.0, 'rem': 16.0}

SortKey = t.Callable[[str], tuple[int, float]]


def normalize_query(prelude: list[c2ast.Node]):
    """
    Serialize a media query prelude with whitespace runs collapsed, so that
    identical queries written differently group together.
    """
    return ' '.join(tinycss2.serialize(prelude).split())


def query_width(query: str, kind: str):
    """
    Return the first `min-width` or `max-width` (per @kind) in @query,
    converted to pixels, or None.
    """
    for match in _WIDTH_RE.finditer(query.lower()):
        if match.group(1) == kind:
            return float(match.group(2)) * _UNIT_FACTORS[match.group(3)]
    return None


def desktop_first(query: str):
    """
    `max-width` queries widest first, then `min-width` queries narrowest
    first, then everything else.
    """
    if (max_width := query_width(query, 'max')) is not None:
        return (0, -max_width)
    if (min_width := query_width(query, 'min')) is not None:
        return (1, min_width)
    return (2, 0.0)


def mobile_first(query: str):
    """
    `min-width` queries narrowest first, then `max-width` queries widest
    first, then everything else.
    """
    if (min_width := query_width(query, 'min')) is not None:
        return (0, min_width)
    if (max_width := query_width(query, 'max')) is not None:
        return (1, -max_width)
    return (2, 0.0)


SORTS: dict[str, SortKey] = {
    'desktop-first': desktop_first,
    'mobile-first': mobile_first,
}


def join_lines(nodes: t.Iterable[c2ast.Node]):
    for node in nodes:
        yield node
        yield c2ast.WhitespaceToken(node.source_line, node.source_column, '\n')


def sort_media_queries(code: str, strategy: str = 'desktop-first'):
    """
    Merge top-level `@media` blocks with identical queries and move them,
    ordered by @strategy, after all other rules. Other rules keep their order.
    """
    sort_key = SORTS[strategy]
    others: list[c2ast.Node] = []
    groups: dict[str, c2ast.AtRule] = {}

    for node in tinycss2.parse_stylesheet(code, skip_comments=True, skip_whitespace=True):
        if isinstance(node, c2ast.ParseError):
            raise ValueError(f'{node.source_line}:{node.source_column}: {node.message}')
        if isinstance(node, c2ast.AtRule) and node.lower_at_keyword == 'media' and node.content is not None:
            query = normalize_query(node.prelude)
            if query in groups:
                groups[query].content.append(
                    c2ast.WhitespaceToken(node.source_line, node.source_column, '\n')
                )
                groups[query].content.extend(node.content)
            else:
                groups[query] = node
        else:
            others.append(node)

    ordered = sorted(groups, key=sort_key)
    return tinycss2.serialize(join_lines([*others, *(groups[q] for q in ordered)]))
