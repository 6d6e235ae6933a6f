"""
Steps for reducing the load cost of webpages by minifying resources.
"""
from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import Path

from .dependencies import PipDependency
from .simple import TextTransformStep


_COMMENT_RE = re.compile(r'<!--(?!\[if|<!\[endif).*?-->', re.DOTALL)


class HTMLMinifierStep(TextTransformStep):
    """
    A simple but fast HTML minification Step. With @collapse_whitespace off,
    minify-html is skipped since it always reduces whitespace, and only
    comments are removed (if @remove_comments). Conditional comments are kept.
    """
    minify_css = False
    minify_js = False

    @classmethod
    def get_dependencies(cls):
        return {
            PipDependency('minify-html', check_name='minify_html'),
        }

    def __init__(self, collapse_whitespace: bool = True, remove_comments: bool = True):
        self.collapse_whitespace = collapse_whitespace
        self.remove_comments = remove_comments

    def transform(self, path: Path, data: str):
        if not self.collapse_whitespace:
            return _COMMENT_RE.sub('', data) if self.remove_comments else data
        from minify_html import minify
        return minify(
            data,
            minify_css=self.minify_css,
            minify_js=self.minify_js,
            keep_comments=not self.remove_comments,
        )


class CSSMinifierStep(TextTransformStep):
    """
    A powerful CSS post-processing Step, using lightningcss to add vendor
    prefixes for the browsers supported and to merge, dedupe, and minify
    rules.
    """
    @classmethod
    def get_dependencies(cls):
        return {
            PipDependency('lightningcss')
        }

    def __init__(self,
                 error_recovery: bool = False,
                 parser_flags: dict[str, bool] | None = None,
                 unused_symbols: set[str] | None = None,
                 browsers_list: Sequence[str] | None = ('defaults',),
                 minify: bool = True):

        self.error_recovery = error_recovery
        self.parser_flags = parser_flags or {}
        self.unused_symbols = unused_symbols
        self.browsers_list = list(browsers_list) if browsers_list else None
        self.minify = minify

    def transform(self, path: Path, data: str):
        import lightningcss
        return lightningcss.process_stylesheet(
            data,
            filename=str(path),
            error_recovery=self.error_recovery,
            parser_flags=lightningcss.calc_parser_flags(**self.parser_flags),
            unused_symbols=self.unused_symbols,
            browsers_list=self.browsers_list,
            minify=self.minify
        )


class ScriptMinifierStep(TextTransformStep):
    """
    JavaScript minification using tdewolff-minify, removing comments and
    insignificant whitespace. With @rename_locals, variables local to a
    function or block get shorter names; top-level names are left alone.
    """
    mimetype = 'application/javascript'

    @classmethod
    def get_dependencies(cls):
        return {
            PipDependency('tdewolff-minify', check_name='minify'),
        }

    def __init__(self, rename_locals: bool = True):
        self.rename_locals = rename_locals

    def transform(self, path: Path, data: str):
        import minify
        minify.config({'js-keep-var-names': not self.rename_locals})
        return minify.string(self.mimetype, data)
