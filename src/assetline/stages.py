"""
Stages, and the default Stage for each of the seven asset classes.
"""
from __future__ import annotations

from .core import Rule
from .css import MediaQuerySortStep, SassCompileStep
from .fonts import WebFontStep
from .images import ImageOptimizeStep
from .jinja import TemplateRenderStep
from .minify import CSSMinifierStep, HTMLMinifierStep, ScriptMinifierStep
from .paths import AssetClassConfig, DirPathCalc, GlobMatcher, asset_paths
from .pretty_utils import print_with_style
from .scripts import ScriptTranspileStep
from .settings import BuildSettings
from .simple import ChainStep, DirectCopyStep, TextTransformStep


class Stage:
    """
    The transform pipeline for one asset class: the files under its source
    glob, the Rules deciding what each file becomes, and whether up-to-date
    outputs are skipped.
    """
    def __init__(self,
                 config: AssetClassConfig,
                 label: str,
                 rules: list[Rule],
                 check_freshness: bool = False):
        self.config = config
        self.label = label
        self.rules = rules
        self.check_freshness = check_freshness
        self.matcher = GlobMatcher(config.source_glob, config.source_dir)
        self.watch_matcher = GlobMatcher(config.watch_glob, config.source_dir)

    @property
    def name(self):
        return self.config.name

    def __repr__(self):
        return f'Stage({self.name!r}, {self.config.source_pattern!r} ⇒ {self.config.destination})'


def _everything(config: AssetClassConfig):
    return GlobMatcher('**/*', config.source_dir)


def markup_stage(config: AssetClassConfig, settings: BuildSettings):
    """
    Render templates, then collapse whitespace and strip comments.
    """
    chain = ChainStep([
        TemplateRenderStep(settings.template_search_paths),
        HTMLMinifierStep(settings.html.collapse_whitespace, settings.html.remove_comments),
    ])
    return Stage(config, 'HTML', [
        Rule(_everything(config), DirPathCalc.for_config(config, '.html'), chain),
    ])


def style_stage(config: AssetClassConfig, settings: BuildSettings):
    """
    Compile SCSS/Sass, sort media queries, then prefix and minify. Partials
    (names starting with an underscore) are only ever imported.
    """
    chain = ChainStep([
        SassCompileStep(include_paths=[config.source_dir]),
        MediaQuerySortStep(settings.css.media_query_sort),
        CSSMinifierStep(browsers_list=settings.css.browsers, minify=settings.css.minify),
    ])
    return Stage(config, 'CSS', [
        Rule(GlobMatcher('**/_*', config.source_dir), None),
        Rule(_everything(config), DirPathCalc.for_config(config, '.css'), chain),
    ])


def script_stage(config: AssetClassConfig, settings: BuildSettings):
    """
    Transpile with esbuild where it is installed, then minify and rename
    local variables.
    """
    steps: list[TextTransformStep] = []
    if ScriptTranspileStep.is_available():
        steps.append(ScriptTranspileStep(settings.js.target))
    else:
        print_with_style(
            'esbuild was not found; scripts will be minified without transpiling',
            file='stderr',
            style='yellow'
        )
    if settings.js.minify:
        steps.append(ScriptMinifierStep())
    return Stage(config, 'JavaScript', [
        Rule(_everything(config), DirPathCalc.for_config(config, '.js'), ChainStep(steps)),
    ])


def image_stage(config: AssetClassConfig, settings: BuildSettings):
    """
    Recompress raster images. SVGs are copied as-is.
    """
    return Stage(config, 'Images', [
        Rule(GlobMatcher('**/*.svg', config.source_dir), [DirPathCalc.for_config(config), None], DirectCopyStep()),
        Rule(
            _everything(config),
            DirPathCalc.for_config(config),
            ImageOptimizeStep(settings.img.jpeg_quality, settings.img.optimize)
        ),
    ], check_freshness=True)


def font_stage(config: AssetClassConfig, settings: BuildSettings):
    """
    Convert TrueType and OpenType fonts to WOFF and WOFF2 side by side. Other
    font formats are copied as-is.
    """
    return Stage(config, 'Fonts', [
        Rule(
            GlobMatcher('**/*.{ttf,otf}', config.source_dir),
            [DirPathCalc.for_config(config, '.woff'), DirPathCalc.for_config(config, '.woff2'), None],
            WebFontStep()
        ),
        Rule(_everything(config), DirPathCalc.for_config(config), DirectCopyStep()),
    ], check_freshness=True)


def copy_stage(config: AssetClassConfig, label: str, check_freshness: bool = False):
    """
    Copy every matching file verbatim.
    """
    return Stage(config, label, [
        Rule(_everything(config), DirPathCalc.for_config(config), DirectCopyStep()),
    ], check_freshness=check_freshness)


def default_stages(settings: BuildSettings, configs: dict[str, AssetClassConfig] | None = None):
    """
    Build the seven default Stages for @settings, in the order markup, styles,
    scripts, images, fonts, libraries, meta files.
    """
    configs = configs or asset_paths(settings.input_dir, settings.output_dir)
    return [
        markup_stage(configs['html'], settings),
        style_stage(configs['css'], settings),
        script_stage(configs['js'], settings),
        image_stage(configs['img'], settings),
        font_stage(configs['fonts'], settings),
        copy_stage(configs['libs'], 'Libs', check_freshness=True),
        copy_stage(configs['meta'], 'Meta files'),
    ]