"""
assetline is a static-site asset build pipeline: templates, style sheets,
scripts, images, fonts, and verbatim files from a source tree become a
deployable output tree, with a watch-and-serve development mode.
"""
from .core import Context, Matcher, PathCalc, Rule, Step, StepUnavailableException
from .css import MediaQuerySortStep, SassCompileStep
from .dependencies import Dependency, PipDependency, WebExecDependency
from .fonts import WebFontStep
from .images import ImageOptimizeStep
from .jinja import TemplateRenderStep
from .minify import CSSMinifierStep, HTMLMinifierStep, ScriptMinifierStep
from .notify import ConsoleNotifier, DesktopNotifier, Notifier
from .paths import AssetClassConfig, DirPathCalc, GlobMatcher, asset_paths
from .reports import BuildReport, FileResult, StageReport
from .scripts import ScriptTranspileStep
from .server import LiveReloadServer
from .settings import BuildSettings, HTMLOptions, ImageOptions, ScriptOptions, StyleOptions
from .simple import ChainStep, DirectCopyStep, TextTransformStep
from .stages import Stage, default_stages
from .watch import DevSession, Watcher, develop
