"""plenti: component template compiler with per-instance style isolation.

Compiles single-file components (a fence of props and imports, markup with
control directives, an optional ``<script>`` and ``<style>``) into page
HTML plus the page's aggregated CSS and JS. Every rendered component
instance gets its own scope classes, and its stylesheet and script are
rewritten to target only that instance's elements.

Quickstart:
    >>> from plenti import DictLoader, Environment
    >>> env = Environment(loader=DictLoader({
    ...     "pages/index.svelte": "---\\nprop name = \\"Sam\\";\\n---\\n<p>Hi {name}</p>",
    ... }), seed=1)
    >>> markup, script, style, fence_logic = env.render("pages/index.svelte")
    >>> "Hi Sam</p>" in markup
    True

File-based components:
    >>> from plenti import Environment, FileSystemLoader
    >>> env = Environment(loader=FileSystemLoader("layout/"))
    >>> page = env.render("pages/index.svelte", {"title": "Home"})

Component source:
    ```
    ---
    import Card from "../components/card.svelte";
    prop title = "Untitled";
    let posts = [{title: "One"}, {title: "Two"}];
    ---
    <h1>{title}</h1>
    {for let post of posts}
      <Card title={post.title} />
    {/for}
    <style>h1 { color: navy; }</style>
    ```

Architecture:
Source → Splitter → Fence Processor → Control-Tree Builder → Renderer
(recursing into child components) → Isolation → Assembler → RenderedPage

Pipeline stages:
1. **Splitter**: separates fence, markup, script and style
2. **Fence**: extracts imports, applies props, evaluates declarations
3. **Control tree**: stack-based scan of ``{if}``/``{for}``/components
4. **Renderer**: evaluates directives, renders children depth-first
5. **Isolation**: scope classes for HTML, rewritten CSS selectors and JS names
6. **Assembler**: concatenates each instance's isolated CSS and JS

Failure Policy:
Structural errors (syntax, unresolved components, runaway recursion) raise.
Expression faults are logged at DEBUG and degrade the directive.

"""

from plenti._types import Token, TokenType
from plenti.environment import (
    ChoiceLoader,
    DictLoader,
    Environment,
    ErrorCode,
    EvaluationFault,
    ExpressionSyntaxError,
    FileSystemLoader,
    FormatConstraintError,
    FunctionLoader,
    ResolutionError,
    SourceSnippet,
    StructuralParseError,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    build_source_snippet,
)
from plenti.expressions import Evaluator, ExpressionEvaluator, Value, format_value, stringify, to_value
from plenti.isolation import (
    ScopeClassGenerator,
    ScopedElement,
    ScopeStackEntry,
    scope_css,
    scope_fragment,
    scope_html,
    scope_js,
)
from plenti.parser import Segments, build_control_tree, process_fence, split_template
from plenti.render_context import (
    RenderContext,
    get_render_context,
    get_render_context_required,
    render_context,
)
from plenti.template import Component, ComponentRenderer, RenderedPage, assemble

__version__ = "0.1.0"

__all__ = [
    "ChoiceLoader",
    "Component",
    "ComponentRenderer",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "EvaluationFault",
    "Evaluator",
    "ExpressionEvaluator",
    "ExpressionSyntaxError",
    "FileSystemLoader",
    "FormatConstraintError",
    "FunctionLoader",
    "RenderContext",
    "RenderedPage",
    "ResolutionError",
    "ScopeClassGenerator",
    "ScopeStackEntry",
    "ScopedElement",
    "Segments",
    "SourceSnippet",
    "StructuralParseError",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "Token",
    "TokenType",
    "Value",
    "__version__",
    "assemble",
    "build_control_tree",
    "build_source_snippet",
    "format_value",
    "get_render_context",
    "get_render_context_required",
    "process_fence",
    "render_context",
    "scope_css",
    "scope_fragment",
    "scope_html",
    "scope_js",
    "split_template",
    "stringify",
    "to_value",
]
