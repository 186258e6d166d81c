"""
slidesctl — CLI for the slides kernel family.

Commands:
    compile  pandoc JSON (stdin or -i) + template -> slides HTML (stdout or -o)
    theme    color theme JSON (stdin or -i) -> CSS (stdout or -o)
    render   Run the slides kernels in a workspace and report their summaries

Typical use:
    pandoc -t json talk.md | slidesctl compile template.html > talk.html
"""

import argparse
import io
import sys
from pathlib import Path
from typing import IO, Callable, List, Optional

import logging

logger = logging.getLogger(__name__)

# ANSI color helpers (auto-disabled for non-TTY)
_USE_COLOR = sys.stderr.isatty()


def _c(code: str, text: str) -> str:
    if not _USE_COLOR:
        return text
    return f"\033[{code}m{text}\033[0m"


def _bold(text: str) -> str:
    return _c("1", text)


def _green(text: str) -> str:
    return _c("32", text)


def _red(text: str) -> str:
    return _c("31", text)


def _cyan(text: str) -> str:
    return _c("36", text)


def _dim(text: str) -> str:
    return _c("2", text)


def _error(msg: str) -> None:
    print(_red(f"Error: {msg}"), file=sys.stderr)


# ---------------------------------------------------------------------------
# Kernel map (lazy imports)
# ---------------------------------------------------------------------------

_KERNEL_MAP = {
    "slides_html_render": ("pres_kernels.slides.kernels.slides_html_render", "SlidesHtmlRenderKernel"),
    "slides_theme_css": ("pres_kernels.slides.kernels.slides_theme_css", "SlidesThemeCssKernel"),
}


def _get_slides_kernel(kernel_name: str):
    """Resolve a slides kernel class by name."""
    entry = _KERNEL_MAP.get(kernel_name)
    if entry is None:
        return None

    import importlib
    module_path, class_name = entry
    module = importlib.import_module(module_path)
    return getattr(module, class_name)


# ---------------------------------------------------------------------------
# Output helper
# ---------------------------------------------------------------------------

def _write_output(output: Optional[str], produce: Callable[[IO[str]], None]) -> None:
    """Stream UTF-8 to stdout, or to a file that only appears once *produce* succeeded."""
    if not output:
        sys.stdout.flush()
        buffer = getattr(sys.stdout, "buffer", None)
        if buffer is None:
            # already a text-only stream (redirected in-process)
            produce(sys.stdout)
            return
        out = io.TextIOWrapper(buffer, encoding="utf-8", newline="")
        try:
            produce(out)
            out.flush()
        finally:
            out.detach()
        return

    target = Path(output)
    tmp = target.with_name(target.name + ".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as out:
            produce(out)
        tmp.replace(target)
    finally:
        if tmp.exists():
            tmp.unlink()


def _read_input(path: Optional[str]) -> bytes:
    if path:
        return Path(path).read_bytes()
    return sys.stdin.buffer.read()


# ---------------------------------------------------------------------------
# Command: compile
# ---------------------------------------------------------------------------

def cmd_compile(args: argparse.Namespace) -> int:
    """Compile a pandoc JSON document into the template."""
    from pres_kernels.slides.config import get_slides_config, load_slides_config
    from pres_kernels.slides.errors import SlidesError
    from pres_kernels.slides.highlight import SyntaxSet
    from pres_kernels.slides.models import load_document
    from pres_kernels.slides.template import load_template, render_to_stream

    try:
        cfg = load_slides_config(args.config) if args.config else get_slides_config()
        highlight = cfg.highlight.enabled and not args.no_highlight

        template_path = args.template or cfg.template.path
        if not template_path:
            _error("no template given (argument or template.path in --config)")
            return 1
        template = load_template(template_path, cfg.template.placeholder)
        doc = load_document(_read_input(args.input))

        _write_output(args.output, lambda out: render_to_stream(
            doc,
            template,
            out,
            syntaxes=SyntaxSet(enabled=highlight),
            render=cfg.render,
        ))
    except (SlidesError, OSError, ValueError) as e:
        _error(str(e))
        return 1

    return 0


# ---------------------------------------------------------------------------
# Command: theme
# ---------------------------------------------------------------------------

def cmd_theme(args: argparse.Namespace) -> int:
    """Convert a color theme JSON into CSS."""
    from pres_kernels.slides.errors import SlidesError
    from pres_kernels.slides.theme_css import CSS_PREFIX, load_theme

    try:
        theme = load_theme(_read_input(args.input))
        _write_output(args.output, lambda out: theme.write(out, args.prefix or CSS_PREFIX))
    except (SlidesError, OSError) as e:
        _error(str(e))
        return 1

    return 0


# ---------------------------------------------------------------------------
# Command: render
# ---------------------------------------------------------------------------

def _run_kernel(kernel_name: str, workspace: Path, config: dict, verbose: bool = False) -> bool:
    """Run a single kernel by name; returns its success flag."""
    print(f"  [{_cyan(kernel_name)}] ", end="", flush=True)

    from pres_kernels.base import KernelInput

    kernel_cls = _get_slides_kernel(kernel_name)
    result = kernel_cls().run(KernelInput(workspace=workspace, config=config))

    if result.success:
        print(_green(result.summary or "done"))
    else:
        errors = "; ".join(result.errors) if result.errors else "unknown error"
        print(_red(f"FAILED: {errors}"))
        if verbose and result.errors:
            for e in result.errors:
                print(f"    {_dim(e)}")
    return result.success


def cmd_render(args: argparse.Namespace) -> int:
    """Run the slides kernels for one document."""
    from pres_kernels.slides.config import get_slides_config, load_slides_config
    from pres_kernels.slides.errors import SlidesError

    doc_path = Path(args.document).resolve()
    workspace = Path(args.workspace).resolve() if args.workspace else doc_path.parent / ".slides"
    workspace.mkdir(parents=True, exist_ok=True)

    try:
        cfg = load_slides_config(args.config) if args.config else get_slides_config()
    except (SlidesError, OSError, ValueError) as e:
        _error(str(e))
        return 1

    config = {
        "document_path": str(doc_path),
        "template_path": str(Path(args.template).resolve()),
        "slides": cfg.to_dict(),
    }

    print(_bold(f"Slides — {doc_path.name}"))
    print(f"Workspace: {_dim(str(workspace))}")

    ok = _run_kernel("slides_html_render", workspace, config, args.verbose)
    if args.theme:
        config["theme_path"] = str(Path(args.theme).resolve())
        ok = _run_kernel("slides_theme_css", workspace, config, args.verbose) and ok

    return 0 if ok else 1


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """Build the slidesctl argument parser."""
    parser = argparse.ArgumentParser(
        prog="slidesctl",
        description="Compile pandoc documents into <pres-slide> HTML decks",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    sub = parser.add_subparsers(dest="command", help="Available commands")

    # --- compile ---
    p_compile = sub.add_parser("compile", help="Compile pandoc JSON into a template")
    p_compile.add_argument(
        "template", nargs="?", help="HTML template containing the body placeholder (default: template.path)"
    )
    p_compile.add_argument("-i", "--input", help="pandoc JSON file (default: stdin)")
    p_compile.add_argument("-o", "--output", help="Output HTML file (default: stdout)")
    p_compile.add_argument("--config", help="slides.yaml configuration file")
    p_compile.add_argument(
        "--no-highlight", action="store_true", help="Escape code blocks without highlighting"
    )
    p_compile.set_defaults(func=cmd_compile)

    # --- theme ---
    p_theme = sub.add_parser("theme", help="Convert a color theme JSON to CSS")
    p_theme.add_argument("-i", "--input", help="Theme JSON file (default: stdin)")
    p_theme.add_argument("-o", "--output", help="Output CSS file (default: stdout)")
    p_theme.add_argument("--prefix", default=None, help="Selector prefix (default: 'pre > code > .source')")
    p_theme.set_defaults(func=cmd_theme)

    # --- render ---
    p_render = sub.add_parser("render", help="Run the slides kernels in a workspace")
    p_render.add_argument("document", help="pandoc JSON file")
    p_render.add_argument("template", help="HTML template containing the body placeholder")
    p_render.add_argument("-w", "--workspace", help="Workspace directory (default: <doc dir>/.slides)")
    p_render.add_argument("--theme", help="Color theme JSON to convert alongside")
    p_render.add_argument("--config", help="slides.yaml configuration file")
    p_render.set_defaults(func=cmd_render)

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for slidesctl."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    if not args.command:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
