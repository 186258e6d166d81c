"""
Integration tests for the slides kernels and the slidesctl CLI.

Tests the stage 3 pipeline:
    slides_html_render (+ slides_theme_css)
"""

from __future__ import annotations

import io
import json
import sys
from pathlib import Path

import pytest

from pres_kernels.base import KernelInput
from pres_kernels.slides.cli.slidesctl import main
from pres_kernels.slides.kernels.slides_html_render import SlidesHtmlRenderKernel
from pres_kernels.slides.kernels.slides_theme_css import SlidesThemeCssKernel


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def _str(s):
    return {"t": "Str", "c": s}


SAMPLE_DOC = {
    "pandoc-api-version": [1, 23, 1],
    "meta": {},
    "blocks": [
        {"t": "Header", "c": [1, ["", [], []], [_str("Intro")]]},
        {"t": "Para", "c": [
            _str("Hello"),
            {"t": "Note", "c": [{"t": "Para", "c": [_str("See")]}]},
        ]},
        {"t": "CodeBlock", "c": [["", ["python"], []], "def f():\n    return 1\n"]},
        {"t": "Header", "c": [1, ["", [], [["master", "two-col"]]], [_str("Next")]]},
        {"t": "CodeBlock", "c": [["", [], []], "plain <text>\n"]},
    ],
}

SAMPLE_TEMPLATE = "<html><body>$body$</body></html>\n"

SAMPLE_THEME = {
    "name": "Mini",
    "variables": {"fg": "#ddd"},
    "globals": {"foreground": "var(fg)"},
    "rules": [{"name": "Keywords", "scope": "keyword", "font_style": "bold"}],
}


@pytest.fixture
def sample_inputs(tmp_path):
    """Write a pandoc JSON document, template and theme."""
    src = tmp_path / "src"
    src.mkdir()
    (src / "talk.json").write_text(json.dumps(SAMPLE_DOC), encoding="utf-8")
    (src / "template.html").write_text(SAMPLE_TEMPLATE, encoding="utf-8")
    (src / "theme.json").write_text(json.dumps(SAMPLE_THEME), encoding="utf-8")
    return src


@pytest.fixture
def workspace(tmp_path):
    """Create a workspace directory for kernel outputs."""
    ws = tmp_path / "workspace"
    ws.mkdir()
    return ws


# ---------------------------------------------------------------------------
# Test: slides_html_render
# ---------------------------------------------------------------------------

class TestSlidesHtmlRender:

    def _run(self, sample_inputs, workspace, **extra):
        return SlidesHtmlRenderKernel().run(KernelInput(
            workspace=workspace,
            config={
                "document_path": str(sample_inputs / "talk.json"),
                "template_path": str(sample_inputs / "template.html"),
                **extra,
            },
        ))

    def test_render(self, sample_inputs, workspace):
        out = self._run(sample_inputs, workspace)
        assert out.success, out.errors
        assert out.data["slide_count"] == 2
        assert out.data["footnote_count"] == 1
        assert out.data["code_blocks"] == 2
        assert out.data["highlighted_blocks"] == 1
        assert "2 slides" in out.summary

        html = Path(out.data["output_path"]).read_text(encoding="utf-8")
        assert html.startswith('<html><body><pres-slide id="slide-0"><h1>Intro</h1>')
        assert '<pres-slide master="two-col" id="slide-1">' in html
        assert "plain &lt;text&gt;" in html
        assert html.endswith("</pres-slide></body></html>\n")
        assert not list((workspace / "output").glob("*.tmp"))

    def test_record_persisted(self, sample_inputs, workspace):
        out = self._run(sample_inputs, workspace)
        assert out.output_file == workspace / "stage3" / "slides_html_render.json"
        record = json.loads(out.output_file.read_text())
        assert record["_meta"]["success"] is True
        assert record["data"]["slide_count"] == 2
        assert out.output_file.with_suffix(".summary.txt").read_text() == out.summary

    def test_input_hash_tracks_document(self, sample_inputs, workspace):
        first = self._run(sample_inputs, workspace).input_hash
        assert self._run(sample_inputs, workspace).input_hash == first
        doc = dict(SAMPLE_DOC, blocks=SAMPLE_DOC["blocks"][:1])
        (sample_inputs / "talk.json").write_text(json.dumps(doc), encoding="utf-8")
        assert self._run(sample_inputs, workspace).input_hash != first

    def test_config_options(self, sample_inputs, workspace):
        out = self._run(sample_inputs, workspace, slides={
            "highlight": {"enabled": False},
            "output": {"filename": "deck.html"},
        })
        assert out.success
        assert out.data["highlighted_blocks"] == 0
        assert out.data["output_path"].endswith("deck.html")

    def test_missing_input(self, sample_inputs, workspace):
        out = SlidesHtmlRenderKernel().run(KernelInput(
            workspace=workspace,
            config={"document_path": str(sample_inputs / "nope.json")},
        ))
        assert not out.success
        assert any("template_path" in e for e in out.errors)
        assert any("nope.json" in e for e in out.errors)

    def test_bad_template_fails_without_output(self, sample_inputs, workspace):
        (sample_inputs / "template.html").write_text("<html></html>", encoding="utf-8")
        out = self._run(sample_inputs, workspace)
        assert not out.success
        assert out.data["error_type"] == "TemplateError"
        assert not (workspace / "output" / "slides.html").exists()

    def test_pandoc3_figure_document(self, sample_inputs, workspace):
        doc = dict(SAMPLE_DOC, blocks=SAMPLE_DOC["blocks"][:1] + [{
            "t": "Figure",
            "c": [
                ["", [], []],
                [None, [{"t": "Plain", "c": [_str("Cap")]}]],
                [{"t": "Plain", "c": [
                    {"t": "Image", "c": [["", [], []], [_str("Cap")], ["a.png", ""]]},
                ]}],
            ],
        }, {"t": "Para", "c": [{"t": "Underline", "c": [_str("u")]}, {"t": "Sparkle"}]}])
        (sample_inputs / "talk.json").write_text(json.dumps(doc), encoding="utf-8")
        out = self._run(sample_inputs, workspace)
        assert out.success, out.errors
        assert out.data["dropped_nodes"] == 1
        html = Path(out.data["output_path"]).read_text(encoding="utf-8")
        assert '<figure slot="figure"><img src="a.png"></img><figcaption>Cap</figcaption></figure>' in html
        assert "<p><u>u</u></p>" in html

    def test_malformed_document(self, sample_inputs, workspace):
        (sample_inputs / "talk.json").write_text('{"blocks": [{"t": "Header", "c": [1]}]}', encoding="utf-8")
        out = self._run(sample_inputs, workspace)
        assert not out.success
        assert out.data["error_type"] == "DocumentFormatError"


# ---------------------------------------------------------------------------
# Test: slides_theme_css
# ---------------------------------------------------------------------------

class TestSlidesThemeCss:

    def test_theme(self, sample_inputs, workspace):
        out = SlidesThemeCssKernel().run(KernelInput(
            workspace=workspace,
            config={"theme_path": str(sample_inputs / "theme.json")},
        ))
        assert out.success, out.errors
        assert out.data["theme_name"] == "Mini"
        assert out.data["rule_count"] == 1
        css = Path(out.data["output_path"]).read_text(encoding="utf-8")
        assert css == (
            "/* Mini theme */\n"
            "pre > code > .source {\n"
            "  --fg: #ddd;\n"
            "  color: var(--fg);\n"
            "}\n"
            "/* Keywords */\n"
            "pre > code > .source .keyword {\n"
            "  font-weight: bold;\n"
            "}\n"
        )


# ---------------------------------------------------------------------------
# Test: CLI
# ---------------------------------------------------------------------------

class TestSlidesctl:

    def test_compile_to_file(self, sample_inputs, tmp_path):
        target = tmp_path / "out.html"
        rc = main([
            "compile", str(sample_inputs / "template.html"),
            "-i", str(sample_inputs / "talk.json"),
            "-o", str(target),
        ])
        assert rc == 0
        html = target.read_text(encoding="utf-8")
        assert html.count("<pres-slide") == 2
        assert '<span class="source python">' in html

    def test_compile_to_stdout_no_highlight(self, sample_inputs, capsys):
        rc = main([
            "compile", str(sample_inputs / "template.html"),
            "-i", str(sample_inputs / "talk.json"),
            "--no-highlight",
        ])
        assert rc == 0
        out = capsys.readouterr().out
        assert out.startswith("<html><body><pres-slide")
        assert 'class="source' not in out

    def test_compile_with_config(self, sample_inputs, tmp_path, capsys):
        (sample_inputs / "template.html").write_text("<main>@@</main>", encoding="utf-8")
        cfg = tmp_path / "slides.yaml"
        cfg.write_text("template:\n  placeholder: '@@'\n", encoding="utf-8")
        rc = main([
            "compile", str(sample_inputs / "template.html"),
            "-i", str(sample_inputs / "talk.json"),
            "--config", str(cfg),
        ])
        assert rc == 0
        assert capsys.readouterr().out.startswith("<main><pres-slide")

    def test_compile_template_from_config(self, sample_inputs, tmp_path, capsys):
        cfg = tmp_path / "slides.yaml"
        cfg.write_text(f"template:\n  path: '{sample_inputs / 'template.html'}'\n", encoding="utf-8")
        rc = main(["compile", "-i", str(sample_inputs / "talk.json"), "--config", str(cfg)])
        assert rc == 0
        assert capsys.readouterr().out.startswith("<html><body><pres-slide")

    def test_compile_without_template(self, sample_inputs, capsys):
        assert main(["compile", "-i", str(sample_inputs / "talk.json")]) == 1
        assert "no template" in capsys.readouterr().err

    def test_compile_invalid_yaml_config(self, sample_inputs, tmp_path, capsys):
        cfg = tmp_path / "slides.yaml"
        cfg.write_text("render: [unclosed\n", encoding="utf-8")
        rc = main([
            "compile", str(sample_inputs / "template.html"),
            "-i", str(sample_inputs / "talk.json"),
            "--config", str(cfg),
        ])
        assert rc == 1
        assert "invalid YAML" in capsys.readouterr().err

    def test_render_invalid_yaml_config(self, sample_inputs, tmp_path, capsys):
        cfg = tmp_path / "slides.yaml"
        cfg.write_text("render: [unclosed\n", encoding="utf-8")
        rc = main([
            "render",
            str(sample_inputs / "talk.json"),
            str(sample_inputs / "template.html"),
            "-w", str(tmp_path / "ws"),
            "--config", str(cfg),
        ])
        assert rc == 1
        assert "invalid YAML" in capsys.readouterr().err

    def test_compile_stdout_is_utf8(self, sample_inputs, monkeypatch):
        raw = io.BytesIO()
        monkeypatch.setattr(sys, "stdout", io.TextIOWrapper(raw, encoding="ascii"))
        rc = main([
            "compile", str(sample_inputs / "template.html"),
            "-i", str(sample_inputs / "talk.json"),
        ])
        assert rc == 0
        html = raw.getvalue().decode("utf-8")
        assert html.startswith("<html><body><pres-slide")
        assert "↩" in html

    def test_compile_bad_template(self, sample_inputs, tmp_path, capsys):
        target = tmp_path / "out.html"
        (sample_inputs / "template.html").write_text("no placeholder", encoding="utf-8")
        rc = main([
            "compile", str(sample_inputs / "template.html"),
            "-i", str(sample_inputs / "talk.json"),
            "-o", str(target),
        ])
        assert rc == 1
        assert "exactly once" in capsys.readouterr().err
        assert not target.exists()

    def test_theme(self, sample_inputs, capsys):
        rc = main(["theme", "-i", str(sample_inputs / "theme.json")])
        assert rc == 0
        assert capsys.readouterr().out.startswith("/* Mini theme */\npre > code > .source {\n")

    def test_theme_invalid(self, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text('{"name": "x"}', encoding="utf-8")
        assert main(["theme", "-i", str(bad)]) == 1
        assert "missing field" in capsys.readouterr().err

    def test_render(self, sample_inputs, tmp_path, capsys):
        ws = tmp_path / "ws"
        rc = main([
            "render",
            str(sample_inputs / "talk.json"),
            str(sample_inputs / "template.html"),
            "-w", str(ws),
            "--theme", str(sample_inputs / "theme.json"),
        ])
        assert rc == 0
        assert (ws / "output" / "slides.html").exists()
        assert (ws / "output" / "theme.css").exists()
        out = capsys.readouterr().out
        assert "slides_html_render" in out
        assert "slides_theme_css" in out

    def test_no_command(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()
