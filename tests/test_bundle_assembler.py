"""Tests for script assembly and delivery encoding."""

import urllib.parse

from bundler.assembler import (
    DeliveryPayload,
    HtmlFileRenderer,
    SandboxOptions,
    ScriptAssembler,
    render_document,
)


class TestWrap:
    """Tests for the deferred-execution wrapper."""

    def test_wrap_format(self):
        assert ScriptAssembler.wrap("x()") == "setTimeout(function(){\n;x()\n;}, 0)"

    def test_empty_bundle_wraps_entry_unchanged(self):
        payload = ScriptAssembler().assemble("", "console.log(1)")
        assert payload.script == "setTimeout(function(){\n;console.log(1)\n;}, 0)"

    def test_bundle_precedes_entry(self):
        payload = ScriptAssembler().assemble("B;", "E;")
        assert payload.script == "setTimeout(function(){\n;B;E;\n;}, 0)"


class TestScriptEncoding:
    """Tests for inline vs data URI delivery."""

    def test_plain_script_is_inlined(self):
        payload = ScriptAssembler().assemble("", "alert(1)")
        assert payload.inline is True
        assert payload.body == (
            '<script type="text/javascript">'
            "setTimeout(function(){\n;alert(1)\n;}, 0)"
            "</script>"
        )

    def test_closing_script_tag_uses_data_uri(self):
        """A literal </script> must never be inlined."""
        entry = 'document.write("</script>")'
        payload = ScriptAssembler().assemble("", entry)

        assert payload.inline is False
        prefix = '<script type="text/javascript" src="data:text/javascript;charset=UTF-8,'
        assert payload.body.startswith(prefix)
        assert payload.body.endswith('"></script>')
        encoded = payload.body[len(prefix):-len('"></script>')]
        assert "</script>" not in encoded
        assert urllib.parse.unquote(encoded) == payload.script

    def test_closing_tag_in_bundle_also_uses_data_uri(self):
        payload = ScriptAssembler().assemble('var s="</script>";', "")
        assert payload.inline is False


class TestPayload:
    """Tests for head/body composition and renderer keys."""

    def test_head_includes_style_reset(self):
        options = SandboxOptions(iframe_head="<meta x>", iframe_style="body{color:red}")
        payload = ScriptAssembler(options).assemble("", "")
        assert payload.head == (
            "<meta x><style type='text/css'>"
            "html, body { margin: 0; padding: 0; border: 0; }\n"
            "body{color:red}</style>"
        )

    def test_body_prefix_and_attributes(self):
        options = SandboxOptions(
            name="preview", iframe_body="<div id='app'></div>", iframe_sandbox="allow-scripts"
        )
        payload = ScriptAssembler(options).assemble("", "")
        assert payload.body.startswith("<div id='app'></div><script")
        assert payload.to_dict()["sandboxAttributes"] == "allow-scripts"
        assert payload.to_dict()["name"] == "preview"

    def test_to_dict_omits_empty_name(self):
        payload = ScriptAssembler().assemble("", "")
        assert set(payload.to_dict()) == {"head", "body", "script", "sandboxAttributes"}


class TestRenderDocument:
    """Tests for standalone document rendering."""

    def test_document_contains_head_and_body(self):
        payload = DeliveryPayload(head="<title>t</title>", body="<p>b</p>", script="")
        html = render_document(payload)
        assert html.startswith("<!DOCTYPE html>")
        assert "<title>t</title>" in html
        assert "<body><p>b</p></body>" in html

    def test_file_renderer_writes_document(self, tmp_path):
        path = tmp_path / "out.html"
        payload = ScriptAssembler().assemble("", "go()")
        HtmlFileRenderer(str(path)).set_html(payload)
        assert path.read_text(encoding="utf-8") == render_document(payload)
