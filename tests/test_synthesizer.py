import json

import pytest

from sitecraft.codegen.models import Component, GeneratedProject, LegacyProject
from sitecraft.codegen.normalizer import normalize_response
from sitecraft.codegen.sanitizer import sanitize_project
from sitecraft.codegen.synthesizer import (
    PreviewRender,
    RenderStage,
    build_error_document,
    build_preview_document,
    data_fallbacks,
    escape_script,
    render_preview,
)

SCENARIO_A = (
    '```json\n'
    '{"components":[{"name":"Header","type":"component","path":"src/components/Header.jsx",'
    '"code":"export default function Header(){return null;}","language":"jsx"}]}\n'
    '```'
)


class TestReactDocument:
    """Component projects with JSX"""

    def test_scenario_a(self):
        project = sanitize_project(normalize_response(SCENARIO_A))
        document = build_preview_document(project, 'Scenario A')

        assert document.count('const Header = (function') == 1
        assert document.count('<Header />') == 1
        assert '<title>Scenario A</title>' in document

    def test_runtime_and_transpiler_loaded(self, generated_project):
        document = build_preview_document(generated_project)

        assert 'react@18/umd/react.development.js' in document
        assert 'react-dom@18/umd/react-dom.development.js' in document
        assert '@babel/standalone' in document
        assert 'type="text/babel"' in document
        assert '<title>Generated Website</title>' in document

    def test_guarded_with_error_panel(self, generated_project):
        document = build_preview_document(generated_project)

        assert 'try {' in document
        assert 'catch (error)' in document
        assert 'React Error:' in document
        assert 'const { useState, useEffect' in document

    def test_stylesheet_included(self, generated_project):
        document = build_preview_document(generated_project)
        assert '.hero { padding: 2rem; }' in document

    def test_css_components_included(self):
        project = GeneratedProject(components=(
            Component(name='Header', path='src/components/Header.jsx', code='export default function Header() { return null; }'),
            Component(name='Theme', path='src/theme.css', language='css', code='.theme { color: teal; }'),
        ))
        document = build_preview_document(project)

        assert '.theme { color: teal; }' in document
        assert 'const Theme' not in document

    def test_script_close_escaped(self):
        project = GeneratedProject(components=(
            Component(name='Embed', path='src/components/Embed.jsx',
                      code="export default function Embed() { const s = '</script>'; return null; }"),
        ))
        document = build_preview_document(project)

        assert "'<\\/script>'" in document
        assert document.count('</script>') == 4

    def test_final_image_pass(self):
        project = GeneratedProject(components=(
            Component(name='Header', path='src/components/Header.jsx', code='export default function Header() { return null; }'),
        ))
        document = build_preview_document(project, 'Imgur https://i.imgur.com/logo.png')
        assert 'imgur.com' not in document


class TestVanillaDocument:
    """Script-only component projects"""

    def test_vanilla_document(self):
        project = GeneratedProject(components=(
            Component(name='Header', path='src/components/Header.js', language='js',
                      code="export default function Header() { return jsx('header', {}, 'Hi'); }"),
        ))
        document = build_preview_document(project)

        assert '<div id="app"></div>' in document
        assert 'function jsx(tag' in document
        assert 'babel' not in document
        assert 'Script Error:' in document


class TestLegacyDocument:
    """Flat html/css/js projects"""

    def test_scenario_b(self):
        project = normalize_response('{"html":"<div>x</div>","css":"body{margin:0}","js":"console.log(1)"}')
        document = build_preview_document(sanitize_project(project))

        assert document.startswith('<!DOCTYPE html>')
        assert '<div>x</div>' in document
        assert 'body{margin:0}' in document
        assert 'console.log(1)' in document
        assert 'babel' not in document
        assert 'React' not in document

    def test_full_document_gets_css_and_js_injected(self):
        project = LegacyProject(
            html='<!DOCTYPE html><html><head><title>x</title></head><body><p>x</p></body></html>',
            css='p { color: red; }',
            js='alert(1)',
        )
        document = build_preview_document(project)

        assert '<style>p { color: red; }</style></head>' in document
        assert '<script>alert(1)</script></body>' in document

    def test_full_document_with_own_assets_untouched(self):
        html = '<html><head><style>p{}</style></head><body><script>run()</script></body></html>'
        project = LegacyProject(html=html, css='body{}', js='other()')

        assert build_preview_document(project) == html

    def test_unknown_type(self):
        with pytest.raises(TypeError):
            build_preview_document({'html': ''})


class TestHelpers:
    """Document helpers"""

    def test_escape_script(self):
        assert escape_script('a</script>b</SCRIPT>') == 'a<\\/script>b<\\/SCRIPT>'

    def test_data_fallbacks_skip_declared_names(self):
        lines = data_fallbacks('const products = [1, 2];')

        assert not any('products' in line for line in lines)
        assert "if (typeof movieData === 'undefined') { var movieData = []; }" in lines

    def test_error_document_escapes(self):
        document = build_error_document('<b>bad</b>', stack='Traceback', stage='rewriting')

        assert '&lt;b&gt;bad&lt;/b&gt;' in document
        assert 'Preview Error (rewriting):' in document
        assert 'Traceback' in document


class TestPreviewRender:
    """Render state machine"""

    def test_successful_render(self, website_record):
        render = PreviewRender(website_record)
        document = render.run()

        assert render.stage == RenderStage.RENDERED
        assert render.history == [
            RenderStage.IDLE,
            RenderStage.PARSING,
            RenderStage.NORMALIZING,
            RenderStage.SANITIZING,
            RenderStage.REWRITING,
            RenderStage.SYNTHESIZING,
            RenderStage.RENDERED,
        ]
        assert render.error is None
        assert '<title>Sweet Crumbs</title>' in document
        assert render.diagnostics == []

    def test_json_text_columns(self, website_record):
        website_record['components'] = json.dumps(website_record['components'])
        website_record['vite_config'] = json.dumps(website_record['vite_config'])

        render = PreviewRender(website_record)
        render.run()
        assert render.stage == RenderStage.RENDERED

    def test_failed_render_returns_error_document(self, website_record):
        website_record['components'] = '{not json'

        render = PreviewRender(website_record)
        document = render.run()

        assert render.stage == RenderStage.FAILED
        assert render.history[-2:] == [RenderStage.PARSING, RenderStage.FAILED]
        assert render.error.stage == 'parsing'
        assert 'Preview Error (parsing):' in document

    def test_legacy_record(self):
        record = {'id': 'x', 'name': 'Old', 'components': None, 'html_code': '<p>old</p>', 'css_code': '', 'js_code': ''}
        document = render_preview(record)

        assert '<p>old</p>' in document

    def test_scenario_c_never_throws(self):
        response = '{"components":[{"name":"Hero","...":"...","code":"function Hero(){ return <div>Welcome'
        document = build_preview_document(sanitize_project(normalize_response(response)))

        assert isinstance(document, str)
        assert document.strip()
