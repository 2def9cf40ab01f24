"""
Test configuration.

Clears external-service credentials and points server-side sessions at a
temporary directory BEFORE the Flask app is imported, so nothing in the
suite reaches Supabase, Cloud Storage or the generation API.
"""
import json
import os
import tempfile

import pytest

for _key in ('OPENAI_API_KEY', 'SUPABASE_URL', 'SUPABASE_KEY', 'GCS_BUCKET'):
    os.environ.pop(_key, None)
os.environ.setdefault('SESSION_FILE_DIR', tempfile.mkdtemp(prefix='sitecraft-sessions-'))
os.environ.setdefault('FLASK_SECRET_KEY', 'test-secret-key')

from sitecraft.codegen import Component, EntryConfig, GeneratedProject, LegacyProject  # noqa: E402

HEADER_CODE = (
    "import React from 'react';\n\n"
    "export default function Header() {\n"
    "  return (\n"
    "    <header className=\"header\">\n"
    "      <div className=\"header__logo\">Sweet Crumbs</div>\n"
    "    </header>\n"
    "  );\n"
    "}\n"
)

HERO_CODE = (
    "import React, { useState } from 'react';\n\n"
    "export default function Hero() {\n"
    "  const [count, setCount] = useState(0);\n"
    "  return (\n"
    "    <section className=\"hero\">\n"
    "      <h1>Fresh bread daily</h1>\n"
    "      <button onClick={() => setCount(count + 1)}>Order ({count})</button>\n"
    "    </section>\n"
    "  );\n"
    "}\n"
)

MAIN_JSX = (
    "import React from 'react';\n"
    "import ReactDOM from 'react-dom/client';\n"
    "import './style.css';\n"
    "import Header from './components/Header.jsx';\n"
    "import Hero from './components/Hero.jsx';\n\n"
    "function App() {\n"
    "  return (\n"
    "    <>\n"
    "      <Header />\n"
    "      <Hero />\n"
    "    </>\n"
    "  );\n"
    "}\n\n"
    "ReactDOM.createRoot(document.getElementById('root')).render(<App />);\n"
)


@pytest.fixture
def canonical_value():
    """A response object already in the components/viteConfig shape"""
    return {
        'components': [
            {
                'name': 'Header',
                'type': 'component',
                'path': 'src/components/Header.jsx',
                'code': HEADER_CODE,
                'language': 'jsx',
            },
            {
                'name': 'Hero',
                'type': 'component',
                'path': 'src/components/Hero.jsx',
                'code': HERO_CODE,
                'language': 'jsx',
            },
        ],
        'viteConfig': {
            'packageJson': '{"name": "sweet-crumbs"}',
            'viteConfig': "export default {};",
            'indexHtml': '<!DOCTYPE html><html><body><div id="root"></div></body></html>',
            'mainJsx': MAIN_JSX,
            'styleCss': '.hero { padding: 2rem; }',
        },
    }


@pytest.fixture
def canonical_response(canonical_value):
    return json.dumps(canonical_value)


@pytest.fixture
def generated_project():
    return GeneratedProject(
        components=(
            Component(name='Header', path='src/components/Header.jsx', code=HEADER_CODE),
            Component(name='Hero', path='src/components/Hero.jsx', code=HERO_CODE),
        ),
        entry_config=EntryConfig(main_jsx=MAIN_JSX, style_css='.hero { padding: 2rem; }'),
    )


@pytest.fixture
def legacy_project():
    return LegacyProject(html='<div>x</div>', css='body{margin:0}', js='console.log(1)')


@pytest.fixture
def website_record(canonical_value):
    """A websites row as returned by the store"""
    return {
        'id': 'site-1',
        'user_id': 'user-1',
        'name': 'Sweet Crumbs',
        'prompt': 'a bakery website',
        'components': canonical_value['components'],
        'vite_config': canonical_value['viteConfig'],
        'html_code': '',
        'css_code': '',
        'js_code': '',
        'generated_path': None,
    }


@pytest.fixture
def app(tmp_path):
    import main

    app = main.create_app({
        'TESTING': True,
        'SESSION_COOKIE_SECURE': False,
        'SESSION_FILE_DIR': str(tmp_path / 'sessions'),
    })
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_client(client):
    """Test client with a signed-in GitHub user"""
    with client.session_transaction() as sess:
        sess['user'] = {'id': 'user-1', 'login': 'baker', 'name': 'Baker', 'email': 'baker@example.com'}
    return client
