"""
Default Vite project files used when the model leaves entry fields out
"""

import json
import re
from typing import Callable, Sequence

from .models import Component, exposed_identifier

GITIGNORE = """node_modules
dist
.DS_Store
*.log
.env
.env.local
"""

VITE_CONFIG_JS = """import { defineConfig } from 'vite';
import react from '@vitejs/plugin-react';

export default defineConfig({
  plugins: [react()],
  server: {
    port: 3000,
    open: true
  },
  build: {
    outDir: 'dist',
    assetsDir: 'assets'
  }
});
"""

STYLE_CSS = """@import url('https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700&display=swap');

:root {
  --primary-color: #1e3a8a;
  --secondary-color: #64748b;
  --accent-color: #fbbf24;
  --bg-color: #f1f5f9;
  --text-color: #1f2937;
}

* {
  margin: 0;
  padding: 0;
  box-sizing: border-box;
}

body {
  font-family: 'Inter', -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
  color: var(--text-color);
  background: var(--bg-color);
  line-height: 1.6;
}

#root {
  min-height: 100vh;
}
"""


def package_slug(website_name: str) -> str:
    slug = re.sub(r'[^a-z0-9._-]+', '-', (website_name or '').strip().lower()).strip('-.')
    return slug or 'generated-website'


def index_html(website_name: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <meta name="description" content="{website_name} - Generated Website">
    <title>{website_name}</title>
</head>
<body>
    <div id="root"></div>
    <script type="module" src="/src/main.jsx"></script>
</body>
</html>
"""


def package_json(website_name: str) -> str:
    return json.dumps({
        'name': package_slug(website_name),
        'version': '1.0.0',
        'private': True,
        'type': 'module',
        'scripts': {
            'dev': 'vite',
            'build': 'vite build',
            'preview': 'vite preview',
        },
        'dependencies': {
            'react': '^18.2.0',
            'react-dom': '^18.2.0',
        },
        'devDependencies': {
            'vite': '^5.0.0',
            '@vitejs/plugin-react': '^4.2.0',
        },
    }, indent=2) + '\n'


def main_jsx(components: Sequence[Component], file_path: Callable[[Component], str]) -> str:
    """
    Entry importing and rendering every component in order.

    file_path maps a component to the project file it is written to, so
    imports point at files that exist.
    """
    rendered = [c for c in components if c.kind == 'component' and c.language in ('js', 'jsx', 'tsx')]

    imports = []
    tags = []
    for component in rendered:
        name = exposed_identifier(component.name)
        module = re.sub(r'\.(jsx?|tsx?)$', '', file_path(component))
        imports.append(f"import {name} from '/{module}';")
        tags.append(f'      <{name} />')

    return (
        "import React from 'react';\n"
        "import ReactDOM from 'react-dom/client';\n"
        "import './style.css';\n\n"
        + '\n'.join(imports)
        + "\n\nfunction App() {\n  return (\n    <>\n"
        + '\n'.join(tags)
        + "\n    </>\n  );\n}\n\n"
        "const root = ReactDOM.createRoot(document.getElementById('root'));\n"
        "root.render(<App />);\n"
    )
