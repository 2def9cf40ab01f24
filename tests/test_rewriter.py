import re

from sitecraft.codegen.models import Component, EntryConfig, GeneratedProject
from sitecraft.codegen.rewriter import (
    convert_arrow_app,
    declares,
    rename_primary_declaration,
    rewrite_entry,
    rewrite_project,
    rewrite_unit,
    rewrite_vanilla_project,
    strip_exports,
    strip_imports,
    wrap_unit,
)


def _component(name, code, **kwargs):
    return Component(name=name, path=f'src/components/{name}.jsx', code=code, **kwargs)


class TestStripImports:
    """Import elimination"""

    def test_react_imports_removed(self):
        code = "import React, { useState } from 'react';\nfunction A() { const [a] = useState(0); return a; }"
        result = strip_imports(code, [])

        assert 'import' not in result
        assert 'const useState' not in result

    def test_side_effect_imports_removed(self):
        result = strip_imports("import './style.css';\nconst a = 1;", [])
        assert result.strip() == 'const a = 1;'

    def test_known_component_kept_as_is(self):
        result = strip_imports("import Header from './Header';\nconst x = <Header />;", ['Header'])
        assert result.strip() == 'const x = <Header />;'

    def test_unit_alias_is_lazy(self):
        result = strip_imports("import Btn from './Button';\nconst x = <Btn />;", ['Button'])
        assert 'const Btn = function () { return Button.apply(this, arguments); };' in result

    def test_entry_alias_is_direct(self):
        result = strip_imports("import Btn from './Button';\nconst x = <Btn />;", ['Button'], aliases=True)
        assert 'const Btn = Button;' in result

    def test_unknown_component_gets_placeholder(self):
        result = strip_imports("import { Icon } from 'lucide-react';\nconst x = <Icon />;", [])
        assert 'const Icon = (props) => (props && props.children) || null;' in result

    def test_unknown_data_gets_empty_array(self):
        result = strip_imports("import { menu } from '../data';\nmenu.map(m => m);", [])
        assert 'const menu = [];' in result

    def test_unreferenced_binding_dropped(self):
        result = strip_imports("import { Icon } from 'lucide-react';\nconst x = 1;", [])
        assert 'Icon' not in result

    def test_type_imports_dropped(self):
        result = strip_imports("import type { Props } from './types';\nconst p: Props = {};", [])
        assert 'const Props' not in result


class TestStripExports:
    """Export elimination"""

    def test_default_function(self):
        code, default = strip_exports('export default function Header() { return null; }', 'Header')

        assert code == 'function Header() { return null; }'
        assert default == 'Header'

    def test_anonymous_default_function_takes_exposed_name(self):
        code, default = strip_exports('export default function () { return null; }', 'Hero')

        assert code == 'function Hero() { return null; }'
        assert default == 'Hero'

    def test_default_identifier(self):
        code, default = strip_exports('export const Card = () => null;\nexport default Card;', 'Card')

        assert 'export' not in code
        assert 'const Card = () => null;' in code
        assert default == 'Card'

    def test_default_expression(self):
        code, default = strip_exports('export default () => <div />;', 'Banner')

        assert code == 'const Banner = () => <div />;'
        assert default == 'Banner'

    def test_export_list(self):
        code, default = strip_exports('function A() {}\nexport { A as default, A };', 'A')

        assert 'export' not in code
        assert default == 'A'


class TestUnits:
    """Renaming and closure wrapping"""

    def test_primary_declaration_renamed(self):
        code = rename_primary_declaration('function Hero() { return <Hero.Title />; }', 'HeroSection', 'Hero')
        assert code.startswith('function HeroSection()')

    def test_constants_are_not_primary(self):
        code = "const NAV_LINKS = ['Home'];\nfunction Navbar() { return <nav>{NAV_LINKS}</nav>; }"
        renamed = rename_primary_declaration(code, 'Header')

        assert "const NAV_LINKS = ['Home'];" in renamed
        assert 'function Header()' in renamed

    def test_component_preferred_over_data(self):
        code = "const Theme = { color: 'teal' };\nconst Card = ({ title }) => <div>{title}</div>;"
        renamed = rename_primary_declaration(code, 'Box')

        assert "const Theme = { color: 'teal' };" in renamed
        assert 'const Box = ({ title })' in renamed

    def test_named_export_unit(self):
        component = Component(
            name='Header',
            code="const NAV_LINKS = ['Home'];\nexport function Navbar() { return <nav>{NAV_LINKS}</nav>; }",
        )
        unit, declared = rewrite_unit(component, 'Header', ['Header'])

        assert declared
        assert "const NAV_LINKS = ['Home'];" in unit.body
        assert 'function Header()' in unit.body
        assert 'const Header = [' not in unit.body

    def test_wrap_declared(self):
        wrapped, declared = wrap_unit('function Header() { return null; }', 'Header')

        assert declared
        assert wrapped.startswith('const Header = (function () {')
        assert "return typeof Header !== 'undefined'" in wrapped

    def test_wrap_undeclared_returns_null_component(self):
        wrapped, declared = wrap_unit('const other = 1;', 'Header')

        assert not declared
        assert 'return function Header() { return null; };' in wrapped
        assert 'typeof Header' not in wrapped

    def test_rewrite_unit_renames_to_exposed_identifier(self):
        component = Component(name='Hero Section', code="export default function Hero() { return <h1>Hi</h1>; }")
        unit, declared = rewrite_unit(component, 'HeroSection', ['HeroSection'])

        assert declared
        assert unit.exposed_identifier == 'HeroSection'
        assert 'function HeroSection()' in unit.body
        assert 'export' not in unit.body


class TestEntry:
    """Entry composition adaptation"""

    RENDER = "ReactDOM.createRoot(document.getElementById('root')).render(<App />);"

    def test_arrow_app_converted(self):
        code = 'const App = () => (<div><Header /></div>);'
        converted = convert_arrow_app(code)

        assert converted == 'function App() {\n  return (<div><Header /></div>);\n}'

    def test_arrow_app_with_block_body(self):
        converted = convert_arrow_app('const App = ({ title }) => {\n  return <h1>{title}</h1>;\n};')
        assert converted.startswith('function App({ title }) {')

    def test_missing_entry_is_synthesized(self):
        entry, mount_id, bindings, diagnostics = rewrite_entry(None, ['Header', 'Footer'])

        assert 'function App()' in entry
        assert '<Header />' in entry and '<Footer />' in entry
        assert 'createRoot' in entry
        assert mount_id == 'root'
        assert diagnostics == []

    def test_app_synthesized_when_entry_has_none(self):
        entry, _, _, _ = rewrite_entry("import Header from './Header';\n" + self.RENDER, ['Header'])

        assert entry.index('function App()') < entry.index('ReactDOM.createRoot')
        assert '<Header />' in entry

    def test_default_exported_app_renamed(self):
        source = 'export default function Main() { return <Header />; }'
        entry, _, _, _ = rewrite_entry(source, ['Header'])

        assert 'function App()' in entry
        assert 'Main' not in entry

    def test_render_call_appended(self):
        entry, _, _, _ = rewrite_entry('function App() { return <Header />; }', ['Header'])
        assert 'ReactDOM.createRoot(rootEl).render(<App />)' in entry

    def test_unresolved_tag_gets_fallback(self):
        source = 'function App() { return <><Header /><Missing /></>; }\n' + self.RENDER
        entry, _, bindings, diagnostics = rewrite_entry(source, ['Header'])

        assert entry.startswith('function Missing() { return null; }')
        assert bindings['Missing'] == 'fallback'
        assert bindings['Header'] == 'component'
        assert len(diagnostics) == 1

    def test_custom_mount_id(self):
        source = "function App() { return null; }\nReactDOM.createRoot(document.getElementById('app')).render(<App />);"
        _, mount_id, _, _ = rewrite_entry(source, [])
        assert mount_id == 'app'

    def test_component_placeholders_removed(self):
        source = 'const Header = [];\nfunction App() { return <Header />; }\n' + self.RENDER
        entry, _, _, _ = rewrite_entry(source, ['Header'])
        assert 'const Header = [];' not in entry


class TestRewriteProject:
    """Whole-project rewrites"""

    NAMES = ['Header', 'Hero', 'Footer']

    def _project(self, entry=None):
        components = tuple(
            _component(name, f"import React from 'react';\nexport default function {name}() {{ return <div>{name}</div>; }}\n")
            for name in self.NAMES
        )
        return GeneratedProject(components=components, entry_config=EntryConfig(main_jsx=entry) if entry else None)

    def test_each_name_declared_once_and_referenced(self, generated_project):
        for project in (self._project(), generated_project):
            result = rewrite_project(project)
            for unit in result.units:
                name = unit.exposed_identifier
                declarations = re.findall(r'(?m)^const ' + name + r' = \(function', result.script)
                assert len(declarations) == 1
                assert re.search(r'<' + name + r'\b', result.entry_source)

    def test_sibling_names_never_collide(self):
        result = rewrite_project(self._project())

        for unit in result.units:
            assert unit.body.startswith(f'const {unit.exposed_identifier} = (function () {{')
            assert unit.body.rstrip().endswith('})();')

    def test_duplicate_names_get_suffix(self):
        project = GeneratedProject(components=(
            _component('Header', 'export default function Header() { return null; }'),
            _component('Header', 'export default function Header() { return <nav />; }'),
        ))
        result = rewrite_project(project)

        assert [u.exposed_identifier for u in result.units] == ['Header', 'Header2']
        assert declares(result.units[1].body, 'Header2')

    def test_utils_not_rendered_by_synthesized_app(self):
        project = GeneratedProject(components=(
            _component('Header', 'export default function Header() { return null; }'),
            Component(name='Format', kind='util', path='src/utils/format.js', language='js',
                      code='export default function Format(v) { return String(v); }'),
        ))
        result = rewrite_project(project)

        assert [u.exposed_identifier for u in result.units] == ['Header', 'Format']
        assert '<Format' not in result.entry_source

    def test_stylesheets_are_not_units(self):
        project = GeneratedProject(components=(
            _component('Header', 'export default function Header() { return null; }'),
            Component(name='Theme', path='src/theme.css', language='css', code='body {}'),
        ))
        result = rewrite_project(project)
        assert [u.exposed_identifier for u in result.units] == ['Header']

    def test_missing_declaration_is_diagnosed(self):
        project = GeneratedProject(components=(_component('Header', 'const links = [];'),))
        result = rewrite_project(project)

        assert len(result.diagnostics) == 1
        assert 'return function Header() { return null; };' in result.units[0].body


class TestVanillaProject:
    """Script-only projects"""

    def test_units_appended_in_import_order(self):
        project = GeneratedProject(
            components=(
                Component(name='Footer', path='src/components/Footer.js', language='js',
                          code="export default function Footer() { return document.createElement('footer'); }"),
                Component(name='Header', path='src/components/Header.js', language='js',
                          code="export default function Header() { return document.createElement('header'); }"),
            ),
            entry_config=EntryConfig(main_js="import Header from './components/Header.js';\nimport Footer from './components/Footer.js';"),
        )
        result = rewrite_vanilla_project(project)

        assert result.mode == 'vanilla'
        assert result.mount_id == 'app'
        assert '[Header, Footer].forEach' in result.entry_source
        assert [u.exposed_identifier for u in result.units] == ['Footer', 'Header']
