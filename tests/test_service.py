import io
import json
import os
import zipfile
from unittest.mock import MagicMock

import pytest

from sitecraft import service
from sitecraft.codegen import materializer
from sitecraft.codegen.errors import GenerationError, PersistenceFault
from sitecraft.codegen.models import GeneratedProject


@pytest.fixture
def pipeline(monkeypatch, tmp_path, canonical_response):
    """Patch every external call the generation pipeline makes"""
    mocks = {
        'generate': MagicMock(return_value={
            'success': True,
            'response_text': canonical_response,
            'model': 'v0-1.5-lg',
        }),
        'save_website': MagicMock(side_effect=lambda user_id, name, prompt, project: {
            'success': True,
            'website': {'id': 'site-1', 'user_id': user_id, 'name': name, 'prompt': prompt},
        }),
        'save_prompt_history': MagicMock(return_value={'success': True}),
        'update_website': MagicMock(return_value={'success': True, 'website': None}),
        'log_generation': MagicMock(),
        'backup_enabled': MagicMock(return_value=False),
        'store_backup': MagicMock(return_value={'success': True}),
    }

    monkeypatch.setattr(service.generator, 'generate_website_code', mocks['generate'])
    monkeypatch.setattr(service.store, 'save_website', mocks['save_website'])
    monkeypatch.setattr(service.store, 'save_prompt_history', mocks['save_prompt_history'])
    monkeypatch.setattr(service.store, 'update_website', mocks['update_website'])
    monkeypatch.setattr(service.gcp, 'log_generation', mocks['log_generation'])
    monkeypatch.setattr(service.gcp, 'backup_enabled', mocks['backup_enabled'])
    monkeypatch.setattr(service.gcp, 'store_backup', mocks['store_backup'])
    monkeypatch.setattr(materializer, 'GENERATED_SITES_DIR', str(tmp_path))
    return mocks


class TestGenerateWebsite:
    """End-to-end generation with external calls patched"""

    def test_success(self, pipeline, tmp_path, canonical_response):
        website = service.generate_website('user-1', 'a bakery website', 'Sweet Crumbs')

        expected_path = os.path.join(str(tmp_path), 'user-1', 'site-1')
        assert website['id'] == 'site-1'
        assert website['generated_path'] == expected_path
        assert os.path.exists(os.path.join(expected_path, 'src', 'components', 'Hero.jsx'))

        project = pipeline['save_website'].call_args.args[3]
        assert isinstance(project, GeneratedProject)
        assert [c.name for c in project.components] == ['Header', 'Hero']

        pipeline['save_prompt_history'].assert_called_once_with(
            'user-1', 'a bakery website', canonical_response, 'site-1'
        )
        pipeline['update_website'].assert_called_once_with('site-1', {'generated_path': expected_path})

        log_kwargs = pipeline['log_generation'].call_args.kwargs
        assert log_kwargs['success'] is True
        assert log_kwargs['components'] == 2
        assert log_kwargs['shape'] == 'generated'
        pipeline['store_backup'].assert_not_called()

    def test_updated_record_is_returned(self, pipeline):
        stored = {'id': 'site-1', 'name': 'Sweet Crumbs', 'generated_path': '/srv/sites/user-1/site-1'}
        pipeline['update_website'].return_value = {'success': True, 'website': stored}

        assert service.generate_website('user-1', 'a bakery website', 'Sweet Crumbs') == stored

    def test_legacy_response(self, pipeline):
        pipeline['generate'].return_value = {
            'success': True,
            'response_text': '{"html":"<div>x</div>","css":"body{margin:0}","js":"console.log(1)"}',
            'model': 'v0-1.5-lg',
        }

        website = service.generate_website('user-1', 'tiny page', 'Tiny')

        assert sorted(os.listdir(website['generated_path'])) == ['app.js', 'index.html', 'styles.css']
        assert pipeline['log_generation'].call_args.kwargs['shape'] == 'legacy'

    def test_backup_when_enabled(self, pipeline):
        pipeline['backup_enabled'].return_value = True

        service.generate_website('user-1', 'a bakery website', 'Sweet Crumbs')

        user_id, website_id, archive = pipeline['store_backup'].call_args.args
        assert (user_id, website_id) == ('user-1', 'site-1')
        with zipfile.ZipFile(io.BytesIO(archive)) as zip_file:
            metadata = json.loads(zip_file.read('metadata.json'))
        assert metadata['website_id'] == 'site-1'
        assert metadata['shape'] == 'generated'

    def test_generation_failure(self, pipeline):
        pipeline['generate'].return_value = {'success': False, 'model': 'v0-1.5-lg', 'error': 'Invalid API key'}

        with pytest.raises(GenerationError, match='Invalid API key'):
            service.generate_website('user-1', 'a bakery website', 'Sweet Crumbs')

        pipeline['save_website'].assert_not_called()
        assert pipeline['log_generation'].call_args.kwargs['success'] is False

    def test_save_failure(self, pipeline):
        pipeline['save_website'].side_effect = None
        pipeline['save_website'].return_value = {'success': False, 'error': 'Database error: boom'}

        with pytest.raises(GenerationError, match='Database error'):
            service.generate_website('user-1', 'a bakery website', 'Sweet Crumbs')

        pipeline['save_prompt_history'].assert_not_called()

    def test_materialization_failure_keeps_record(self, pipeline, tmp_path):
        lock_dir = tmp_path / 'user-1' / 'site-1'
        lock_dir.mkdir(parents=True)
        (lock_dir / materializer.LOCK_FILE).write_text('')

        with pytest.raises(PersistenceFault) as exc_info:
            service.generate_website('user-1', 'a bakery website', 'Sweet Crumbs')

        assert exc_info.value.website['id'] == 'site-1'
        pipeline['update_website'].assert_not_called()
        assert pipeline['log_generation'].call_args.kwargs['success'] is False
