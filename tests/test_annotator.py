import logging

import pytest

from src.markup import (
    EditLocation,
    annotate_source,
    annotate_tree,
    format_edit_id,
    is_in_scope,
    parse_edit_id,
    transform,
)


HOME = '''import React from 'react';

export default function Home({ name }) {
  return (
    <main>
      <h1 className="title">Welcome</h1>
      <p>Hello {name}</p>
      <Button {...props}>Go</Button>
      <span>Plain</span>
    </main>
  );
}
'''

PATH = 'src/pages/Home.jsx'


def strip_markers(code, result):
    for edit_id in result.editable_ids:
        code = code.replace(f' data-edit-id="{edit_id}"', '', 1)
    return code.replace(' data-edit-disabled="true"', '')


@pytest.fixture
def home_result():
    result = annotate_source(HOME, PATH)
    assert result is not None
    return result


class TestAnnotateSource:

    def test_marks_editable_and_disabled_elements(self, home_result):
        assert home_result.editable_ids == [f'{PATH}:6:7', f'{PATH}:9:7']
        assert home_result.disabled_count == 2
        code = home_result.code
        assert f'<h1 className="title" data-edit-id="{PATH}:6:7">Welcome</h1>' in code
        assert '<p data-edit-disabled="true">Hello {name}</p>' in code
        assert '<Button {...props} data-edit-disabled="true">Go</Button>' in code
        assert f'<span data-edit-id="{PATH}:9:7">Plain</span>' in code
        assert '<main>' in code

    def test_all_other_text_is_unchanged(self, home_result):
        assert strip_markers(home_result.code, home_result) == HOME

    def test_identifiers_are_unique(self, home_result):
        assert len(set(home_result.editable_ids)) == len(home_result.editable_ids)

    def test_identifier_points_at_opening_tag(self, home_result):
        lines = HOME.splitlines()
        for edit_id in home_result.editable_ids:
            location = parse_edit_id(edit_id)
            assert location.file_path == PATH
            assert lines[location.line - 1][location.column - 1] == '<'

    def test_second_pass_changes_nothing(self, home_result):
        assert annotate_source(home_result.code, PATH) is None

    def test_nothing_to_mark_returns_none(self):
        assert annotate_source('export const x = <div><img src="a.png" /></div>;', PATH) is None

    def test_parse_failure_returns_none_and_logs(self, caplog):
        with caplog.at_level(logging.ERROR):
            assert annotate_source('const x = <div><p>a</p>', 'src/Broken.jsx') is None
        assert 'Could not parse src/Broken.jsx' in caplog.text

    def test_malformed_existing_identifier_is_left_alone(self, caplog):
        code = 'const x = <p data-edit-id="nonsense">Hi</p>;'
        with caplog.at_level(logging.WARNING):
            assert annotate_source(code, PATH) is None
        assert 'Ignoring malformed data-edit-id' in caplog.text

    def test_typescript_generics_do_not_confuse_the_scanner(self):
        code = (
            "const [v, setV] = useState<string>('');\n"
            "const ok = count < limit;\n"
            "return <p>{v}</p>;\n"
        )
        result = annotate_source(code, 'src/A.tsx')
        assert result.disabled_count == 1
        assert result.editable_ids == []

    def test_generic_function_type_alias_does_not_block_the_file(self):
        code = 'type Identity = <T>(value: T) => T;\nexport const Home = () => <p>Hello</p>;\n'
        result = annotate_source(code, 'src/Home.tsx')
        assert result.editable_ids == ['src/Home.tsx:2:27']

    def test_column_after_astral_character_counts_utf16_units(self):
        code = 'const x = <li>\U0001F680 <span>Fast</span></li>;'
        result = annotate_source(code, 'src/A.tsx')
        assert 'src/A.tsx:1:18' in result.editable_ids
        assert 'data-edit-id="src/A.tsx:1:18"' in result.code

    def test_custom_tag_allowlist(self):
        result = annotate_source('const x = <div>Hi</div>;', PATH, editable_tags=['div'])
        assert result.editable_ids == [f'{PATH}:1:11']


class TestPositionMap:

    def test_maps_original_offsets_forward_and_back(self, home_result):
        position_map = home_result.position_map
        for marker in ('Welcome', 'Plain', '</main>', 'import'):
            original = HOME.index(marker)
            generated = position_map.to_generated(original)
            assert home_result.code[generated:].startswith(marker)
            assert position_map.to_original(generated) == original

    def test_offsets_inside_inserted_text_map_to_insertion_point(self, home_result):
        position_map = home_result.position_map
        at, length = position_map.insertions[0]
        assert at == HOME.index('"title"') + len('"title"')
        assert position_map.to_original(at + 3) == at
        assert position_map.to_original(at + length) == at

    def test_serializes(self, home_result):
        data = home_result.position_map.to_dict()
        assert data['version'] == 1
        assert data['file'] == PATH
        assert len(data['insertions']) == 4
        assert '"insertions"' in home_result.position_map.to_json()


class TestScope:

    def test_in_scope(self, tmp_path):
        assert is_in_scope(tmp_path / 'src' / 'App.tsx', tmp_path)
        assert is_in_scope(tmp_path / 'src' / 'App.jsx', tmp_path)

    def test_out_of_scope(self, tmp_path):
        assert not is_in_scope(tmp_path / 'src' / 'App.ts', tmp_path)
        assert not is_in_scope(tmp_path / 'node_modules' / 'lib' / 'x.jsx', tmp_path)
        assert not is_in_scope(tmp_path.parent / 'elsewhere.jsx', tmp_path)

    def test_transform_uses_project_relative_path(self, tmp_path):
        code = 'export const App = () => <p>Hi</p>;\n'
        result = transform(code, tmp_path / 'src' / 'App.tsx', tmp_path)
        column = code.index('<p>') + 1
        assert result.editable_ids == [f'src/App.tsx:1:{column}']

    def test_transform_skips_out_of_scope(self, tmp_path):
        code = 'export const App = () => <p>Hi</p>;\n'
        assert transform(code, tmp_path / 'node_modules' / 'x' / 'App.jsx', tmp_path) is None


def test_annotate_tree_writes_in_scope_files(tmp_path):
    code = 'export const App = () => <p>Hi</p>;\n'
    (tmp_path / 'src').mkdir()
    (tmp_path / 'node_modules' / 'pkg').mkdir(parents=True)
    (tmp_path / 'src' / 'App.jsx').write_text(code, encoding='utf-8')
    (tmp_path / 'src' / 'util.js').write_text(code, encoding='utf-8')
    (tmp_path / 'node_modules' / 'pkg' / 'index.jsx').write_text(code, encoding='utf-8')

    results = annotate_tree(tmp_path, write=True)

    assert list(results) == ['src/App.jsx']
    written = (tmp_path / 'src' / 'App.jsx').read_text(encoding='utf-8')
    assert 'data-edit-id="src/App.jsx:1:' in written
    assert (tmp_path / 'src' / 'util.js').read_text(encoding='utf-8') == code
    assert (tmp_path / 'node_modules' / 'pkg' / 'index.jsx').read_text(encoding='utf-8') == code


def test_annotate_tree_dry_run_leaves_files(tmp_path):
    code = 'export const App = () => <h2>Hi</h2>;\n'
    (tmp_path / 'App.tsx').write_text(code, encoding='utf-8')
    results = annotate_tree(tmp_path)
    assert list(results) == ['App.tsx']
    assert (tmp_path / 'App.tsx').read_text(encoding='utf-8') == code


class TestEditId:

    def test_format_uses_one_based_column(self):
        assert format_edit_id('src/A.tsx', 3, 4) == 'src/A.tsx:3:5'

    def test_parse(self):
        assert parse_edit_id('src/A.tsx:3:5') == EditLocation('src/A.tsx', 3, 5)

    def test_parse_path_with_colons(self):
        assert parse_edit_id('C:/app/A.tsx:3:5').file_path == 'C:/app/A.tsx'

    @pytest.mark.parametrize('value', ['', None, 'abc', 'a:b', 'a.tsx:x:1', ':1:2'])
    def test_parse_rejects_malformed(self, value):
        assert parse_edit_id(value) is None
