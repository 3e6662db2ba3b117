import base64
import json

from assetpipe.sourcemap import extract_inline_map, embed_inline_map, concat


def inline(code, source_map, css=False):
    return embed_inline_map(code, source_map, css=css)


MAP_A = {'version': 3, 'sources': ['a.js'], 'names': [], 'mappings': 'AAAA'}
MAP_B = {'version': 3, 'sources': ['b.js'], 'names': [], 'mappings': 'AAAA'}


class TestInlineMaps(object):

    def test_no_map(self):
        assert extract_inline_map('var a;\n') == ('var a;\n', None)

    def test_extract_js(self):
        code, source_map = extract_inline_map(inline('var a;', MAP_A))
        assert code == 'var a;'
        assert source_map == MAP_A

    def test_extract_css(self):
        text = inline('h1 {}', MAP_A, css=True)
        assert text.endswith(' */\n')
        assert extract_inline_map(text) == ('h1 {}', MAP_A)

    def test_extract_foreign_annotation(self):
        """Maps written by other tools, without a charset and with the
        old ``@`` marker."""
        encoded = base64.b64encode(json.dumps(MAP_B).encode('utf-8'))
        text = 'b();\n//@ sourceMappingURL=data:application/json;base64,%s' % (
            encoded.decode('ascii'))
        assert extract_inline_map(text) == ('b();', MAP_B)

    def test_only_trailing_annotation(self):
        """An annotation followed by more code is not the file's map."""
        text = inline('var a;', MAP_A) + 'var b;\n'
        assert extract_inline_map(text) == (text, None)

    def test_external_map_reference_ignored(self):
        text = 'var a;\n//# sourceMappingURL=a.js.map\n'
        assert extract_inline_map(text) == (text, None)


class TestConcat(object):

    def test_plain(self):
        assert concat(['a();', 'b();']) == 'a();\nb();'
        assert concat(['a();\n', 'b();\n'], separator=';\n') == 'a();\n;\nb();\n'

    def test_index_map(self):
        result = concat([
            inline('a();\na2();', MAP_A),
            'x();',
            inline('b();', MAP_B),
        ], filename='app.js')
        code, source_map = extract_inline_map(result)
        assert code == 'a();\na2();\nx();\nb();'
        assert source_map['version'] == 3
        assert source_map['file'] == 'app.js'
        assert source_map['sections'] == [
            {'offset': {'line': 0, 'column': 0}, 'map': MAP_A},
            {'offset': {'line': 3, 'column': 0}, 'map': MAP_B},
        ]

    def test_css_annotation(self):
        result = concat([inline('h1 {}', MAP_A, css=True), 'h2 {}'], css=True)
        assert '/*# sourceMappingURL=' in result
        assert '//# sourceMappingURL=' not in result
        assert extract_inline_map(result)[0] == 'h1 {}\nh2 {}'
