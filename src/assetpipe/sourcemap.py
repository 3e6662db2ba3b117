"""Inline source maps, as written by the compilers in development mode,
and their combination when files get concatenated.

A concatenated file gets an index map (a map with ``sections``), one
section per input that carried a map of its own, placed at the line
where that input starts in the result.
"""

import base64
import json
import re


__all__ = ('extract_inline_map', 'embed_inline_map', 'concat')


_DATA_URI = (r'sourceMappingURL=data:application/json;'
             r'(?:charset=[^;,]+;)?base64,([A-Za-z0-9+/=]+)')
INLINE_MAP_RE = re.compile(
    r'(?://[#@] %s[ \t]*|/\*[#@] %s[ \t]*\*/[ \t]*)\s*\Z' % (
        _DATA_URI, _DATA_URI))


def extract_inline_map(text):
    """Split a trailing inline source map off ``text``.

    Returns ``(code, source_map)``; ``source_map`` is the decoded dict,
    or ``None`` if ``text`` does not end with one.
    """
    match = INLINE_MAP_RE.search(text)
    if not match:
        return text, None
    encoded = match.group(1) or match.group(2)
    source_map = json.loads(base64.b64decode(encoded).decode('utf-8'))
    return text[:match.start()].rstrip('\n'), source_map


def embed_inline_map(text, source_map, css=False):
    """Append ``source_map`` to ``text`` as a data uri annotation."""
    encoded = base64.b64encode(
        json.dumps(source_map).encode('utf-8')).decode('ascii')
    url = 'sourceMappingURL=data:application/json;charset=utf-8;base64,%s' % encoded
    if css:
        return '%s\n/*# %s */\n' % (text, url)
    return '%s\n//# %s\n' % (text, url)


def concat(parts, separator='\n', filename=None, css=False):
    """Join the text ``parts`` with ``separator``, combining their inline
    source maps, if any, into an index map for the result.
    """
    chunks = []
    sections = []
    line = 0
    for i, part in enumerate(parts):
        if i:
            chunks.append(separator)
            line += separator.count('\n')
        code, source_map = extract_inline_map(part)
        if source_map is not None:
            sections.append({
                'offset': {'line': line, 'column': 0},
                'map': source_map,
            })
        chunks.append(code)
        line += code.count('\n')

    result = ''.join(chunks)
    if not sections:
        return result
    index = {'version': 3, 'sections': sections}
    if filename:
        index['file'] = filename
    return embed_inline_map(result, index, css=css)
