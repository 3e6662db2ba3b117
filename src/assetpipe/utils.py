import os
import re

import glob2


__all__ = ('expand_braces', 'glob_base', 'has_magic', 'find_files',
           'relpath_posix')


magic_check = re.compile(r'[*?[{]')
brace_group = re.compile(r'\{([^{}]*)\}')


def has_magic(s):
    return magic_check.search(s) is not None


def expand_braces(pattern):
    """Expand ``{a,b}`` alternatives in ``pattern``, which glob itself
    does not understand::

        >>> expand_braces('img/*.{png,gif}')
        ['img/*.png', 'img/*.gif']
    """
    match = brace_group.search(pattern)
    if not match:
        return [pattern]
    result = []
    for alternative in match.group(1).split(','):
        result.extend(expand_braces(
            pattern[:match.start()] + alternative + pattern[match.end():]))
    return result


def glob_base(pattern):
    """Return the leading directory of ``pattern`` that contains no
    wildcards. Output paths are built relative to this base, so that
    ``src/scss/a/b.scss`` matched by ``src/scss/**/*.scss`` ends up as
    ``a/b.scss``.
    """
    parts = pattern.replace('\\', '/').split('/')
    base = []
    for part in parts[:-1]:
        if has_magic(part):
            break
        base.append(part)
    return '/'.join(base) or '.'


def find_files(pattern, root='.'):
    """Resolve ``pattern`` relative to ``root`` and return the matching
    files (no directories) as a sorted list of absolute paths.

    A pattern which does not match anything, including one pointing
    into a directory that does not exist, simply gives no files.
    """
    found = set()
    for expanded in expand_braces(pattern):
        full = os.path.join(root, expanded)
        if not has_magic(expanded):
            matches = [full] if os.path.exists(full) else []
        else:
            matches = glob2.glob(full)
        for filename in matches:
            if os.path.isfile(filename):
                found.add(os.path.normpath(os.path.abspath(filename)))
    return sorted(found)


def relpath_posix(path, start):
    return os.path.relpath(path, start).replace(os.sep, '/')
