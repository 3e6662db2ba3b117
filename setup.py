#!/usr/bin/env python
import os
from setuptools import setup, find_packages


# Figure out the version. This could also be done by importing the
# module, the parsing takes place for historical reasons.
import re
here = os.path.dirname(os.path.abspath(__file__))
version_re = re.compile(
    r'__version__ = (\(.*?\))')
fp = open(os.path.join(here, 'src/assetpipe', '__init__.py'))
version = None
for line in fp:
    match = version_re.search(line)
    if match:
        version = eval(match.group(1))
        break
else:
    raise Exception("Cannot find version in __init__.py")
fp.close()


setup(
    name='assetpipe',
    version=".".join(map(str, version)),
    description='Static asset pipeline for front-end projects, with a '
        'live-reloading development server',
    long_description='Compiles Sass, prefixes and minifies CSS, transpiles '
        'and concatenates Javascript with source maps, compresses images '
        'and copies vendor files into a distribution directory. A '
        'development mode serves the project, watches the sources and '
        'pushes changes to the browser.',
    license='BSD',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Environment :: Web Environment',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Operating System :: OS Independent',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Topic :: Internet :: WWW/HTTP',
        'Topic :: Software Development :: Build Tools',
        ],
    entry_points="""[console_scripts]\nassetpipe = assetpipe.script:run\n""",
    packages=find_packages('src'),
    package_dir={'': 'src'},
    python_requires='>=3.7',
    install_requires=[
        'libsass',
        'PyYAML',
        'glob2',
        'livereload',
        'tornado',
    ],
    extras_require={
        'test': ['pytest', 'mock'],
    },
)
