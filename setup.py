# -*- coding: utf-8 -*-
from setuptools import setup

# Import version from openidrp library itself
VERSION = __import__('openidrp').__version__
INSTALL_REQUIRES = [
    'cryptography',
    'lxml',
    'requests',
]
EXTRAS_REQUIRE = {
    'quality': ('flake8', 'isort'),
    'tests': ('testfixtures', 'responses', 'coverage'),
}
LONG_DESCRIPTION = open('README.md').read() + '\n\n' + open('Changelog.md').read()
CLASSIFIERS = [
    'Development Status :: 4 - Beta',
    'Environment :: Web Environment',
    'Intended Audience :: Developers',
    'License :: OSI Approved :: Apache Software License',
    'Operating System :: POSIX',
    'Programming Language :: Python',
    'Programming Language :: Python :: 3',
    'Topic :: Internet :: WWW/HTTP',
    'Topic :: Software Development :: Libraries :: Python Modules',
    'Topic :: System :: Systems Administration :: Authentication/Directory',
]


setup(
    name='python-openidrp',
    version=VERSION,
    description='Python OpenID relying party - OpenID 1.1 and 2.0 authentication for web applications.',
    long_description=LONG_DESCRIPTION,
    long_description_content_type='text/markdown',
    packages=['openidrp',
              'openidrp.consumer',
              'openidrp.store',
              'openidrp.yadis',
              'openidrp.extensions',
              'openidrp.test',
              ],
    package_data={'openidrp.test': ['data/*']},
    python_requires='>=3.6',
    install_requires=INSTALL_REQUIRES,
    extras_require=EXTRAS_REQUIRE,
    # license specified by classifier.
    classifiers=CLASSIFIERS,
)
