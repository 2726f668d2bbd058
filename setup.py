from setuptools import setup

with open('README.rst') as f:
    readme = f.read()

setup(
    name='adb_wire',
    version='0.1.0',
    description='A Python implementation of the ADB wire protocol: connect, authenticate, upgrade to TLS, and run services.',
    long_description=readme,
    keywords=['adb', 'android'],
    url='https://github.com/JeffLIrion/adb_wire',
    author='Jeff Irion',
    author_email='jefflirion@users.noreply.github.com',
    packages=['adb_wire', 'adb_wire.auth', 'adb_wire.transport'],
    install_requires=[],
    tests_require=['cryptography', 'pytest'],
    extras_require = {'test': ['cryptography', 'pytest']},
    python_requires='>=3.6',
    classifiers=['Operating System :: OS Independent',
                 'License :: OSI Approved :: Apache Software License',
                 'Programming Language :: Python :: 3'],
    test_suite='tests'
)
