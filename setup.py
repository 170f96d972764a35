from setuptools import setup, find_packages

packages = [x for x in find_packages('.') if x.startswith('logsieve')]

setup(
    name = "logsieve",
    version = "0.1.0",
    description = ("Bounded multi-source logcat store with a filter query language"),
    license = "BSD",
    packages=packages,
    install_requires=['pyzmq'],
    extras_require={
        'qt': ['PyQt6'],
        'test': ['pytest'],
    },
    classifiers=[],
)
