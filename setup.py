# -*- coding: utf-8 -*-
import setuptools
import pathlib
import site
import sys

# odd bug with develop (editable) installs, see: https://github.com/pypa/pip/issues/7953
site.ENABLE_USER_SITE = "--user" in sys.argv[1:]

required = [
    "numpy",
    "simplejson>= 3.19.2",
    "pyvisa",
    "pyvisa_py",
    "pyusb",  # USB-TMC backend for pyvisa_py (CLD1015)
    "mashumaro[msgpack]",
    "loguru",
    "click>=8.0.0",
]

extras = {
    "test": ["pytest", "doit"],
}

here = pathlib.Path(__file__).parent.resolve()

long_description = (here / "README.md").read_text(encoding="utf-8")

# Read version
version = {}
with open(here / "src/lasersweep/_version.py", "r") as f:
    exec(f.read(), version)

if __name__ == "__main__":
    setuptools.setup(
        name="lasersweep",
        version=version["__version__"],
        description="Laser diode current sweep (L-I) control software.",
        long_description=long_description,
        long_description_content_type="text/markdown",
        keywords=[
            "laser diode",
            "L-I curve",
            "power meter",
            "SCPI",
            "VISA",
        ],
        classifiers=[
            "License :: OSI Approved :: MIT License",
            "Development Status :: 2 - Pre-Alpha",
        ],
        license="MIT",
        package_dir={"": "src"},
        packages=setuptools.find_packages(
            where="src",
            exclude=["*.test", "*.test.*", "test.*", "test", "test_*"],
        ),
        entry_points={
            "console_scripts": [
                "lasersweep=lasersweep.cli:cli",
            ],
        },
        install_requires=required,
        extras_require=extras,
        python_requires=">= 3.11",
        package_data={"": ["*.md", "*.ini"]},
    )
# https://setuptools.readthedocs.io/en/latest/userguide/datafiles.html
