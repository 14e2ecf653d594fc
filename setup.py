import os
import re

import setuptools

here = os.path.abspath(os.path.dirname(__file__))

# read the package metadata without importing the package
with open(os.path.join(here, "ode_engine", "version.py"), "r", encoding="utf-8") as fh:
    version_info = dict(re.findall(r'^(PACKAGE_\w+) = "(.*)"$', fh.read(), flags=re.M))

with open(os.path.join(here, "README.md"), "r", encoding="utf-8") as fh:
    long_description = fh.read()

setuptools.setup(
    name=version_info["PACKAGE_NAME"],
    version=version_info["PACKAGE_VERSION"],
    author=version_info["PACKAGE_AUTHOR"],
    description="A small Python package for numerical integration of ordinary differential equations.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(exclude=["testing", "testing.*"]),
    classifiers=[
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Intended Audience :: Developers',
        'Intended Audience :: Education',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        "Operating System :: OS Independent",
        'Topic :: Scientific/Engineering',
        'Topic :: Scientific/Engineering :: Mathematics',
        'Topic :: Software Development',
        'Topic :: Software Development :: Libraries',
        'Topic :: Software Development :: Libraries :: Python Modules',
    ],
    python_requires='>=3.8',
    install_requires=[
        "absl-py",
        "pandas",
        "numpy",
        "scipy",
        "tqdm",
        "tabulate"
    ],
    extras_require={
        "test": ["pytest"]
    }
)
