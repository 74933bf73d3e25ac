from __future__ import annotations

from setuptools import find_namespace_packages, setup

setup(
    name="qcmap",
    version="0.1.0",
    description=(
        "Constrained backtracking line search for quasiconformal surface-mapping "
        "optimizers"
    ),
    python_requires=">=3.10",
    packages=find_namespace_packages(
        include=["core", "core.*", "geometry", "geometry.*", "runtime", "runtime.*", "qcmap", "qcmap.*"]
    ),
    install_requires=[
        "numpy",
        "scipy",
        "PyYAML",
    ],
    extras_require={"test": ["pytest"]},
)
