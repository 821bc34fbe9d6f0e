"""
This module configures the package for distribution and installation.
"""

from setuptools import setup, find_packages

setup(
    name="pymandel",
    version="0.1.0",
    packages=find_packages(),
    package_data={"pymandel": ["public/*.html"]},
    python_requires=">=3.9",
    install_requires=["pygame", "pillow", "numpy", "flask"],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": [
            "pymandel = pymandel.__main__:main",
        ]
    },
)
