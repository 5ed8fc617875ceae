"""
Packaging for llm-doc-commenter.
"""

import re
from pathlib import Path

from setuptools import setup, find_packages

HERE = Path(__file__).parent
VERSION = re.search(
    r'__version__ = "([^"]+)"',
    (HERE / "llm_doc_commenter" / "__init__.py").read_text(encoding="utf-8"),
).group(1)

readme = HERE / "README.md"

setup(
    name="llm-doc-commenter",
    version=VERSION,
    author="AI Innovation Hub",
    description=(
        "Find functions and classes without a technical and a simple "
        "explanation and insert documentation comments above them"
    ),
    long_description=readme.read_text(encoding="utf-8") if readme.exists() else "",
    long_description_content_type="text/markdown",
    packages=find_packages(include=["llm_doc_commenter", "llm_doc_commenter.*"]),
    python_requires=">=3.9",
    install_requires=[
        "click>=8.0.0",
        "pyyaml>=6.0",
        "pydantic>=2.0.0",
        "anthropic>=0.18.0",
        "openai>=1.0.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "ollama": ["ollama>=0.1.0"],
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "llm-doc-commenter=llm_doc_commenter.src.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Documentation",
        "Programming Language :: Python :: 3",
    ],
)
