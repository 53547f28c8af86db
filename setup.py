from setuptools import setup, find_packages

setup(
    name="wikipedia_stats",
    version="0.1.0",
    description="Streaming extraction and aggregate statistics over Wikipedia meta-history dumps",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.20.0",
        "python-dateutil",
        "pytz",
        "tqdm",
    ],
    extras_require={
        "dev": [
            "pytest",
        ]
    },
    python_requires=">=3.9",
    entry_points={
        "console_scripts": [
            "wiki-stats=wikipedia_stats.cli:main",
        ],
    },
)
