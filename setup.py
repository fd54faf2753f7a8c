from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="petlens",
    version="0.1.0",
    author="PetLens",
    author_email="hello@petlens.dev",
    description="Classify cat and dog photos from uploads or pasted image URLs",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/petlens/petlens",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Scientific/Engineering :: Image Recognition",
    ],
    python_requires=">=3.9",
    install_requires=[
        "requests>=2.28.0",
        "idna>=3.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.2.0",
        "PyYAML>=6.0",
        "Pillow>=9.1.0",
        "numpy>=1.22.0",
    ],
    extras_require={
        "model": [
            "tensorflow>=2.12.0",
        ],
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "petlens=petlens.core.cli:main",
        ],
    },
    include_package_data=True,
)
