"""Setup script for geo_photo_index package."""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README").read_text()

setup(
    name="geo-photo-index",
    version="2.0.0",
    author="stbrie",
    description="An incremental index of GPS-tagged photos with area selection and archive export",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "exif>=1.3.0",
        "geopy>=2.0.0",
        "Pillow>=10.0.0",
    ],
    extras_require={
        "server": ["fastapi>=0.100.0", "uvicorn>=0.23.0"],
        "test": ["pytest>=7.0.0", "httpx>=0.24.0", "fastapi>=0.100.0"],
        "all": ["fastapi>=0.100.0", "uvicorn>=0.23.0", "pytest>=7.0.0", "httpx>=0.24.0"],
    },
    entry_points={
        "console_scripts": [
            "geo-photo-index=geo_photo_index.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Graphics",
        "Topic :: Scientific/Engineering :: GIS",
    ],
    keywords="gps exif photo index thumbnail manifest geocoding zip",
)
