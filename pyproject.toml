[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "metablog"
version = "0.1.0"
description = "Building blocks for a static blog of LaTeX articles: TeX lexing, bibliography parsing, asset handling and HTML page rendering"
requires-python = ">=3.11"
keywords = ["blog", "static-site", "latex", "bibtex", "html"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Internet :: WWW/HTTP :: Site Management",
    "Topic :: Text Processing :: Markup :: LaTeX",
]
dependencies = [
    "pygments",
    "pyyaml",
    "tomli-w",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["metablog"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
