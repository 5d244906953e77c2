[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "carbonifer"
version = "0.1.0"
description = "Describe cloud resources from Terraform plans and look up the hardware power data of their machine types"
requires-python = ">=3.10"
keywords = ["terraform", "carbon", "emissions", "cloud", "gcp", "aws", "sustainability"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["carbonifer"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
