[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "faseal"
version = "0.1.0"
description = "Pure-Python ML-KEM-768, ML-DSA-65 and a hybrid ML-DSA-65 + Ed25519 signature scheme"
requires-python = ">=3.10"
keywords = ["ml-kem", "ml-dsa", "kyber", "dilithium", "post-quantum", "ed25519", "signature", "kem"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
]
dependencies = [
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["faseal"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
