from setuptools import setup, find_namespace_packages
from pathlib import Path

# Read the requirements from requirements.txt
reqs_path = Path(__file__).parent / "requirements.txt"
requirements = [
    line.strip()
    for line in reqs_path.read_text().splitlines()
    if line.strip() and not line.startswith("#")
]

setup(
    name="headerscan",
    version="0.1.0",
    description="License header compliance scanner",
    packages=find_namespace_packages(include=["headerscan", "headerscan.*"]),
    package_data={"headerscan": ["templates/*.txt"]},
    python_requires=">=3.11",
    install_requires=requirements,
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["headerscan = headerscan.cli:run"]},
)
