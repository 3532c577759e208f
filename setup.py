from pathlib import Path

from setuptools import find_packages, setup

ROOT = Path(__file__).parent


def read_version() -> str:
    for line in (ROOT / "connprobe" / "__init__.py").read_text(encoding="utf-8").splitlines():
        if line.startswith("__version__"):
            return line.split("=", 1)[1].strip().strip("\"'")
    raise RuntimeError("unable to find __version__")


setup(
    name="connprobe",
    version=read_version(),
    description="On-demand reachability checks for database, HTTP and ping endpoints",
    python_requires=">=3.10",
    packages=find_packages(include=["connprobe", "connprobe.*"]),
    install_requires=[
        "aiohttp>=3.9",
        "pydantic>=2.5",
        "SQLAlchemy[asyncio]>=2.0.25",
        "aioodbc>=0.5",
        "oracledb>=2.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "anyio>=4.0",
            "cryptography>=41",
        ],
    },
    entry_points={
        "console_scripts": [
            "connprobe=connprobe.cli:main",
        ],
    },
)
