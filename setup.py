from setuptools import setup, find_packages

setup(
    name="udprelay",
    version="1.0.0",
    description="Connectionless UDP chat relay with presence tracking and idle eviction",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "colorama",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "udprelay-server = udprelay.server:main",
            "udprelay-client = udprelay.client:main",
        ],
    },
    python_requires=">=3.10",
)
