from setuptools import setup, find_packages


setup(
    name="asarkit",
    version="0.1",
    packages=find_packages(include=["asarkit", "asarkit.*"]),
    description="Read-only access to asar archives with bounded per-file streams.",
    author="vercingetorx",
    python_requires=">=3.8",
    install_requires=[],
)
