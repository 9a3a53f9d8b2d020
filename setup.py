# -*-coding:utf-8-*-
"""setup for outline-vpn-client"""

from setuptools import setup

setup(
    name="outline-vpn-client",
    version="1.0.0",
    packages=["outline_client"],
    python_requires=">=3.9",
    license="MIT",
    description="Python client for the Outline VPN server management API",
    long_description=open("README.md", "r").read(),  # pylint: disable=R1732
    long_description_content_type="text/markdown",
    install_requires=("requests", "urllib3", "python-dotenv"),
    extras_require={"test": ("pytest",)},
)
