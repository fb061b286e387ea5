from setuptools import setup, find_packages

setup(
    name="certmonitor",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "cryptography>=43.0.0",
        "pyOpenSSL>=24.0.0",
        "asn1crypto>=1.5.1",
        "pydantic>=2.0",
        "python-dotenv>=0.21.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    python_requires=">=3.9",
    entry_points={
        "console_scripts": [
            "certmonitor=certmonitor.main:main",
        ],
    },
)
