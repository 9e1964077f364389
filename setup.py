from setuptools import find_packages, setup

setup(
    name="formy",
    version="0.1.0",
    description="Chainable multipart/form-data body builder with content type sniffing",
    license="MIT",
    python_requires=">=3.8",
    packages=find_packages(include=["formy", "formy.*"]),
    install_requires=[
        "filetype>=1.2.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "python-multipart>=0.0.13",
            "fastapi",
            "uvicorn",
            "curl_cffi>=0.7",
        ],
    },
    entry_points={
        "console_scripts": [
            "formy = formy.cli:main",
        ],
    },
)
