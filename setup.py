"""Setup script for labflow-report package following Cosmic Python pattern."""

from setuptools import setup, find_namespace_packages

setup(
    name="labflow-report",
    version="1.0.0",
    description="Lab order test matrix report for the LabFlow clinic",
    author="LabFlow Clinic Team",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["lab_report", "lab_report.*"]),
    py_modules=["config"],
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "uvicorn[standard]",
        "pydantic>=2",
        "sqlalchemy>=2,<2.1",
        "psycopg2-binary",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-cov",
            "httpx",
        ],
        "dev": [
            "black",
            "flake8",
            "mypy",
            "pre-commit",
        ],
    },
    entry_points={
        "console_scripts": [
            "lab-report-api=lab_report.entrypoints.report_api:main",
            "lab-report-seed=lab_report.entrypoints.seed:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Healthcare Industry",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Medical Science Apps.",
    ],
)
