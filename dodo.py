"""
Doit file to wrap development workflow commands.
"""

import shutil
from pathlib import Path

from doit import task_params
from doit.task import Task
from doit.tools import create_folder

PACKAGE = "blog_cli"

TEST_PATH = Path("test")

SOURCES = sorted(str(p) for p in Path(PACKAGE).rglob("*.py"))
TEST_SOURCES = sorted(str(p) for p in TEST_PATH.rglob("*.py"))

# artifact output
OUT_PATH = Path("__out__")

# test coverage results
TESTS_PATH = OUT_PATH / "test"
JUNIT_PATH = TESTS_PATH / "junit.xml"
COV_PATH = TESTS_PATH / "cov"
COV_HTML_PATH = COV_PATH / "html"
COV_XML_PATH = COV_PATH / "coverage.xml"

# static analysis results
ANALYSIS_PATH = OUT_PATH / "analysis"
MYPY_PATH = ANALYSIS_PATH / "mypy"
MYPY_HTML_PATH = MYPY_PATH / "html"


def cleanup_dir(output_dir: Path):
    if output_dir.exists():
        shutil.rmtree(output_dir)


@task_params(
    [
        {
            "name": "suite",
            "long": "suite",
            "type": str,
            "default": "",
            "choices": [("", "all"), ("core", ""), ("tools", "")],
            "help": "Only run tests under test/<suite>",
        },
        {
            "name": "keyword",
            "short": "k",
            "type": str,
            "default": "",
            "help": "Only run tests matching this pytest -k expression",
        },
    ]
)
def task_pytest(suite: str, keyword: str) -> Task:
    """
    Run pytest and generate coverage reports.
    """

    args = [
        "pytest",
        str(TEST_PATH / suite) if suite else str(TEST_PATH),
        f"--cov={PACKAGE}",
        f"--cov-report=html:{COV_HTML_PATH}",
        f"--cov-report=xml:{COV_XML_PATH}",
        f"--junitxml={JUNIT_PATH}",
    ]

    if keyword:
        args += ["-k", f"'{keyword}'"]

    return Task(
        "test",
        actions=[
            (create_folder, [COV_PATH]),
            " ".join(args),
        ],
        targets=[
            f"{COV_HTML_PATH}/index.html",
            COV_XML_PATH,
            JUNIT_PATH,
        ],
        file_dep=SOURCES + TEST_SOURCES,
        clean=[(cleanup_dir, [COV_PATH])],
        verbosity=2,
    )


def task_format() -> Task:
    """
    Run formatters on package and tests.
    """

    paths = [PACKAGE, str(TEST_PATH), "dodo.py"]

    return Task(
        "format",
        actions=[
            " ".join(
                [
                    "autoflake",
                    "--remove-all-unused-imports",
                    "--remove-unused-variables",
                    "-i",
                    "-r",
                    *paths,
                ]
            ),
            " ".join(["isort", *paths]),
            " ".join(["black", *paths]),
            "toml-sort -i pyproject.toml",
        ],
        targets=[],
        file_dep=[],
    )


def task_analysis() -> Task:
    """
    Run static analysis on package.
    """

    return Task(
        "analysis",
        actions=[
            (create_folder, [MYPY_PATH]),
            f"mypy --html-report {MYPY_HTML_PATH} {PACKAGE}",
            f"pyright {PACKAGE}",
        ],
        targets=[f"{MYPY_HTML_PATH}/index.html"],
        file_dep=SOURCES,
        clean=[(cleanup_dir, [ANALYSIS_PATH])],
    )
