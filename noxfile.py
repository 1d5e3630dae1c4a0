import nox

PYTHON_VERSIONS = ["3.10", "3.11", "3.12"]
PACKAGE = "src/cqrs_ddd_relation_filters"
LOCATIONS = ["src", "tests", "noxfile.py"]

nox.options.sessions = ["lint", "type_check", "arch_check", "tests"]


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Unit, evaluator/compiler equivalence and SQLite backend tests."""
    session.install("-e", ".[dev]")
    session.run("pytest", "--ignore=tests/architecture", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def autoformat(session: nox.Session) -> None:
    session.install("ruff")
    session.run("ruff", "check", "--fix", *LOCATIONS)
    session.run("ruff", "format", *LOCATIONS)


@nox.session(python=PYTHON_VERSIONS[-1])
def lint(session: nox.Session) -> None:
    session.install("ruff")
    session.run("ruff", "check", *LOCATIONS)
    session.run("ruff", "format", "--check", *LOCATIONS)


@nox.session(python=PYTHON_VERSIONS)
def type_check(session: nox.Session) -> None:
    session.install("-e", ".[dev]")
    session.run("mypy", PACKAGE)


@nox.session(python=PYTHON_VERSIONS[-1])
def arch_check(session: nox.Session) -> None:
    """Import boundaries: the core never reaches into the SQL backend."""
    session.install("-e", ".[dev]")
    session.run("pytest", "--no-cov", "tests/architecture", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def dead_code(session: nox.Session) -> None:
    session.install("vulture")
    session.run("vulture", "--min-confidence", "80", PACKAGE)
