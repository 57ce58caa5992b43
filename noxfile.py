"""
Nox configuration for the realtime_chat project.

This file defines test sessions for running tests, linting, and other
quality assurance tasks across multiple Python versions.
"""

import nox


PYTHON_VERSIONS = ["3.9", "3.10", "3.11", "3.12"]


@nox.session(python=PYTHON_VERSIONS)
def tests(session):
    """Run the test suite with pytest."""
    session.install("-e", ".[test]")

    session.run(
        "pytest",
        "realtime_chat/tests/",
        "--cov=realtime_chat",
        "--cov-report=term-missing",
        "-v"
    )


@nox.session(python="3.12")
def lint(session):
    """Run linting tools."""
    session.install("flake8", "black", "isort", "mypy")
    session.install("-e", ".")

    session.run("black", "--check", "--diff", "realtime_chat/")
    session.run("isort", "--check-only", "--diff", "realtime_chat/")
    session.run("flake8", "realtime_chat/")
    session.run("mypy", "realtime_chat/")


@nox.session(python="3.12")
def format(session):
    """Format code with black and isort."""
    session.install("black", "isort")

    session.run("black", "realtime_chat/")
    session.run("isort", "realtime_chat/")


@nox.session(python="3.12")
def type_check(session):
    """Run type checking with mypy."""
    session.install("mypy")
    session.install("-e", ".")

    session.run("mypy", "realtime_chat/")


nox.options.sessions = ["tests"]
