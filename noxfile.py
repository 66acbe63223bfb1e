import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13", "3.14"]


def _install(session: nox.Session) -> None:
    """Install the project with its test extra into the nox virtualenv."""
    session.run(
        "poetry",
        "install",
        "--extras",
        "test",
        external=True,
    )


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run full test suite across Python versions."""
    _install(session)
    session.run("pytest")


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Run domain-layer tests only (no browser or HTTP stack exercised)."""
    _install(session)
    session.run("pytest", "tests/shipping/domain/")


@nox.session
def browsers(session: nox.Session) -> None:
    """Install the Chromium build Playwright drives in production."""
    _install(session)
    session.run("playwright", "install", "chromium")
