import nox

PYTHONS = ["3.11", "3.12", "3.13"]


@nox.session(python=PYTHONS)
def tests(session):
    session.install(".[dev]")
    session.run("pytest", *(session.posargs or ["tests", "--ignore=tests/c_e2e"]))


@nox.session(python=PYTHONS[-1])
def examples(session):
    """Run the calculator example end to end (binds port 8080)."""
    session.install(".[dev]")
    session.run("pytest", "tests/c_e2e", *session.posargs)
