import nox
from pathlib import Path

ROOT = Path(__file__).parent

@nox.session
def tests(session: nox.Session) -> None:
    """Run the test suite."""
    session.install("-r", "requirements.txt")
    session.install("-e", ".[test]")
    session.run("pytest")

@nox.session
def smoke(session: nox.Session) -> None:
    """Ensure the package imports and the bundled table loads in a clean environment."""
    session.install("-r", "requirements.txt")
    session.install("-e", ".")
    session.run("python", "-c", "import hcdating; hcdating.get_table()")
    session.run("hcdating", "bounds")
