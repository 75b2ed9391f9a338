"""Allow running dirscope as ``python -m dirscope``."""

from dirscope.cli.main import app

if __name__ == "__main__":
    app()
