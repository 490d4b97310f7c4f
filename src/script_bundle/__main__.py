"""Entry point for ``python -m script_bundle``."""

from script_bundle.cli import app


def main() -> None:
    app(prog_name="script-bundle")


if __name__ == "__main__":
    main()
