"""Module entrypoint for ``python -m academy_api`` CLI usage."""

from academy_api.cli import app as cli_app


def main() -> None:
    cli_app()


if __name__ == "__main__":
    main()
