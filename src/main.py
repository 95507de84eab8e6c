"""Main entry point for the ator-tasks command line."""
from cli import cli


def main():
    cli(prog_name='ator-tasks')

if __name__ == "__main__":
    main()
