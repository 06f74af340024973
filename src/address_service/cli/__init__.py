"""CLI commands for the address service.

Provides command-line interface using Typer:
- address-service serve: Run the API server
- address-service clear-cache: Flush every cache namespace and the Redis database

Usage:
    address-service --help
    address-service serve --port 8080
    address-service clear-cache
"""

import typer

from address_service.cli.cache_cmd import app as cache_app
from address_service.cli.serve import app as serve_app

# Main CLI application
app = typer.Typer(
    name="address-service",
    help="Address service: address CRUD with a Redis read-through cache",
    no_args_is_help=True,
)

app.add_typer(serve_app, name="serve")
app.add_typer(cache_app, name="clear-cache")


@app.callback()
def callback() -> None:
    """Address service: address CRUD with a Redis read-through cache."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
