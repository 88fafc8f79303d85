"""Main CLI application module."""

import typer

from .registry_commands import books_app, init_db, issue_token, serve

# Create the main CLI application
app = typer.Typer(
    help="📚 Book Registry CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register command groups
app.add_typer(books_app, name="books")
app.command("init-db")(init_db)
app.command("token")(issue_token)
app.command("serve")(serve)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
