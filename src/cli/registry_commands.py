"""Book registry CLI commands."""

from typing import NoReturn

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from src.app.core.services import (
    BookRegistryService,
    DbSessionService,
    InvalidIdentityError,
    JwtIdentitySource,
    PrincipalIdentitySource,
)
from src.app.core.services.registry import RegistryError, SqlRegistryStore
from src.app.entities.service.book import Book
from src.app.runtime.context import get_config
from src.app.runtime.init_db import init_db as create_tables

console = Console()

books_app = typer.Typer(help="📚 Register, transfer and inspect books")


def get_registry_service() -> BookRegistryService:
    """Build a registry over the configured database.

    The CLI always uses the SQL store; an in-memory registry would not
    outlive the command.
    """
    config = get_config()
    if config.registry.store != "sql":
        console.print("[dim]registry.store is not 'sql'; the CLI uses the database anyway[/dim]")
    database_service = DbSessionService(config.database)
    database_service.create_all()
    return BookRegistryService(
        SqlRegistryStore(database_service), PrincipalIdentitySource(), config.registry
    )


def _fail(exc: Exception, code: str) -> NoReturn:
    console.print(f"[red]❌ {code}: {exc}[/red]")
    raise typer.Exit(code=1) from exc


def _book_table(book: Book) -> Table:
    table = Table(title=f"Book {book.id}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Title", book.title)
    table.add_row("ISBN", book.isbn)
    table.add_row("Content hash", book.content_hash.hex())
    table.add_row("Royalty", f"{book.royalty_percent}%")
    table.add_row("Author", book.author)
    table.add_row("Owner", book.owner)
    table.add_row("Registered", book.created_at.isoformat())
    return table


@books_app.command("register")
def register_book(
    title: str = typer.Argument(..., help="Title of the book"),
    isbn: str = typer.Argument(..., help="ISBN of the listing"),
    content_hash: str = typer.Option(..., "--hash", help="Hex-encoded content fingerprint"),
    royalty: int = typer.Option(..., "--royalty", "-r", help="Royalty rate in percent"),
    caller: str = typer.Option(..., "--as", help="Identity registering the book"),
) -> None:
    """Register a new book owned by the caller."""
    try:
        raw_hash = bytes.fromhex(content_hash.removeprefix("0x"))
    except ValueError as e:
        console.print("[red]❌ --hash must be hex encoded[/red]")
        raise typer.Exit(code=2) from e

    limits = get_config().registry
    if not 0 < len(raw_hash) <= limits.content_hash_max_bytes:
        console.print(f"[red]❌ --hash must be 1 to {limits.content_hash_max_bytes} bytes[/red]")
        raise typer.Exit(code=2)
    if len(title) > limits.title_max_length or len(isbn) > limits.isbn_max_length:
        console.print("[red]❌ title or ISBN too long[/red]")
        raise typer.Exit(code=2)

    registry = get_registry_service()
    try:
        book_id = registry.register(title, isbn, raw_hash, royalty, caller)
    except RegistryError as e:
        _fail(e, e.code)
    except InvalidIdentityError as e:
        _fail(e, e.code)

    console.print(f"[green]✅ Registered book {book_id}[/green]")


@books_app.command("transfer")
def transfer_book(
    book_id: int = typer.Argument(..., help="ID of the book"),
    new_owner: str = typer.Argument(..., help="Identity receiving the book"),
    caller: str = typer.Option(..., "--as", help="Current owner performing the transfer"),
) -> None:
    """Transfer a book to a new owner."""
    registry = get_registry_service()
    try:
        registry.transfer_ownership(book_id, new_owner, caller)
    except RegistryError as e:
        _fail(e, e.code)
    except InvalidIdentityError as e:
        _fail(e, e.code)

    console.print(f"[green]✅ Book {book_id} now owned by {new_owner}[/green]")


@books_app.command("show")
def show_book(
    book_id: int = typer.Argument(..., help="ID of the book"),
) -> None:
    """Show the details of a book."""
    book = get_registry_service().get_details(book_id)
    if book is None:
        console.print(f"[yellow]No book with ID {book_id}[/yellow]")
        return
    console.print(_book_table(book))


@books_app.command("is-owner")
def is_owner(
    book_id: int = typer.Argument(..., help="ID of the book"),
    identity: str = typer.Argument(..., help="Identity to check"),
) -> None:
    """Print whether an identity currently owns a book."""
    owned = get_registry_service().is_owner(book_id, identity)
    console.print("true" if owned else "false")


def init_db() -> None:
    """Create the registry tables in the configured database."""
    create_tables()
    console.print("[green]✅ Database initialized[/green]")


def issue_token(
    identity: str = typer.Argument(..., help="Identity the token authenticates"),
    ttl: int | None = typer.Option(None, "--ttl", help="Lifetime in seconds"),
) -> None:
    """Print a bearer token for calling the HTTP API as an identity."""
    try:
        token = JwtIdentitySource().issue_token(identity, expires_in_seconds=ttl)
    except InvalidIdentityError as e:
        _fail(e, e.code)
    typer.echo(token)


def serve(
    host: str | None = typer.Option(None, "--host", help="Interface to bind (default: app.host)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind (default: app.port)"),
) -> None:
    """Run the HTTP API with uvicorn."""
    from src.app.api.http.app import app as http_app

    app_config = get_config().app.model_copy(
        update={k: v for k, v in {"host": host, "port": port}.items() if v is not None}
    )
    console.print(f"[green]🚀 Serving the book registry on {app_config.base_url}[/green]")
    # Logging is already routed through loguru; access logs come from the middleware
    uvicorn.run(
        http_app,
        host=app_config.host,
        port=app_config.port,
        access_log=False,
        log_config=None,
    )
