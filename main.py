import logging
import subprocess
import sys
import webbrowser
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from config import settings
from errors import LibraryError
from library import Library
from seed import seed_demo_data
from utils.ui_helpers import (
    print_books_result,
    print_stats_result,
    print_users_result,
    set_output_mode,
)

APP_NAME = "Library CLI"

console = Console()


def build_library() -> Library:
    """Create the process-wide library. State lives in memory only, so it is re-seeded per run."""
    lib = Library()
    if settings.seed_demo_data:
        seed_demo_data(lib)
    return lib


# --- Typer CLI Application ---
app = typer.Typer(help=APP_NAME)


@app.callback()
def _global_options(
    ctx: typer.Context,
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
):
    """Global options for the CLI (output mode)."""
    logging.basicConfig(level=settings.log_level)
    if output:
        set_output_mode(output)
    ctx.obj = build_library()


@app.command("list")
def cli_list(ctx: typer.Context):
    """List all books, alphabetically by title."""
    print_books_result(ctx.obj.list_all_books())


@app.command("available")
def cli_available(ctx: typer.Context):
    """List books that can be borrowed right now."""
    print_books_result(ctx.obj.list_available_books(), "No available books.")


@app.command("borrowed")
def cli_borrowed(ctx: typer.Context):
    """List books currently on loan."""
    print_books_result(ctx.obj.list_borrowed_books(), "No borrowed books.")


@app.command("find")
def cli_find(ctx: typer.Context, book_id: str):
    """Find a book by id and show its details."""
    book = ctx.obj.find_book_by_id(book_id)
    if book:
        print("Book Found")
        print(f"Title: {book.title}")
        print(f"Author: {book.author}")
        print(f"ISBN: {book.book_id}")
        print(f"Pages: {book.page_count}")
        if book.publisher:
            print(f"Publisher: {book.publisher}")
        if book.publication_date:
            print(f"Published: {book.publication_date.isoformat()}")
        print(f"Status: {'Available' if book.available else 'Borrowed'}")
    else:
        print(f"Book with ISBN {book_id} not found.")


@app.command("search")
def cli_search(ctx: typer.Context, query: str = typer.Argument(..., help="Title or author fragment")):
    """Search books by title or author."""
    print_books_result(ctx.obj.search_books(query), f"No books matching '{query}'.")


@app.command("author")
def cli_author(ctx: typer.Context, name: str = typer.Argument(..., help="Author name, any case")):
    """List the books of one author."""
    print_books_result(ctx.obj.find_books_by_author(name), f"No books by {name}.")


@app.command("authors")
def cli_authors(ctx: typer.Context):
    """List all unique authors in the catalog."""
    authors = ctx.obj.list_authors()
    if not authors:
        print("No books in library.")
        return
    print(f"Authors ({len(authors)}):")
    for author in authors:
        print(f"- {author}")


@app.command("users")
def cli_users(ctx: typer.Context, name: Optional[str] = typer.Option(None, "--name", "-n", help="Filter by name")):
    """List registered users."""
    lib = ctx.obj
    print_users_result(lib.find_users_by_name(name) if name else lib.list_users())


@app.command("stats")
def cli_stats(ctx: typer.Context):
    """Show library statistics."""
    print_stats_result(ctx.obj.get_statistics())


@app.command("demo")
def cli_demo(ctx: typer.Context):
    """Borrow and return every available book with the first registered user."""
    lib = ctx.obj
    users = lib.list_users()
    if not users:
        print("No users registered.")
        return
    user = users[0]
    for book in lib.list_available_books():
        try:
            lib.borrow_book(book.book_id, user.user_id)
            print(f"Borrowed: {book.title} by {user.name}, due {book.due_date().isoformat()}")
        except LibraryError as e:
            print(f"Error: {e}")
    print(f"{user.name} now holds {user.current_loans}/{user.max_loans} loan(s).")
    for book in lib.loans_for(user.user_id):
        receipt = lib.return_book(book.book_id)
        message = f"Returned: {book.title}"
        if receipt.overdue:
            message += f" ({receipt.days_overdue} day(s) late)"
        print(message)
    print_stats_result(lib.get_statistics())


@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
    open_browser: bool = typer.Option(True, "--browser/--no-browser", help="Open the HTML listing"),
):
    """Start the HTTP API with Uvicorn."""
    host = host or settings.api_host
    port = int(port or settings.api_port)
    url = f"http://{host}:{port}/"
    print(f"Starting web UI on {url}")
    if open_browser:
        try:
            webbrowser.open(url)
        except webbrowser.Error:
            console.print("[yellow]Could not open a web browser automatically.[/]")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "api:create_app",
        "--factory",
        "--host", host,
        "--port", str(port),
    ]
    try:
        subprocess.run(args)
    except FileNotFoundError:
        console.print(Panel.fit("`uvicorn` not found. Make sure it is installed.", border_style="red"))


if __name__ == "__main__":
    app()
