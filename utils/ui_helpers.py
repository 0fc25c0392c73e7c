import os
import json
from typing import List, Any, Dict
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def _status(book: Any) -> str:
    if book.available:
        return "available"
    return f"borrowed by {book.borrower_id}, due {book.due_date()}"


def print_books_result(books: List[Any], empty_message: str = "No books in library.") -> None:
    """Print a book list in the current output mode.
    - plain: 'ID - Title by Author [status]' lines, or the empty message
    - json: JSON array of book dicts
    - rich: Rich table
    """
    mode = get_output_mode()

    if not books:
        print(empty_message)
        return

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="📚 Books", show_lines=True, header_style="bold cyan")
        table.add_column("ISBN", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Status", style="green")
        for b in books:
            table.add_row(b.book_id, b.title, b.author, _status(b))
        _console.print(table)
    else:
        for b in books:
            print(f"{b.book_id} - {b.title} by {b.author} [{_status(b)}]")


def print_users_result(users: List[Any]) -> None:
    mode = get_output_mode()

    if not users:
        print("No users registered.")
        return

    if mode == "json":
        print(json.dumps([u.to_dict() for u in users], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="👥 Users", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Name", style="white")
        table.add_column("Email", style="white")
        table.add_column("Type", style="white")
        table.add_column("Loans", style="green", justify="right")
        for u in users:
            table.add_row(u.user_id, u.name, u.email, u.user_type_label, f"{u.current_loans}/{u.max_loans}")
        _console.print(table)
    else:
        for u in users:
            print(f"{u.user_id} - {u.name} <{u.email}> {u.user_type_label} {u.current_loans}/{u.max_loans}")


def print_stats_result(stats: Dict[str, Any]) -> None:
    """Print statistics in the current output mode.
    - plain: one 'Label: value' line per metric
    - json: JSON object
    - rich: Panel with the main metrics
    """
    mode = get_output_mode()

    if not stats:
        print("No statistics available.")
        return

    if mode == "json":
        print(json.dumps(stats, ensure_ascii=False))
        return

    lines = [
        ("Total Books", stats.get("total_books", 0)),
        ("Available Books", stats.get("available_books", 0)),
        ("Borrowed Books", stats.get("borrowed_books", 0)),
        ("Unique Authors", stats.get("unique_authors", 0)),
        ("Total Users", stats.get("total_users", 0)),
        ("Overdue Books", stats.get("overdue_books", 0)),
    ]
    by_type = stats.get("users_by_type", {})

    if mode == "rich":
        content = "\n".join(f"[bold]{label}:[/] {value}" for label, value in lines)
        for label, count in sorted(by_type.items()):
            content += f"\n  {label}: {count}"
        _console.print(Panel.fit(content, title=f"📊 {stats.get('library_name', 'Stats')}", border_style="blue"))
    else:
        for label, value in lines:
            print(f"{label}: {value}")
        for label, count in sorted(by_type.items()):
            print(f"  {label}: {count}")
