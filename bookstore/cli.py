"""
Command-line front end for the Bookstore Inventory API.

Usage:
    bookstore login admin
    bookstore books list --search tolkien --category Fantasy
    bookstore books add --title "The Hobbit" --author "J.R.R. Tolkien" \\
        --isbn 9780547928227 --price 12.99 --quantity 4 --category Fantasy
    bookstore books edit <id> --quantity 10
    bookstore dashboard
"""

import argparse
import getpass
import os
import sys
from pathlib import Path
from typing import Optional, TextIO

from loguru import logger

from bookstore import __version__
from bookstore.client import (
    COMMON_CATEGORIES,
    ApiError,
    InventoryClient,
    validate_book_form,
)

DEFAULT_API_URL = "http://127.0.0.1:5000"
DEFAULT_TOKEN_FILE = Path.home() / ".bookstore" / "token"

LOW_STOCK_THRESHOLD = 5
ALERT_PREVIEW = 5

BOOK_FIELDS = ("title", "author", "isbn", "price", "quantity", "category")


class TokenStore:
    """Bearer token persisted between invocations."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[str]:
        if not self.path.exists():
            return None
        token = self.path.read_text(encoding="utf-8").strip()
        return token or None

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(token, encoding="utf-8")
        os.chmod(self.path, 0o600)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


# =============================================================================
# Rendering
# =============================================================================

def format_price(price: float) -> str:
    return f"${float(price):.2f}"


def stock_badge(quantity: int) -> str:
    if quantity == 0:
        return "Out of Stock"
    if quantity < LOW_STOCK_THRESHOLD:
        return "Low Stock"
    return "In Stock"


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 3] + "..."


def render_book_table(books: list[dict]) -> str:
    """Render books as a fixed-width table."""
    if not books:
        return "No books found."

    columns = [
        ("ID", 36),
        ("Title", 30),
        ("Author", 20),
        ("ISBN", 15),
        ("Category", 15),
        ("Price", 10),
        ("Qty", 5),
        ("Stock", 12),
    ]
    lines = ["  ".join(name.ljust(width) for name, width in columns).rstrip()]
    lines.append("  ".join("-" * width for _, width in columns))

    for book in books:
        cells = [
            book["id"],
            book["title"],
            book["author"],
            book["isbn"],
            book["category"],
            format_price(book["price"]),
            str(book["quantity"]),
            stock_badge(book["quantity"]),
        ]
        lines.append(
            "  ".join(
                _truncate(cell, width).ljust(width) for cell, (_, width) in zip(cells, columns)
            ).rstrip()
        )

    lines.append("")
    lines.append(f"{len(books)} book(s)")
    return "\n".join(lines)


def render_book_detail(book: dict) -> str:
    return "\n".join([
        f"Title:    {book['title']}",
        f"Author:   {book['author']}",
        f"ISBN:     {book['isbn']}",
        f"Category: {book['category']}",
        f"Price:    {format_price(book['price'])}",
        f"Quantity: {book['quantity']} ({stock_badge(book['quantity'])})",
        f"ID:       {book['id']}",
        f"Added:    {book['created_at']}",
        f"Updated:  {book['updated_at']}",
    ])


def render_stats(stats: dict) -> str:
    return "\n".join([
        "Inventory Dashboard",
        "===================",
        f"Total Books:   {stats['total_books']}",
        f"Low Stock:     {stats['low_stock_books']}",
        f"Highest Price: {format_price(stats['highest_price'])}",
        f"Categories:    {stats['total_categories']}",
    ])


def render_low_stock_alert(books: list[dict], show_all: bool = False) -> str:
    """Low-stock books, at most ALERT_PREVIEW unless show_all."""
    low_stock = [b for b in books if b["quantity"] < LOW_STOCK_THRESHOLD]
    if not low_stock:
        return "All Good! No books are running low on stock."

    lines = [f"Low Stock Alert ({len(low_stock)} books)"]
    shown = low_stock if show_all else low_stock[:ALERT_PREVIEW]
    for book in shown:
        remaining = "Out of Stock" if book["quantity"] == 0 else f"{book['quantity']} left"
        lines.append(f"  - {book['title']} by {book['author']}: {remaining}")

    hidden = len(low_stock) - len(shown)
    if hidden > 0:
        lines.append(f"  ... and {hidden} more (use --all to show them)")
    return "\n".join(lines)


# =============================================================================
# Commands
# =============================================================================

def _book_form(args: argparse.Namespace, current: Optional[dict] = None) -> dict:
    """Collect the six book fields, falling back to the current record."""
    form = {}
    for field in BOOK_FIELDS:
        value = getattr(args, field, None)
        if value is None and current is not None:
            value = current[field]
        form[field] = value
    return form


def _cmd_login(args, client: InventoryClient, tokens: TokenStore, out: TextIO) -> int:
    password = args.password or getpass.getpass("Password: ")
    user = client.login(args.username, password)
    tokens.save(client.token)
    print(f"Logged in as {user['username']}.", file=out)
    return 0


def _cmd_logout(args, client: InventoryClient, tokens: TokenStore, out: TextIO) -> int:
    tokens.clear()
    client.token = None
    print("Logged out.", file=out)
    return 0


def _cmd_whoami(args, client: InventoryClient, tokens: TokenStore, out: TextIO) -> int:
    user = client.verify()
    print(user["username"], file=out)
    return 0


def _cmd_list(args, client: InventoryClient, tokens: TokenStore, out: TextIO) -> int:
    books = client.list_books(search=args.search, category=args.category)
    print(render_book_table(books), file=out)
    return 0


def _cmd_show(args, client: InventoryClient, tokens: TokenStore, out: TextIO) -> int:
    print(render_book_detail(client.get_book(args.id)), file=out)
    return 0


def _cmd_add(args, client: InventoryClient, tokens: TokenStore, out: TextIO) -> int:
    form = _book_form(args)
    error = validate_book_form(form)
    if error:
        print(f"Error: {error}", file=sys.stderr)
        return 2

    book = client.create_book(form)
    print(f"Book added successfully ({book['id']}).", file=out)
    return 0


def _cmd_edit(args, client: InventoryClient, tokens: TokenStore, out: TextIO) -> int:
    current = client.get_book(args.id)
    form = _book_form(args, current)
    error = validate_book_form(form)
    if error:
        print(f"Error: {error}", file=sys.stderr)
        return 2

    client.update_book(args.id, form)
    print("Book updated successfully.", file=out)
    return 0


def _cmd_delete(args, client: InventoryClient, tokens: TokenStore, out: TextIO) -> int:
    if not args.yes:
        answer = input(f"Delete book {args.id}? [y/N] ").strip().lower()
        if answer not in ("y", "yes"):
            print("Cancelled.", file=out)
            return 0

    print(client.delete_book(args.id), file=out)
    return 0


def _cmd_dashboard(args, client: InventoryClient, tokens: TokenStore, out: TextIO) -> int:
    stats = client.dashboard_stats()
    print(render_stats(stats), file=out)
    print("", file=out)

    if stats["low_stock_books"] > 0:
        books = client.list_books()
        print(render_low_stock_alert(books, show_all=args.all), file=out)
    else:
        print(render_low_stock_alert([]), file=out)
    return 0


def _cmd_categories(args, client: InventoryClient, tokens: TokenStore, out: TextIO) -> int:
    for category in COMMON_CATEGORIES:
        print(category, file=out)
    return 0


def _add_book_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--title")
    parser.add_argument("--author")
    parser.add_argument("--isbn")
    parser.add_argument("--price")
    parser.add_argument("--quantity")
    parser.add_argument(
        "--category",
        help=f"e.g. {', '.join(COMMON_CATEGORIES[:5])} (see 'bookstore categories')",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bookstore", description="Bookstore inventory client")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--api-url",
        default=os.getenv("BOOKSTORE_API_URL", DEFAULT_API_URL),
        help="API server root",
    )
    parser.add_argument(
        "--token-file",
        type=Path,
        default=Path(os.getenv("BOOKSTORE_TOKEN_FILE", str(DEFAULT_TOKEN_FILE))),
    )
    parser.add_argument("--verbose", action="store_true", help="Show client logs")

    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login", help="Log in and save the token")
    login.add_argument("username")
    login.add_argument("--password", help="Prompted for if omitted")
    login.set_defaults(handler=_cmd_login)

    commands.add_parser("logout", help="Forget the saved token").set_defaults(handler=_cmd_logout)
    commands.add_parser("whoami", help="Show the logged-in user").set_defaults(handler=_cmd_whoami)
    commands.add_parser("categories", help="List common categories").set_defaults(
        handler=_cmd_categories
    )

    books = commands.add_parser("books", help="Manage books")
    book_commands = books.add_subparsers(dest="books_command", required=True)

    list_parser = book_commands.add_parser("list", help="List and search books")
    list_parser.add_argument("--search", help="Title, author or ISBN substring")
    list_parser.add_argument("--category", help="Exact category, or 'all'")
    list_parser.set_defaults(handler=_cmd_list)

    show = book_commands.add_parser("show", help="Show one book")
    show.add_argument("id")
    show.set_defaults(handler=_cmd_show)

    add = book_commands.add_parser("add", help="Add a book")
    _add_book_options(add)
    add.set_defaults(handler=_cmd_add)

    edit = book_commands.add_parser("edit", help="Edit a book; omitted fields keep their value")
    edit.add_argument("id")
    _add_book_options(edit)
    edit.set_defaults(handler=_cmd_edit)

    delete = book_commands.add_parser("delete", help="Delete a book")
    delete.add_argument("id")
    delete.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
    delete.set_defaults(handler=_cmd_delete)

    dashboard = commands.add_parser("dashboard", help="Inventory statistics")
    dashboard.add_argument("--all", action="store_true", help="List every low-stock book")
    dashboard.set_defaults(handler=_cmd_dashboard)

    return parser


def dispatch(
    args: argparse.Namespace,
    client: InventoryClient,
    tokens: TokenStore,
    out: TextIO = sys.stdout,
) -> int:
    """
    Run the parsed command.

    Returns the process exit code. API failures are printed, not raised; a
    rejected token is forgotten so the next run asks for a login.
    """
    try:
        return args.handler(args, client, tokens, out)
    except ApiError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        if e.kind == "unauthorized" and args.command != "login":
            tokens.clear()
            print("Please log in again: bookstore login <username>", file=sys.stderr)
        return 1


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "ERROR")

    tokens = TokenStore(args.token_file)
    with InventoryClient(args.api_url, token=tokens.load()) as client:
        return dispatch(args, client, tokens)


if __name__ == "__main__":
    sys.exit(main())
