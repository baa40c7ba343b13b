"""
Tests for the HTTP client and the command-line front end.

The client talks to a real application through Starlette's TestClient,
which is an httpx.Client.
"""

import io

import httpx
import pytest
from fastapi.testclient import TestClient

from bookstore.cli import (
    TokenStore,
    build_parser,
    dispatch,
    format_price,
    render_low_stock_alert,
    stock_badge,
)
from bookstore.client import (
    NETWORK_ERROR_MESSAGE,
    ApiError,
    InventoryClient,
    validate_book_form,
)

TEST_USERNAME = "tester"
TEST_PASSWORD = "secret123"


@pytest.fixture
def http(app):
    return TestClient(app)


@pytest.fixture
def anonymous(http):
    return InventoryClient("http://testserver", http=http)


@pytest.fixture
def api(anonymous):
    anonymous.register(TEST_USERNAME, TEST_PASSWORD)
    anonymous.login(TEST_USERNAME, TEST_PASSWORD)
    return anonymous


class TestInventoryClient:
    """Tests for InventoryClient against the running app."""

    def test_login_keeps_token(self, anonymous):
        anonymous.register(TEST_USERNAME, TEST_PASSWORD)

        user = anonymous.login(TEST_USERNAME, TEST_PASSWORD)

        assert user["username"] == TEST_USERNAME
        assert anonymous.token
        assert anonymous.verify()["username"] == TEST_USERNAME

    def test_bad_login(self, anonymous):
        with pytest.raises(ApiError) as exc_info:
            anonymous.login("nobody", "password")

        assert exc_info.value.kind == "unauthorized"
        assert exc_info.value.status_code == 401

    def test_requires_token(self, anonymous):
        with pytest.raises(ApiError) as exc_info:
            anonymous.list_books()

        assert exc_info.value.kind == "unauthorized"

    def test_crud(self, api, sample_book):
        created = api.create_book(sample_book)
        assert created["title"] == sample_book["title"]

        assert [b["id"] for b in api.list_books(search="hobbit")] == [created["id"]]
        assert api.list_books(category="Romance") == []

        updated = api.update_book(created["id"], {**sample_book, "quantity": 12})
        assert updated["quantity"] == 12
        assert updated["is_low_stock"] is False

        assert api.delete_book(created["id"]) == "Book deleted successfully"

        with pytest.raises(ApiError) as exc_info:
            api.get_book(created["id"])
        assert exc_info.value.kind == "not_found"
        assert exc_info.value.message == "Book not found"

    def test_duplicate_isbn(self, api, sample_book):
        api.create_book(sample_book)

        with pytest.raises(ApiError) as exc_info:
            api.create_book(sample_book)

        assert exc_info.value.kind == "duplicate_isbn"
        assert exc_info.value.status_code == 409

    def test_validation_error(self, api, sample_book):
        with pytest.raises(ApiError) as exc_info:
            api.create_book({**sample_book, "price": -1})

        assert exc_info.value.kind == "validation"
        assert exc_info.value.message == "Price must be a valid non-negative number"

    def test_dashboard(self, api, sample_books):
        for book in sample_books:
            api.create_book(book)

        assert api.dashboard_stats() == {
            "total_books": 3,
            "low_stock_books": 2,
            "highest_price": 20.0,
            "total_categories": 3,
        }

    def test_network_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = InventoryClient(
            "http://bookstore.invalid",
            token="t",
            http=httpx.Client(base_url="http://bookstore.invalid", transport=httpx.MockTransport(refuse)),
        )

        with pytest.raises(ApiError) as exc_info:
            client.list_books()

        assert exc_info.value.kind == "network"
        assert exc_info.value.message == NETWORK_ERROR_MESSAGE

    @pytest.mark.parametrize("status_code", [200, 502])
    def test_non_object_json_body(self, status_code):
        def respond(request):
            return httpx.Response(status_code, json=[1, 2])

        client = InventoryClient(
            "http://bookstore.invalid",
            token="t",
            http=httpx.Client(base_url="http://bookstore.invalid", transport=httpx.MockTransport(respond)),
        )

        with pytest.raises(ApiError) as exc_info:
            client.list_books()

        assert exc_info.value.kind == "internal"
        assert exc_info.value.status_code == status_code
        assert exc_info.value.message == f"Request failed with status {status_code}"


class TestValidateBookForm:
    """Tests for client-side form checks."""

    def test_complete_form(self, sample_book):
        assert validate_book_form(sample_book) is None

    def test_string_numbers(self, sample_book):
        assert validate_book_form({**sample_book, "price": "0", "quantity": "0"}) is None

    @pytest.mark.parametrize(
        "field, value, message",
        [
            ("title", "  ", "Title is required"),
            ("author", None, "Author is required"),
            ("isbn", "", "ISBN is required"),
            ("category", "", "Category is required"),
            ("price", "abc", "Price must be a valid non-negative number"),
            ("price", -3, "Price must be a valid non-negative number"),
            ("quantity", "1.5", "Quantity must be a valid non-negative integer"),
            ("quantity", -1, "Quantity must be a valid non-negative integer"),
        ],
    )
    def test_first_error(self, sample_book, field, value, message):
        assert validate_book_form({**sample_book, field: value}) == message


class TestRendering:
    def test_format_price(self):
        assert format_price(5) == "$5.00"
        assert format_price(12.999) == "$13.00"

    @pytest.mark.parametrize("quantity, badge", [(0, "Out of Stock"), (4, "Low Stock"), (5, "In Stock")])
    def test_stock_badge(self, quantity, badge):
        assert stock_badge(quantity) == badge

    def test_low_stock_alert_preview(self):
        books = [
            {"title": f"Book {i}", "author": "Someone", "quantity": i % 2}
            for i in range(7)
        ]

        alert = render_low_stock_alert(books)

        assert alert.startswith("Low Stock Alert (7 books)")
        assert "Out of Stock" in alert
        assert "1 left" in alert
        assert "2 more" in alert
        assert "more" not in render_low_stock_alert(books, show_all=True)

    def test_low_stock_alert_all_good(self):
        alert = render_low_stock_alert([{"title": "Dune", "author": "Frank Herbert", "quantity": 10}])

        assert alert.startswith("All Good!")


class TestCli:
    """Tests for command dispatch."""

    @pytest.fixture
    def tokens(self, tmp_path):
        return TokenStore(tmp_path / "token")

    def run(self, argv, client, tokens):
        out = io.StringIO()
        code = dispatch(build_parser().parse_args(argv), client, tokens, out)
        return code, out.getvalue()

    def test_login_saves_token(self, anonymous, tokens):
        anonymous.register(TEST_USERNAME, TEST_PASSWORD)

        code, output = self.run(["login", TEST_USERNAME, "--password", TEST_PASSWORD], anonymous, tokens)

        assert code == 0
        assert "Logged in as tester" in output
        assert tokens.load() == anonymous.token

    def test_logout_clears_token(self, api, tokens):
        tokens.save("saved-token")

        code, output = self.run(["logout"], api, tokens)

        assert code == 0
        assert tokens.load() is None

    def test_add_list_edit_delete(self, api, tokens):
        code, output = self.run(
            [
                "books", "add",
                "--title", "Dune",
                "--author", "Frank Herbert",
                "--isbn", "9780441013593",
                "--price", "9.5",
                "--quantity", "2",
                "--category", "Science Fiction",
            ],
            api,
            tokens,
        )
        assert code == 0
        assert "Book added successfully" in output
        book_id = api.list_books()[0]["id"]

        code, output = self.run(["books", "list", "--search", "herbert"], api, tokens)
        assert "Dune" in output
        assert "$9.50" in output
        assert "Low Stock" in output

        code, output = self.run(["books", "edit", book_id, "--quantity", "10"], api, tokens)
        assert code == 0
        book = api.get_book(book_id)
        assert book["quantity"] == 10
        assert book["title"] == "Dune"

        code, output = self.run(["books", "show", book_id], api, tokens)
        assert "In Stock" in output

        code, output = self.run(["books", "delete", book_id, "--yes"], api, tokens)
        assert code == 0
        assert "Book deleted successfully" in output
        assert api.list_books() == []

    def test_add_rejects_bad_form_locally(self, api, tokens, capsys):
        code, _ = self.run(
            [
                "books", "add",
                "--title", "Dune",
                "--author", "Frank Herbert",
                "--isbn", "9780441013593",
                "--price", "free",
                "--quantity", "2",
                "--category", "Science Fiction",
            ],
            api,
            tokens,
        )

        assert code == 2
        assert "Price must be a valid non-negative number" in capsys.readouterr().err
        assert api.list_books() == []

    def test_dashboard(self, api, tokens, sample_books):
        for book in sample_books:
            api.create_book(book)

        code, output = self.run(["dashboard"], api, tokens)

        assert code == 0
        assert "Total Books:   3" in output
        assert "Highest Price: $20.00" in output
        assert "Low Stock Alert (2 books)" in output

    def test_rejected_token_is_forgotten(self, anonymous, tokens, capsys):
        tokens.save("stale-token")
        anonymous.token = "stale-token"

        code, _ = self.run(["books", "list"], anonymous, tokens)

        assert code == 1
        assert tokens.load() is None
        assert "Invalid or expired token" in capsys.readouterr().err
