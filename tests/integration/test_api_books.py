"""Integration tests for the Books API."""

from httpx import AsyncClient

BOOK_PAYLOAD = {
    "title": "X",
    "author": "Y",
    "genre": "Z",
    "format": "PHYSICAL",
    "coverImage": "https://example.com/x.jpg",
}


class TestBooksAPI:
    """Integration tests for the Books API endpoints."""

    async def test_list_books_requires_login(self, client: AsyncClient):
        """Test that listing books without a token is rejected."""
        response = await client.get("/api/books")
        assert response.status_code == 401
        assert response.json()["detail"] == "برای دسترسی باید وارد حساب کاربری شوید"

    async def test_list_books_rejects_garbage_token(self, client: AsyncClient):
        """Test that a malformed bearer token counts as no token."""
        response = await client.get(
            "/api/books", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401

    async def test_list_books_empty(self, client: AsyncClient, auth_headers):
        """Test listing books when none exist."""
        response = await client.get("/api/books", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"Book": []}
        assert response.headers["cache-control"] == "private, max-age=60"

    async def test_list_books_only_own(
        self, client: AsyncClient, auth_headers, sample_book, other_user, make_book
    ):
        """Test that the list only contains the caller's books."""
        await make_book(other_user.id, title="Not Mine")

        response = await client.get("/api/books", headers=auth_headers)
        assert response.status_code == 200
        titles = [book["title"] for book in response.json()["Book"]]
        assert titles == [sample_book.title]

    async def test_list_books_newest_first(
        self, client: AsyncClient, auth_headers, user, make_book
    ):
        """Test that books are listed most recently added first."""
        first = await make_book(user.id, title="First")
        second = await make_book(user.id, title="Second")

        response = await client.get("/api/books", headers=auth_headers)
        ids = [book["id"] for book in response.json()["Book"]]
        assert ids == [second.id, first.id]

    async def test_create_book(self, client: AsyncClient, auth_headers, user):
        """Test creating a new book."""
        response = await client.post("/api/books", json=BOOK_PAYLOAD, headers=auth_headers)
        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "کتاب ایجاد شد"
        book = data["book"]
        assert "id" in book
        assert book["userId"] == user.id
        assert book["title"] == "X"
        assert book["coverImage"] == "https://example.com/x.jpg"
        assert book["status"] == "UNREAD"
        assert book["translator"] is None
        assert "createdAt" in book

    async def test_create_book_rejects_owner_in_body(
        self, client: AsyncClient, auth_headers, other_user
    ):
        """Test that the owner cannot be chosen by the client."""
        response = await client.post(
            "/api/books",
            json={**BOOK_PAYLOAD, "userId": other_user.id},
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_create_book_missing_fields(self, client: AsyncClient, auth_headers):
        """Test that required fields are reported."""
        response = await client.post(
            "/api/books",
            json={"title": "Only a title"},
            headers=auth_headers,
        )
        assert response.status_code == 400
        data = response.json()
        assert data["detail"] == "اطلاعات ارسالی نامعتبر است"
        fields = {error["field"] for error in data["errors"]}
        assert {"author", "genre", "format", "coverImage"} <= fields

    async def test_create_book_invalid_enum(self, client: AsyncClient, auth_headers):
        """Test that an unknown format is rejected."""
        response = await client.post(
            "/api/books",
            json={**BOOK_PAYLOAD, "format": "AUDIOBOOK"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_create_book_blank_title(self, client: AsyncClient, auth_headers):
        """Test that a whitespace-only title is rejected."""
        response = await client.post(
            "/api/books",
            json={**BOOK_PAYLOAD, "title": "   "},
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_create_book_requires_login(self, client: AsyncClient):
        """Test creating a book anonymously."""
        response = await client.post("/api/books", json=BOOK_PAYLOAD)
        assert response.status_code == 401

    async def test_get_book(self, client: AsyncClient, sample_book, sample_quote):
        """Test getting a book with its quotes, without logging in."""
        response = await client.get(f"/api/books/{sample_book.id}")
        assert response.status_code == 200
        book = response.json()["book"]
        assert book["id"] == sample_book.id
        assert book["title"] == sample_book.title
        assert [quote["id"] for quote in book["quotes"]] == [sample_quote.id]
        assert book["quotes"][0]["content"] == sample_quote.content

    async def test_get_book_not_found(self, client: AsyncClient):
        """Test getting a non-existent book."""
        response = await client.get("/api/books/99999")
        assert response.status_code == 404
        assert response.json()["detail"] == "کتاب پیدا نشد"

    async def test_get_book_non_numeric_id(self, client: AsyncClient):
        """Test that a non-numeric id is a validation error."""
        response = await client.get("/api/books/abc")
        assert response.status_code == 400

    async def test_update_book(self, client: AsyncClient, auth_headers, sample_book):
        """Test updating a book."""
        response = await client.put(
            f"/api/books/{sample_book.id}",
            json={"status": "READING", "progress": 40},
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "کتاب بروزرسانی شد"
        assert data["book"]["status"] == "READING"
        assert data["book"]["progress"] == 40
        assert data["book"]["title"] == sample_book.title

    async def test_update_book_clears_optional_field(
        self, client: AsyncClient, auth_headers, sample_book
    ):
        """Test that an explicit null clears an optional field."""
        response = await client.put(
            f"/api/books/{sample_book.id}",
            json={"publisher": None},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["book"]["publisher"] is None

    async def test_update_book_rejects_null_required_field(
        self, client: AsyncClient, auth_headers, sample_book
    ):
        """Test that a required field cannot be nulled out."""
        response = await client.put(
            f"/api/books/{sample_book.id}",
            json={"title": None},
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_update_book_empty_body(self, client: AsyncClient, auth_headers, sample_book):
        """Test that an update with no fields is rejected."""
        response = await client.put(
            f"/api/books/{sample_book.id}", json={}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "هیچ مقداری برای بروزرسانی ارسال نشده"

    async def test_update_book_unknown_field(
        self, client: AsyncClient, auth_headers, sample_book
    ):
        """Test that fields outside the book's editable set are rejected."""
        response = await client.put(
            f"/api/books/{sample_book.id}",
            json={"id": 12345},
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_update_book_progress_out_of_range(
        self, client: AsyncClient, auth_headers, sample_book
    ):
        """Test that progress above 100 is rejected."""
        response = await client.put(
            f"/api/books/{sample_book.id}",
            json={"progress": 101},
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_update_book_not_found(self, client: AsyncClient, auth_headers):
        """Test updating a non-existent book."""
        response = await client.put(
            "/api/books/99999", json={"title": "New"}, headers=auth_headers
        )
        assert response.status_code == 404

    async def test_update_book_not_owner(
        self, client: AsyncClient, other_auth_headers, sample_book
    ):
        """Test that another user cannot update the book."""
        response = await client.put(
            f"/api/books/{sample_book.id}",
            json={"title": "Hijacked"},
            headers=other_auth_headers,
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "دسترسی غیرمجاز"

    async def test_delete_book(
        self, client: AsyncClient, auth_headers, sample_book, sample_quote
    ):
        """Test deleting a book also removes its quotes."""
        book_id = sample_book.id
        quote_id = sample_quote.id

        response = await client.delete(f"/api/books/{book_id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "کتاب با موفقیت حذف شد"

        response = await client.get(f"/api/books/{book_id}")
        assert response.status_code == 404

        response = await client.get(f"/api/quotes/{quote_id}")
        assert response.status_code == 404

    async def test_delete_book_not_owner(
        self, client: AsyncClient, other_auth_headers, sample_book
    ):
        """Test that another user cannot delete the book."""
        response = await client.delete(
            f"/api/books/{sample_book.id}", headers=other_auth_headers
        )
        assert response.status_code == 403

    async def test_delete_book_not_found(self, client: AsyncClient, auth_headers):
        """Test deleting a non-existent book."""
        response = await client.delete("/api/books/99999", headers=auth_headers)
        assert response.status_code == 404


class TestBookSearchAPI:
    """Integration tests for the book search endpoint."""

    async def test_search_by_title(self, client: AsyncClient, auth_headers, user, make_book):
        """Test matching on a title substring, ignoring case."""
        await make_book(user.id, title="The Little Prince")
        await make_book(user.id, title="Dune")

        response = await client.get(
            "/api/books/search", params={"q": "little"}, headers=auth_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["books"][0]["title"] == "The Little Prince"
        assert data["totalPages"] == 1

    async def test_search_by_author_and_genre(
        self, client: AsyncClient, auth_headers, user, make_book
    ):
        """Test that author and genre are searched too."""
        await make_book(user.id, title="A", author="Frank Herbert", genre="Sci-fi")
        await make_book(user.id, title="B", author="Someone", genre="Poetry")

        response = await client.get(
            "/api/books/search", params={"q": "herbert"}, headers=auth_headers
        )
        assert [book["title"] for book in response.json()["books"]] == ["A"]

        response = await client.get(
            "/api/books/search", params={"q": "poet"}, headers=auth_headers
        )
        assert [book["title"] for book in response.json()["books"]] == ["B"]

    async def test_search_only_own_books(
        self, client: AsyncClient, auth_headers, other_user, make_book
    ):
        """Test that other users' books never match."""
        await make_book(other_user.id, title="Secret Garden")

        response = await client.get(
            "/api/books/search", params={"q": "garden"}, headers=auth_headers
        )
        assert response.json()["total"] == 0

    async def test_search_pagination(self, client: AsyncClient, auth_headers, user, make_book):
        """Test paging through results."""
        for number in range(5):
            await make_book(user.id, title=f"Saga {number}")

        response = await client.get(
            "/api/books/search",
            params={"q": "saga", "page": 3, "limit": 2},
            headers=auth_headers,
        )
        data = response.json()
        assert data["total"] == 5
        assert data["totalPages"] == 3
        assert data["page"] == 3
        assert data["limit"] == 2
        assert len(data["books"]) == 1

    async def test_search_wildcards_are_literal(
        self, client: AsyncClient, auth_headers, user, make_book
    ):
        """Test that % in the query only matches a literal percent sign."""
        await make_book(user.id, title="100% Pure")
        await make_book(user.id, title="Plain")

        response = await client.get(
            "/api/books/search", params={"q": "%"}, headers=auth_headers
        )
        assert [book["title"] for book in response.json()["books"]] == ["100% Pure"]

    async def test_search_empty_query(self, client: AsyncClient, auth_headers, sample_book):
        """Test that an empty query returns nothing."""
        response = await client.get(
            "/api/books/search", params={"q": "  "}, headers=auth_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["books"] == []
        assert data["total"] == 0
        assert data["totalPages"] == 0

    async def test_search_invalid_limit(self, client: AsyncClient, auth_headers):
        """Test that a limit above the maximum is rejected."""
        response = await client.get(
            "/api/books/search", params={"q": "x", "limit": 500}, headers=auth_headers
        )
        assert response.status_code == 400

    async def test_search_page_out_of_range(self, client: AsyncClient, auth_headers):
        """Test that a page number beyond the database range is a validation error."""
        response = await client.get(
            "/api/books/search", params={"q": "x", "page": 10**19}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "page"


class TestBookRequestLimits:
    """Out-of-range input and stale credentials answer with JSON errors."""

    async def test_get_book_id_out_of_range(self, client: AsyncClient):
        """Test that an id too large for the database is a validation error."""
        response = await client.get("/api/books/99999999999999999999")
        assert response.status_code == 400
        data = response.json()
        assert data["detail"] == "اطلاعات ارسالی نامعتبر است"
        assert data["errors"][0]["field"] == "book_id"

    async def test_update_book_id_out_of_range(self, client: AsyncClient, auth_headers):
        """Test the same bound on writes."""
        response = await client.put(
            "/api/books/99999999999999999999", json={"title": "T"}, headers=auth_headers
        )
        assert response.status_code == 400

    async def test_page_count_out_of_range(self, client: AsyncClient, auth_headers):
        """Test that page counts must fit the database column."""
        response = await client.post(
            "/api/books", json={**BOOK_PAYLOAD, "pageCount": 2**63}, headers=auth_headers
        )
        assert response.status_code == 400

    async def test_missing_field_message_is_persian(self, client: AsyncClient, auth_headers):
        """Test that validation messages are in the display language."""
        payload = {key: value for key, value in BOOK_PAYLOAD.items() if key != "author"}
        response = await client.post("/api/books", json=payload, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["errors"] == [{"field": "author", "message": "نام نویسنده الزامی است"}]

    async def test_unknown_field_message(self, client: AsyncClient, auth_headers):
        """Test the message for a field that may not be sent."""
        response = await client.post(
            "/api/books", json={**BOOK_PAYLOAD, "isAdmin": True}, headers=auth_headers
        )
        assert response.json()["errors"] == [
            {"field": "isAdmin", "message": "فیلد «isAdmin» مجاز نیست"}
        ]

    async def test_write_with_token_of_deleted_user(
        self, client: AsyncClient, test_session, user, auth_headers
    ):
        """Test that a valid token for a deleted user is rejected on writes."""
        await test_session.delete(user)
        await test_session.flush()

        response = await client.post("/api/books", json=BOOK_PAYLOAD, headers=auth_headers)
        assert response.status_code == 401
        assert response.json()["detail"] == "برای دسترسی باید وارد حساب کاربری شوید"
