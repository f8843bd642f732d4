"""Unit tests for app.services.apply_fixes: description HTML, productUpdate errors, bounded bulk apply."""

import asyncio
import unittest

from app.schemas.products import ApplyDescriptionRequest
from app.services.apply_fixes import (
    PRODUCT_UPDATE_MUTATION,
    ApplyFixError,
    apply_descriptions,
    apply_product_description,
    description_to_html,
)
from app.services.catalog import ShopifyApiError


class _FakeAdmin:
    """Records productUpdate calls; user errors or API failures per product id."""

    def __init__(self, user_errors: dict[str, str] | None = None, api_failures: set[str] | None = None) -> None:
        self.user_errors = user_errors or {}
        self.api_failures = api_failures or set()
        self.calls: list[tuple[str, dict[str, object]]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def graphql(self, query: str, variables: dict[str, object] | None = None) -> dict[str, object]:
        variables = variables or {}
        self.calls.append((query, variables))
        product_id = variables["input"]["id"]
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if product_id in self.api_failures:
                raise ShopifyApiError("Shopify returned 500: boom", 500)
            errors = []
            if product_id in self.user_errors:
                errors = [{"field": ["descriptionHtml"], "message": self.user_errors[product_id]}]
            return {"data": {"productUpdate": {"product": {"id": product_id}, "userErrors": errors}}}
        finally:
            self.in_flight -= 1


class TestDescriptionToHtml(unittest.TestCase):
    def test_lines_become_paragraphs(self) -> None:
        self.assertEqual(description_to_html("First line\n\n  Second  \n"), "<p>First line</p><p>Second</p>")

    def test_blank_gives_empty_paragraph(self) -> None:
        self.assertEqual(description_to_html("\n  \n"), "<p></p>")


class TestApplyProductDescription(unittest.TestCase):
    def test_sends_mutation(self) -> None:
        admin = _FakeAdmin()
        asyncio.run(apply_product_description(admin, "gid://shopify/Product/1", "Gentle balm"))
        query, variables = admin.calls[0]
        self.assertEqual(query, PRODUCT_UPDATE_MUTATION)
        self.assertEqual(
            variables,
            {"input": {"id": "gid://shopify/Product/1", "descriptionHtml": "<p>Gentle balm</p>"}},
        )

    def test_user_errors_raise(self) -> None:
        admin = _FakeAdmin(user_errors={"p1": "Description is too long"})
        with self.assertRaises(ApplyFixError) as ctx:
            asyncio.run(apply_product_description(admin, "p1", "text"))
        self.assertEqual(ctx.exception.message, "Description is too long")

    def test_missing_input_raises_without_call(self) -> None:
        admin = _FakeAdmin()
        with self.assertRaises(ApplyFixError):
            asyncio.run(apply_product_description(admin, "p1", "   "))
        self.assertEqual(admin.calls, [])


class TestApplyDescriptions(unittest.TestCase):
    def test_bounded_concurrency_and_per_item_results(self) -> None:
        admin = _FakeAdmin(user_errors={"p2": "Invalid"}, api_failures={"p4"})
        items = [ApplyDescriptionRequest(product_id=f"p{i}", description=f"Text {i}") for i in range(1, 9)]
        results = asyncio.run(apply_descriptions(admin, items, max_concurrency=3))

        self.assertEqual([r.product_id for r in results], [f"p{i}" for i in range(1, 9)])
        self.assertEqual([r.success for r in results].count(True), 6)
        self.assertEqual(results[1].error, "Invalid")
        self.assertIn("500", results[3].error)
        self.assertEqual(len(admin.calls), 8)
        self.assertLessEqual(admin.max_in_flight, 3)

    def test_empty(self) -> None:
        self.assertEqual(asyncio.run(apply_descriptions(_FakeAdmin(), [])), [])


if __name__ == "__main__":
    unittest.main()
