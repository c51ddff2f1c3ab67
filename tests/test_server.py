"""Tests for server assembly: registered tools and resources, and calls through FastMCP."""

import json

import pytest
from fastmcp import FastMCP

from school_library.server import create_server

EXPECTED_TOOLS = {
    "create_book",
    "update_book",
    "delete_book",
    "create_student",
    "update_student",
    "delete_student",
    "borrow_book",
    "return_book",
}

EXPECTED_RESOURCES = {
    "library://books",
    "library://students",
    "library://borrow-records",
    "library://borrow-records/active",
    "library://stats",
    "library://recent-activities",
    "library://overdue-items",
}

EXPECTED_TEMPLATES = {
    "library://books/search/{query}",
    "library://books/{book_id}",
    "library://students/search/{query}",
    "library://students/{student_id}",
    "library://students/{student_id}/borrow-count",
    "library://borrow-records/student/{student_id}",
    "library://borrow-records/book/{book_id}",
    "library://borrow-records/{record_id}",
}


@pytest.fixture
def mcp(db, test_config) -> FastMCP:
    return create_server(db, test_config)


def read_json(result) -> dict:
    return json.loads(result.contents[0].content)


class TestServerAssembly:
    def test_server_identity(self, mcp, test_config):
        assert mcp.name == test_config.server_name

    async def test_tools_registered(self, mcp):
        tools = await mcp.list_tools()
        assert {tool.name for tool in tools} == EXPECTED_TOOLS

    async def test_resources_registered(self, mcp):
        resources = await mcp.list_resources()
        assert {str(resource.uri) for resource in resources} == EXPECTED_RESOURCES

        templates = await mcp.list_resource_templates()
        assert {template.uri_template for template in templates} == EXPECTED_TEMPLATES


class TestServerCalls:
    async def test_borrow_flow_through_server(self, mcp, sample_book, sample_student):
        result = await mcp.call_tool(
            "borrow_book",
            {"arguments": {"student_id": sample_student.id, "book_id": sample_book.id}},
        )
        record = result.structured_content["data"]["record"]
        assert record["status"] == "borrowed"

        book = read_json(await mcp.read_resource(f"library://books/{sample_book.id}"))
        assert book["book"]["available"] == 2

        stats = read_json(await mcp.read_resource("library://stats"))
        assert stats == {"total_books": 1, "borrowed_books": 1, "overdue_books": 0}

        active = read_json(await mcp.read_resource("library://borrow-records/active"))
        assert [r["id"] for r in active["records"]] == [record["id"]]

    async def test_recent_activity_limit_from_config(self, mcp, sample_book, sample_student):
        for _ in range(3):
            await mcp.call_tool(
                "borrow_book",
                {"arguments": {"student_id": sample_student.id, "book_id": sample_book.id}},
            )
        feed = read_json(await mcp.read_resource("library://recent-activities"))
        assert feed["limit"] == 5
        assert len(feed["activities"]) == 3
