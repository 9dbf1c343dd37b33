"""
Datadog Tools - MCP tools for searching Datadog logs and APM spans.

Each tool validates its arguments, runs a single request against the Datadog
API and renders the result as Markdown report sections. Failures are returned
as error responses instead of being raised.

Run the MCP server with: python -m datadog_tools
"""

__version__ = "0.1.0"
