"""CLI for running the saasdash services.

Usage:
    saasdash tool-server          # MCP stdio server (service-role key)
    saasdash shim                 # HTTP wrapper around the tool server
    saasdash dashboard            # admin JSON API (anon key)
    saasdash schema               # print the database schema + sample data
"""

from __future__ import annotations

import argparse
import sys
from importlib import resources

from saasdash.errors import ConfigError


def cmd_tool_server(args: argparse.Namespace) -> None:
    """Run the MCP tool server on stdio."""
    from saasdash.mcp.server import main as server_main

    sys.exit(server_main())


def cmd_shim(args: argparse.Namespace) -> None:
    """Run the HTTP shim."""
    from saasdash.shim.__main__ import main as shim_main

    shim_main()


def cmd_dashboard(args: argparse.Namespace) -> None:
    """Run the admin API."""
    from saasdash.dashboard.__main__ import main as dashboard_main

    try:
        dashboard_main()
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)


def cmd_schema(args: argparse.Namespace) -> None:
    """Print the SQL script that creates the tables, view and sample data."""
    sql = resources.files("saasdash").joinpath("schema.sql").read_text(encoding="utf-8")
    if args.no_sample_data:
        sql = sql.split("-- Insert sample data", 1)[0].rstrip() + "\n"
    sys.stdout.write(sql)


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="saasdash",
        description="SaaS license inventory services",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_tool = sub.add_parser("tool-server", help="Run the MCP stdio tool server")
    p_tool.set_defaults(func=cmd_tool_server)

    p_shim = sub.add_parser("shim", help="Run the HTTP wrapper around the tool server")
    p_shim.set_defaults(func=cmd_shim)

    p_dash = sub.add_parser("dashboard", help="Run the admin JSON API")
    p_dash.set_defaults(func=cmd_dashboard)

    p_schema = sub.add_parser("schema", help="Print the database schema")
    p_schema.add_argument("--no-sample-data", action="store_true", help="Omit the sample rows")
    p_schema.set_defaults(func=cmd_schema)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
