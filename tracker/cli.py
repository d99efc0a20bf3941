#!/usr/bin/env python3
"""
Command line client for the work hours tracker API.

Sub-commands:
  add      record (or replace) the work done on a day
  list     show recorded days, marking the ones in the current period
  totals   show the running totals of the current period
  reset    close the current period after a yes/no confirmation
  periods  list archived period summaries

Auth precedence:
  1) --token <value> (CLI)
  2) env TRACKER_API_TOKEN

Examples:
  worklog add 2025-04-01 --start 09:00 --end 17:00 --location "Brakel 18km"
  worklog totals
  worklog reset
  TRACKER_API_URL=https://hours.example.org/api/v1 worklog periods

Exit codes:
  0 = success
  1 = handled application error (validation, declined confirmation)
  2 = network/HTTP error
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Callable, Dict, Optional

import requests

DEFAULT_BASE_URL = os.getenv("TRACKER_API_URL", "http://127.0.0.1:8089/api/v1")


class CommandError(Exception):
    """Raised for failures the user can fix (bad input, declined prompt)."""


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="worklog", description="Record work hours and close billing periods.")
    p.add_argument("--base-url", default=DEFAULT_BASE_URL,
                   help=f"Base API URL (default: {DEFAULT_BASE_URL})")
    p.add_argument("--token", default=None,
                   help="API token (X-API-Key). Overrides env TRACKER_API_TOKEN.")
    p.add_argument("--timeout", type=float, default=15.0,
                   help="HTTP timeout in seconds (default: 15)")
    p.add_argument("--json", action="store_true", help="Print raw JSON responses.")
    sub = p.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Record the work done on a day.")
    add.add_argument("date", help="Work date, YYYY-MM-DD.")
    add.add_argument("--start", default="09:00", help="Start time HH:MM (default: 09:00)")
    add.add_argument("--end", default="17:00", help="End time HH:MM (default: 17:00)")
    add.add_argument("--location", default="Brakel 18km", help="Location label (default: 'Brakel 18km')")

    sub.add_parser("list", help="List recorded days.")
    sub.add_parser("totals", help="Show current period totals.")

    reset = sub.add_parser("reset", help="Close the current period.")
    reset.add_argument("-y", "--yes", action="store_true", help="Skip the confirmation prompt.")

    sub.add_parser("periods", help="List archived periods.")
    return p.parse_args(argv)


def resolve_token(cli_token: Optional[str]) -> Optional[str]:
    if cli_token:
        return cli_token
    return os.getenv("TRACKER_API_TOKEN") or None


def build_headers(token: Optional[str]) -> Dict[str, str]:
    headers = {"Accept": "application/json"}
    if token:
        headers["X-API-Key"] = token
    return headers


def confirm(question: str, ask: Callable[[str], str] = input) -> bool:
    """Blocking yes/no prompt; anything but an explicit yes declines."""
    try:
        answer = ask(f"{question} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}


class TrackerClient:
    def __init__(self, base_url: str, token: Optional[str], timeout: float,
                 session: Optional[requests.Session] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers = build_headers(token)
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, payload: Optional[dict] = None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        r = self.session.request(method, url, headers=self.headers, json=payload, timeout=self.timeout)
        if r.status_code in (400, 404, 409, 422):
            try:
                body = r.json()
                message = body.get("message") or json.dumps(body)
            except ValueError:
                message = r.text
            raise CommandError(message)
        r.raise_for_status()
        return r.json()

    def add_entry(self, day: str, start: str, end: str, location: str) -> dict:
        return self._request("POST", "entries", {
            "date": day, "start_time": start, "end_time": end, "location": location,
        })

    def list_entries(self) -> list:
        return self._request("GET", "entries")

    def current_period(self) -> dict:
        return self._request("GET", "periods/current")

    def reset(self) -> dict:
        return self._request("POST", "periods/reset", {"confirm": True})

    def list_periods(self) -> list:
        return self._request("GET", "periods")


def _print_totals(period: dict) -> None:
    print(f"Current period: {period['start_date']} - {period['end_date']}")
    print(f"  Hours:      {period['total_hours']:.2f}")
    print(f"  Kilometers: {period['total_kilometers']}")


def run(args: argparse.Namespace, client: TrackerClient, ask: Callable[[str], str] = input) -> int:
    if args.command == "add":
        result = client.add_entry(args.date, args.start, args.end, args.location)
        if args.json:
            print(json.dumps(result, indent=2))
        else:
            print(f"Saved {result['date']}: {result['hours_worked']:.2f} h, {result['kilometers']} km")
        return 0

    if args.command == "list":
        rows = client.list_entries()
        if args.json:
            print(json.dumps(rows, indent=2))
            return 0
        for row in rows:
            marker = "*" if row.get("current") else " "
            print(f"{marker} {row['date']}  {row['start_time']}-{row['end_time']}  "
                  f"{row['hours_worked']:>5.2f} h  {row['kilometers']:>3} km  {row['location']}")
        return 0

    if args.command == "totals":
        period = client.current_period()
        if args.json:
            print(json.dumps(period, indent=2))
        else:
            _print_totals(period)
        return 0

    if args.command == "reset":
        if not args.yes:
            _print_totals(client.current_period())
            if not confirm("Reset the totals and start a new period?", ask=ask):
                print("Reset cancelled.", file=sys.stderr)
                return 1
        result = client.reset()
        if args.json:
            print(json.dumps(result, indent=2))
        elif result.get("summary"):
            summary = result["summary"]
            print(f"Archived {summary['start_date']} - {summary['end_date']}: "
                  f"{summary['total_hours']:.2f} h, {summary['total_kilometers']} km")
        else:
            print("Nothing to archive; a new period has started.")
        return 0

    if args.command == "periods":
        rows = client.list_periods()
        if args.json:
            print(json.dumps(rows, indent=2))
            return 0
        for row in rows:
            print(f"{row['start_date']} - {row['end_date']}  {row['total_hours']:>7.2f} h  "
                  f"{row['total_kilometers']:>5} km  (closed {row['reset_date']})")
        return 0

    raise CommandError(f"Unknown command {args.command!r}")


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    token = resolve_token(args.token)
    client = TrackerClient(args.base_url, token, args.timeout)
    try:
        return run(args, client)
    except CommandError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except requests.exceptions.RequestException as e:
        print(f"NETWORK_ERROR: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
