#!/usr/bin/env python3
"""
schemaauth -- Validate an auth-system draft and preview its endpoints.

A draft is a JSON file with the same shape the schema service accepts:
  {"collection_name": "customers", "fields": [...], "auth_config": {...}}
"fields" and "auth_config" are optional; omitted parts use the default
"users" seed (id, email, password, name, created_at).

Usage:
  python main.py draft.json
  python main.py draft.json --json
  python main.py draft.json --submit
  python main.py --list

Environment variables:
  MONGODB_URI / DATABASE_NAME   Backing connection; both required to commit.
  SCHEMA_SERVICE_URL            Schema service base URL (for --submit / --list).
  SCHEMA_SERVICE_API_KEY        Optional X-API-Key sent to the schema service.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

from auth.session import AuthoringSession, CommitRefused
from core.config import Settings, get_settings
from schemas.client import SchemaServiceClient, SchemaServiceError
from schemas.mappers import auth_config_from_dict, auth_config_to_dict, field_to_dict, fields_from_list


def _load_draft(path: str) -> Optional[dict[str, Any]]:
    """Read a draft JSON object from path. Returns None (after printing why) on failure."""
    file_path = Path(path).resolve()
    if not file_path.is_file():
        print(f"  [!] '{path}' is not a readable file.")
        return None
    try:
        data = json.loads(file_path.read_text())
    except (OSError, ValueError) as e:
        print(f"  [!] Could not read draft '{path}': {e}")
        return None
    if not isinstance(data, dict):
        print(f"  [!] Draft '{path}' must contain a JSON object.")
        return None
    return data


def build_session(draft: dict[str, Any], settings: Settings) -> AuthoringSession:
    """Create a session from a draft dict. Raises ValueError on a malformed draft."""
    session = AuthoringSession(connection_check=lambda: settings.has_mongo_connection)
    raw_fields = draft.get("fields")
    raw_config = draft.get("auth_config")
    session.load_draft(
        collection_name=str(draft.get("collection_name") or ""),
        fields=fields_from_list(raw_fields) if raw_fields else None,
        auth_config=auth_config_from_dict(raw_config) if raw_config else None,
    )
    return session


def _report(session: AuthoringSession) -> dict[str, Any]:
    errors = session.validate()
    return {
        "collection_name": session.collection_name,
        "valid": not errors,
        "errors": [{"code": e.code.value, "message": e.message} for e in errors],
        "endpoints": [{"method": e.method, "path": e.path} for e in session.endpoints()],
        "fields": [field_to_dict(f) for f in session.registry],
        "auth_config": auth_config_to_dict(session.config),
    }


def _print_report(report: dict[str, Any]) -> None:
    print(f"\n  Auth system: {report['collection_name'] or '(no collection name)'}")
    print("  " + "─" * 40)
    for f in report["fields"]:
        flags = " ".join(x for x in ("required" if f["required"] else "", f["visibility"]) if x)
        print(f"    {f['name'] or '(unnamed)':<20} {f['type']:<8} {flags}")
    config = report["auth_config"]
    print(f"\n  Email field:     {config['login_fields']['email_field'] or '-'}")
    print(f"  Password field:  {config['password_field'] or '-'}")
    print(f"  Username field:  {config['login_fields']['username_field'] or '-'}")
    print(f"  Response fields: {', '.join(config['response_fields']) or '-'}")
    print(f"  Token lifetime:  {config['token_expiration']}h")
    print("\n  Endpoints:")
    for e in report["endpoints"]:
        print(f"    {e['method']:<5} {e['path']}")
    if report["valid"]:
        print("\n  Ready to commit.\n")
    else:
        for err in report["errors"]:
            print(f"\n  [!] {err['message']} ({err['code']})\n")


def _client(settings: Settings) -> Optional[SchemaServiceClient]:
    if not settings.schema_service_url:
        print("  [!] SCHEMA_SERVICE_URL is not set.")
        return None
    return SchemaServiceClient(
        settings.schema_service_url,
        api_key=settings.schema_service_api_key,
        timeout=settings.schema_service_timeout,
    )


def _list_schemas(settings: Settings) -> int:
    client = _client(settings)
    if client is None:
        return 2
    try:
        schemas = client.list_auth_schemas()
    except SchemaServiceError as e:
        print(f"  [!] {e}")
        return 1
    finally:
        client.close()
    if not schemas:
        print("  No authentication systems found.")
        return 0
    for s in schemas:
        email = s.auth_config.login_fields.email_field if s.auth_config else "-"
        print(f"  {s.id:<26} {s.collection_name:<24} email={email} fields={len(s.fields)}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="schemaauth",
        description="Validate an auth-system draft and preview the endpoints it derives.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py draft.json
  python main.py draft.json --json
  MONGODB_URI=mongodb://localhost DATABASE_NAME=app python main.py draft.json --submit
  SCHEMA_SERVICE_URL=http://localhost:5000/api python main.py --list
        """,
    )
    parser.add_argument("draft", nargs="?", metavar="DRAFT", help="Path to a draft JSON file")
    parser.add_argument("--json", action="store_true", help="Output the validation report as JSON")
    parser.add_argument(
        "--submit",
        action="store_true",
        help="Commit the draft and store it on the schema service (requires SCHEMA_SERVICE_URL)",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List authentication systems stored on the schema service",
    )
    args = parser.parse_args(argv)
    settings = get_settings()

    if args.list:
        return _list_schemas(settings)

    if not args.draft:
        parser.print_help()
        return 2

    draft = _load_draft(args.draft)
    if draft is None:
        return 2
    try:
        session = build_session(draft, settings)
    except ValueError as e:
        print(f"  [!] Invalid draft: {e}")
        return 2

    report = _report(session)
    if args.json:
        print(json.dumps(report, indent=2))
    else:
        _print_report(report)

    if not report["valid"]:
        return 1
    if not args.submit:
        return 0

    client = _client(settings)
    if client is None:
        return 2
    try:
        stored = session.submit(client)
    except (CommitRefused, SchemaServiceError) as e:
        print(f"  [!] Commit failed: {e}")
        return 1
    finally:
        client.close()
    print(f"  Stored '{stored.collection_name}' as {stored.id} at {stored.created_at}.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
