#!/usr/bin/env python3
"""
Debug Gate Command Line Interface

Usage:
    debug-gate keygen [--keys-file <file>] [--rank <n>] [--output <file>]
    debug-gate sign --route <path> --key-file <file> [--counter <n>] [--base-url <url>]
    debug-gate hash --route <path> --counter <n>
    debug-gate serve [--host <host>] [--port <n>]
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlencode

from .clearance import ClearanceTier
from .config import ConfigError, parse_dev_public_keys
from .keys import generate_operator_key, public_key_for
from .security import KEY_HEX_LENGTH, ValidationError, parse_counter, validate_hex
from .util import now_millis
from .verifier import canonical_message, request_hash, sign_request


def load_json(path: str) -> dict:
    """Load JSON from file."""
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def save_json(data: dict, path: str):
    """Save JSON to file."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2)


def cmd_keygen(args) -> int:
    """Generate an operator key pair, optionally registering its public key."""
    pair = generate_operator_key()
    secret = {"public_key": pair.public_key, "signing_key": pair.signing_key}

    if args.output:
        save_json(secret, args.output)
        print(f"Signing key saved to: {args.output}", file=sys.stderr)
    else:
        print(json.dumps(secret, indent=2))

    if args.keys_file:
        keys = load_json(args.keys_file) if Path(args.keys_file).exists() else {}
        keys[pair.public_key] = args.rank
        parse_dev_public_keys(keys)
        save_json(keys, args.keys_file)
        print(f"Registered {pair.public_key} with rank {args.rank} in {args.keys_file}", file=sys.stderr)

    return 0


def cmd_sign(args) -> int:
    """Print the signed query for a debug route."""
    secret = load_json(args.key_file)
    signing_key = validate_hex(secret["signing_key"], "signing_key", KEY_HEX_LENGTH)
    counter = parse_counter(args.counter) if args.counter else now_millis()

    sig = sign_request(args.route, counter, signing_key)
    query = urlencode({"sig": sig, "sig_counter": str(counter)})

    if args.base_url:
        print(f"{args.base_url.rstrip('/')}{args.route}?{query}")
    else:
        print(query)
    print(f"signed by {public_key_for(signing_key)}", file=sys.stderr)
    return 0


def cmd_hash(args) -> int:
    """Show the canonical message and request hash an operator signs."""
    counter = parse_counter(args.counter)
    print(canonical_message(args.route, counter).decode('utf-8'))
    print(request_hash(args.route, counter))
    return 0


def cmd_serve(args) -> int:
    """Run the debug service."""
    import uvicorn

    uvicorn.run(
        "debug_gate.main:app",
        host=args.host,
        port=args.port,
        log_level="info",
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Debug endpoint authorization tooling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  debug-gate keygen -o secrets/operator.json -K config/dev_public_keys.json -r 3
  debug-gate sign -k secrets/operator.json -R /debug/replay -u http://localhost:8000
  debug-gate hash -R /debug/counters -c 1700000000000
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # keygen
    keygen_parser = subparsers.add_parser("keygen", help="Generate an operator key pair")
    keygen_parser.add_argument("-o", "--output", help="Output file for the signing key")
    keygen_parser.add_argument("-K", "--keys-file", help="Dev public keys JSON to register the key in")
    keygen_parser.add_argument("-r", "--rank", type=int, default=int(ClearanceTier.LOW),
                               help="Clearance rank (1=low, 2=medium, 3=high)")

    # sign
    sign_parser = subparsers.add_parser("sign", help="Sign a debug request")
    sign_parser.add_argument("-k", "--key-file", required=True, help="Signing key JSON file")
    sign_parser.add_argument("-R", "--route", required=True, help="Route path, e.g. /debug/counters")
    sign_parser.add_argument("-c", "--counter", help="Replay counter (default: now in ms)")
    sign_parser.add_argument("-u", "--base-url", help="Print a full URL for this server")

    # hash
    hash_parser = subparsers.add_parser("hash", help="Show the signed message for a request")
    hash_parser.add_argument("-R", "--route", required=True, help="Route path")
    hash_parser.add_argument("-c", "--counter", required=True, help="Replay counter")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the debug service")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")

    args = parser.parse_args(argv)

    try:
        if args.command == "keygen":
            return cmd_keygen(args)
        elif args.command == "sign":
            return cmd_sign(args)
        elif args.command == "hash":
            return cmd_hash(args)
        elif args.command == "serve":
            return cmd_serve(args)
    except (ValidationError, ConfigError) as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1

    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
