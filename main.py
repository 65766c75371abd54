"""
Config Obfuscator - Command Line Entry Point

Produces tokens to paste into configuration files and reads them back.

Usage:
    python main.py encode "s3cret value" --alg PROD
    python main.py decode "PROD:...:..."
    python main.py --config prod.json list
"""

import sys
import json
import logging
import argparse
from pathlib import Path
from typing import List, Optional

from cryptography.exceptions import InvalidTag

from config import config, VERSION
from obfuscator import Obfuscator, ObfuscatorError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="config-obfuscator", description="Obfuscate secrets stored in configuration")
    p.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    p.add_argument("--config", dest="config_files", action="append", type=Path, default=[],
                   help="JSON override file (repeatable, applied after environment layers)")
    p.add_argument("--json", action="store_true", help="Output JSON to stdout")
    p.add_argument("--log-level", default=None, help="Logging level (default from OBFUSCATOR_LOG_LEVEL)")

    sub = p.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encode", help="Encode a value into a token")
    enc.add_argument("value", help="Text to encode (hex bytes with --hex)")
    enc.add_argument("--alg", default=None, help="Algorithm name (default alg if omitted)")
    enc.add_argument("--hex", action="store_true", help="Treat VALUE as hex encoded bytes")

    dec = sub.add_parser("decode", help="Decode a token")
    dec.add_argument("token", help="Token produced by encode")
    dec.add_argument("--hex", action="store_true", help="Print the decoded bytes as hex")

    sub.add_parser("list", help="List registered algorithms")

    return p


def _emit(args: argparse.Namespace, out: dict, text: str) -> None:
    print(json.dumps(out) if args.json else text)


def _list_algorithms(obfuscator: Obfuscator) -> list[dict]:
    rows = []
    for name in obfuscator.algorithms:
        row = obfuscator.settings(name).describe()
        row["default"] = name == obfuscator.default_alg
        rows.append(row)
    return rows


def run(args: argparse.Namespace) -> int:
    obfuscator = Obfuscator(*config.load_overrides(args.config_files))

    if args.command == "encode":
        if args.hex:
            token = obfuscator.encode_buffer(bytes.fromhex(args.value), args.alg)
        else:
            token = obfuscator.encode_string(args.value, args.alg)
        _emit(args, {"token": token}, token)

    elif args.command == "decode":
        if args.hex:
            plaintext = obfuscator.decode_buffer(args.token).hex()
        else:
            plaintext = obfuscator.decode_string(args.token)
        _emit(args, {"plaintext": plaintext}, plaintext)

    else:
        rows = _list_algorithms(obfuscator)
        lines = []
        for row in rows:
            marker = "*" if row["default"] else " "
            expiry = row.get("doNotEncodeAfter") or "-"
            lines.append(f"{marker} {row['name']}  alg={row.get('alg')}  hash={row.get('hash')}  "
                         f"iterations={row.get('iterations')}  doNotEncodeAfter={expiry}")
        _emit(args, {"algorithms": rows}, "\n".join(lines))

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=(args.log_level or config.LOG_LEVEL).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return run(args)
    except (ObfuscatorError, ValueError, InvalidTag) as e:
        logger.debug(f"Command {args.command} failed: {e!r}")
        if args.json:
            print(json.dumps({"error": str(e)}))
        else:
            print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
