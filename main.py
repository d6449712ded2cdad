#!/usr/bin/env python3
"""
Licence & Product Key Tool - Main Entry Point.

Usage:
    python main.py licence keygen [--out <dir>] [--key-size 2048]
    python main.py licence issue <owner> [--days N | --tier <tier>] [--features ...] [--output file]
    python main.py licence validate <file>
    python main.py productkey signature [--bits 16] [--length 35]
    python main.py productkey generate <owner> <values...> [--sizes 4 4 8]
    python main.py productkey read <owner> <key> [--sizes 4 4 8]
    python main.py productkey format <key>
"""

import argparse
import logging
import sys
from pathlib import Path

from config.settings import (
    DEFAULT_KEY_SIZE,
    LICENCE_KEYS_DIR,
    LICENCE_PRIVATE_KEY,
    LICENCE_PUBLIC_KEY,
    LOG_FORMAT,
    LOG_LEVEL,
    PRODUCT_KEY_ALPHABET,
    PRODUCT_KEY_GROUP_SIZE,
    PRODUCT_KEY_LENGTH,
    PRODUCT_KEY_PASSES,
)
from licence.errors import LicenceError
from licence.keystore import FileKeyStore
from licence.manager import LicenceContext, LicenceManager
from licence.productkey.alphabet import get_alphabet
from licence.productkey.codec import ProductKeyCodec, format_key
from licence.signature import generate_key_pair
from licence.templates.defaults import PRODUCT_KEY_SIZES, TEMPLATES


def _get_manager():
    return LicenceManager(LicenceContext.from_settings())


# ============================================================
# Licence Commands
# ============================================================

def cmd_licence_keygen(args):
    """Generate a new signing key pair."""
    store = FileKeyStore(args.out or str(LICENCE_KEYS_DIR))
    public_der, private_der = generate_key_pair(args.key_size)
    print(f"Public key:  {store.write(LICENCE_PUBLIC_KEY, public_der)}")
    private_path = store.write(LICENCE_PRIVATE_KEY, private_der)
    private_path.chmod(0o600)
    print(f"Private key: {private_path}")


def cmd_licence_issue(args):
    """Issue a signed licence document."""
    mgr = _get_manager()
    if args.tier:
        document = mgr.issue_from_template(args.tier, args.owner)
    else:
        document = mgr.issue(args.owner, valid_days=args.days, features=args.features)
    if args.output:
        Path(args.output).write_text(document)
        print(f"Licence written to {args.output}")
    else:
        print(document, end="")


def cmd_licence_validate(args):
    """Validate a licence document."""
    mgr = _get_manager()
    result = mgr.validate_file(args.file)
    if result.is_valid:
        lic = result.licence
        print(f"VALID - owner: {lic.owner}")
        print(f"Expires:  {lic.expire_at.isoformat()}")
        print(f"Features: {', '.join(lic.features) or '-'}")
    else:
        print(f"INVALID - {result.error}")
        sys.exit(1)


# ============================================================
# Product Key Commands
# ============================================================

def cmd_productkey_signature(args):
    """Draw a new permutation signature."""
    codec = ProductKeyCodec(get_alphabet(PRODUCT_KEY_ALPHABET), passes=PRODUCT_KEY_PASSES)
    signature = codec.randomize(args.bits, args.length)
    stats = codec.statistics([args.bits], args.length)
    print(f"Signature: {signature.serialize()}")
    print(f"{stats.ratio}% of bits hold licence information "
          f"({stats.information_bits}/{stats.total_bits})")
    print(f"{stats.noise_bits} random bits (2^{stats.noise_bits} keys for a licence)")
    if stats.overloaded:
        print("WARNING: a useful bits ratio above 40% makes the pattern easier to guess")


def cmd_productkey_generate(args):
    """Generate product keys for an owner."""
    mgr = _get_manager()
    for _ in range(args.count):
        key = mgr.generate_product_key(args.owner, args.values, args.sizes)
        if mgr.read_product_key(args.owner, key, args.sizes) is None:
            print("Unable to unpack the generated key")
            sys.exit(1)
        print(key)


def cmd_productkey_read(args):
    """Read the values hidden in a product key."""
    mgr = _get_manager()
    values = mgr.read_product_key(args.owner, args.key, args.sizes)
    if values is None:
        print("INVALID")
        sys.exit(1)
    print(f"VALID - values: {' '.join(str(v) for v in values)}")


def cmd_productkey_format(args):
    """Print a key in display groups."""
    print(format_key(args.key, args.group_size))


def build_parser():
    parser = argparse.ArgumentParser(
        description="Licence & Product Key Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="module")

    # ---- licence ----
    lic_parser = subparsers.add_parser("licence", help="Signed licence documents")
    lic_sub = lic_parser.add_subparsers(dest="action")

    kg = lic_sub.add_parser("keygen", help="Generate a signing key pair")
    kg.add_argument("--out", help="Key directory")
    kg.add_argument("--key-size", type=int, default=DEFAULT_KEY_SIZE, help="RSA key size")
    kg.set_defaults(func=cmd_licence_keygen)

    issue = lic_sub.add_parser("issue", help="Issue a new licence")
    issue.add_argument("owner", help="Licensee name")
    group = issue.add_mutually_exclusive_group(required=True)
    group.add_argument("--days", type=int, help="Validity in days")
    group.add_argument("--tier", choices=list(TEMPLATES), help="Use a licence template")
    issue.add_argument("--features", nargs="*", help="Enabled features")
    issue.add_argument("--output", help="Output file path")
    issue.set_defaults(func=cmd_licence_issue)

    val = lic_sub.add_parser("validate", help="Validate a licence file")
    val.add_argument("file", help="Licence file")
    val.set_defaults(func=cmd_licence_validate)

    # ---- productkey ----
    pk_parser = subparsers.add_parser("productkey", help="Offline product keys")
    pk_sub = pk_parser.add_subparsers(dest="action")

    sig = pk_sub.add_parser("signature", help="Generate a permutation signature")
    sig.add_argument("--bits", type=int, default=sum(PRODUCT_KEY_SIZES), help="Payload bits")
    sig.add_argument("--length", type=int, default=PRODUCT_KEY_LENGTH, help="Key length")
    sig.set_defaults(func=cmd_productkey_signature)

    gen = pk_sub.add_parser("generate", help="Generate product keys")
    gen.add_argument("owner", help="Owner the key is bound to")
    gen.add_argument("values", type=int, nargs="+", help="Values to hide")
    gen.add_argument("--sizes", type=int, nargs="+", default=list(PRODUCT_KEY_SIZES))
    gen.add_argument("--count", type=int, default=1, help="Number of keys")
    gen.set_defaults(func=cmd_productkey_generate)

    rd = pk_sub.add_parser("read", help="Read a product key")
    rd.add_argument("owner", help="Owner the key is bound to")
    rd.add_argument("key", help="Product key")
    rd.add_argument("--sizes", type=int, nargs="+", default=list(PRODUCT_KEY_SIZES))
    rd.set_defaults(func=cmd_productkey_read)

    fmt = pk_sub.add_parser("format", help="Format a product key")
    fmt.add_argument("key", help="Product key")
    fmt.add_argument("--group-size", type=int, default=PRODUCT_KEY_GROUP_SIZE)
    fmt.set_defaults(func=cmd_productkey_format)

    return parser


def main():
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    parser = build_parser()
    args = parser.parse_args()

    if not args.module:
        parser.print_help()
        sys.exit(1)

    if not hasattr(args, "func"):
        parser.parse_args([args.module, "--help"])
        sys.exit(1)

    try:
        args.func(args)
    except LicenceError as exc:
        print(f"Error: {exc}")
        sys.exit(2)


if __name__ == "__main__":
    main()
