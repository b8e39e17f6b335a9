# src/cli/__main__.py
import sys
from getpass import getpass
from pathlib import Path

from src.core.errors import QuotationError
from src.services.credentials import PasswordHasher

USAGE = """Usage:
  python -m src.cli hash-password [password]
  python -m src.cli export <out.xlsx>

Examples:
  python -m src.cli hash-password            (frågar efter lösenordet)
  python -m src.cli export cotacoes.xlsx
"""


def _hash_password(args):
    password = args[0] if args else getpass("Senha: ")
    if not password:
        print("Lösenordet får inte vara tomt", file=sys.stderr)
        sys.exit(2)
    # Klistras in som ADMIN_PASSWORD_HASH i .env
    print(PasswordHasher().hash(password))


def _export(args):
    if not args:
        print(USAGE, file=sys.stderr); sys.exit(1)

    # Importeras här så att hash-password fungerar utan .env
    from src.server.deps import get_repository
    from src.services.export import build_workbook

    out_path = Path(args[0])
    try:
        content = build_workbook(get_repository().list_all())
    except QuotationError as e:
        print(f"Export misslyckades: {e.message}", file=sys.stderr)
        sys.exit(2)
    out_path.write_bytes(content)
    print(f"Skrev {out_path} ({len(content)} bytes)")


def main():
    if len(sys.argv) < 2:
        print(USAGE, file=sys.stderr); sys.exit(1)

    cmd = sys.argv[1].lower()
    args = sys.argv[2:]

    if cmd == "hash-password":
        _hash_password(args)
        return

    if cmd == "export":
        _export(args)
        return

    print(USAGE, file=sys.stderr); sys.exit(1)


if __name__ == "__main__":
    main()
