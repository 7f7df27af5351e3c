#!/usr/bin/env python3
"""
Registrar una nueva empresa (tenant) directamente en la base.

Uso:
  python scripts/add_tenant.py --nombre "Mi Negocio" --subdominio minegocio
"""
from __future__ import annotations

import argparse
import sys

from minegocio.core.logging_config import configure_logging
from minegocio.services.account_service import AccountService, RegistrationError


def main() -> None:
    ap = argparse.ArgumentParser(description="Registrar empresa")
    ap.add_argument("--nombre", required=True, help="Nombre de la empresa")
    ap.add_argument("--subdominio", required=True, help="Subdominio (ej.: minegocio)")
    args = ap.parse_args()

    configure_logging()
    try:
        empresa = AccountService().create_tenant(args.nombre, args.subdominio)
    except RegistrationError as exc:
        raise SystemExit(exc.message)
    print("OK: empresa registrada")
    print(f"  ID: {empresa.id}")
    print(f"  Subdominio: {empresa.subdominio}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - uso CLI
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
