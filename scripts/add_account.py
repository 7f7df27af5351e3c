#!/usr/bin/env python3
"""
Registrar un usuario o cliente sin verificar y enviarle el email de verificación.

Uso:
  python scripts/add_account.py --email ana@x.com [--nombre Ana] [--empresa-id 1] [--rol ADMINISTRADOR]
  python scripts/add_account.py --email cli@x.com --subdominio minegocio   # cliente
La contraseña se pide por consola si no se pasa --password.
"""
from __future__ import annotations

import argparse
import getpass
import sys

from minegocio.core.logging_config import configure_logging
from minegocio.db.models import ROLE_ADMIN, USER_ROLES
from minegocio.services.account_service import AccountService, RegistrationError


def main() -> None:
    ap = argparse.ArgumentParser(description="Registrar cuenta")
    ap.add_argument("--email", required=True)
    ap.add_argument("--nombre", default="")
    ap.add_argument("--password", help="Contraseña (default: se pide por consola)")
    ap.add_argument("--empresa-id", type=int, help="Empresa del usuario (opcional)")
    ap.add_argument("--rol", default=ROLE_ADMIN, choices=USER_ROLES)
    ap.add_argument("--subdominio", help="Si se indica, se registra un cliente de esa empresa")
    args = ap.parse_args()

    configure_logging()
    password = args.password or getpass.getpass("Contraseña: ")
    svc = AccountService()
    try:
        if args.subdominio:
            result = svc.register_customer(args.email, password, args.nombre, args.subdominio)
        else:
            result = svc.register_user(args.email, password, args.nombre, empresa_id=args.empresa_id, rol=args.rol)
    except RegistrationError as exc:
        raise SystemExit(exc.message)

    print("OK: cuenta registrada")
    print(f"  ID: {result.account_id}")
    print(f"  Email: {result.email}")
    if result.email_sent:
        print(f"  Enlace de verificación enviado: {result.verify_url}")
    else:
        print("  No se pudo enviar el email; usa /verification/resend-email")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - uso CLI
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
