# backend/plotbook/cli/__main__.py
from __future__ import annotations

import argparse

from plotbook.cli.seed_demo import seed_demo


def main() -> None:
    p = argparse.ArgumentParser(prog="plotbook.cli", description="Seed a local Plotbook database")
    p.add_argument("--company-name", default="Plotbook Demo")
    p.add_argument("--admin-email", default="admin@plotbook.local")
    p.add_argument("--admin-name", default="Demo Admin")
    p.add_argument("--admin-password", default="change-me-please")
    p.add_argument("--no-sample-properties", action="store_true")
    args = p.parse_args()

    out = seed_demo(
        company_name=args.company_name,
        admin_email=args.admin_email,
        admin_name=args.admin_name,
        admin_password=args.admin_password,
        create_sample_properties=(not args.no_sample_properties),
    )
    print(
        {
            "ok": True,
            "company_id": out.company_id,
            "admin_email": out.admin_email,
            "states": out.states,
            "properties_created": out.properties,
        }
    )


if __name__ == "__main__":
    main()
