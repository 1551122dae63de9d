"""
Siembra el ADMIN de génesis y, opcionalmente, emite un access token de desarrollo.

Uso:
    python scripts/seed_admin.py <principal> [--token]

Si ya existe un ADMIN no hace nada: el registro tiene un único admin de génesis.
Con --token imprime un JWT para el principal (requiere las claves de
scripts/generate_keys.py).
"""

import asyncio
import sys
from pathlib import Path

# Agregar el directorio raíz al path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from emr_ledger.auth.jwt import create_access_token  # noqa: E402
from emr_ledger.database import async_session_factory, engine  # noqa: E402
from emr_ledger.services.role_service import bootstrap_admin  # noqa: E402


async def seed_admin(principal: str) -> None:
    async with async_session_factory() as db:
        if await bootstrap_admin(db, principal):
            await db.commit()
            print(f"✅ ADMIN de génesis creado: {principal}")
        else:
            print("⚠️  Ya existe un ADMIN; no se modificó nada.")
    await engine.dispose()


def main() -> None:
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    if len(args) != 1:
        print(__doc__)
        sys.exit(1)

    principal = args[0]
    asyncio.run(seed_admin(principal))

    if "--token" in sys.argv:
        print(f"\n🔑 Access token:\n   {create_access_token(principal)}")


if __name__ == "__main__":
    main()
