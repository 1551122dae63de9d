"""
Genera el par de claves RSA (RS256) con el que se firman los tokens de principal.

Uso:
    python scripts/generate_keys.py [directorio] [--force]

Por defecto escribe keys/private.pem y keys/public.pem en la raíz del proyecto
y no sobrescribe un par existente salvo con --force.
"""

import sys
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

DEFAULT_KEYS_DIR = Path(__file__).resolve().parent.parent / "keys"
KEY_SIZE = 2048


def write_keypair(keys_dir: Path, force: bool = False) -> tuple[Path, Path]:
    """Escribe private.pem (PKCS8) y public.pem (SubjectPublicKeyInfo)."""
    keys_dir.mkdir(parents=True, exist_ok=True)
    private_path = keys_dir / "private.pem"
    public_path = keys_dir / "public.pem"

    if private_path.exists() and not force:
        raise FileExistsError(f"Ya existe {private_path}; use --force para regenerar")

    private_key = rsa.generate_private_key(public_exponent=65537, key_size=KEY_SIZE)
    private_path.write_bytes(
        private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    public_path.write_bytes(
        private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    return private_path, public_path


def main() -> None:
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    keys_dir = Path(args[0]) if args else DEFAULT_KEYS_DIR

    try:
        private_path, public_path = write_keypair(keys_dir, force="--force" in sys.argv)
    except FileExistsError as exc:
        print(f"⚠️  {exc}")
        sys.exit(1)

    print(f"✅ Clave privada: {private_path}")
    print(f"✅ Clave pública: {public_path}")
    print("\n📌 Agrega las rutas a tu .env:")
    print(f"   JWT_PRIVATE_KEY_PATH={private_path}")
    print(f"   JWT_PUBLIC_KEY_PATH={public_path}")


if __name__ == "__main__":
    main()
