"""
Script untuk generate signing keys CheckMate Auth.
Access dan refresh token wajib memakai key yang berbeda.
Usage: python scripts/generate_keys.py [path/to/.env]
"""

import secrets
import sys
from pathlib import Path

KEY_NAMES = ("JWT_SECRET_KEY", "REFRESH_SECRET_KEY")


def generate_secret_key(nbytes: int = 48) -> str:
    """Generate random URL-safe secret key."""
    return secrets.token_urlsafe(nbytes)


def generate_all_keys() -> dict:
    """Generate signing keys; dijamin tidak ada yang sama."""
    keys = {}
    while len(set(keys.values())) != len(KEY_NAMES):
        keys = {name: generate_secret_key() for name in KEY_NAMES}
    return keys


def update_env_file(env_path: Path, keys: dict) -> None:
    """Isi key yang kosong di .env; key yang sudah ada tidak diubah."""
    lines = env_path.read_text().splitlines(keepends=True)
    present = set()

    updated_lines = []
    for line in lines:
        name = line.split("=", 1)[0].strip()
        if name in keys:
            present.add(name)
            if line.strip().endswith("=") or line.strip().endswith('=""'):
                updated_lines.append(f'{name}="{keys[name]}"\n')
                print(f"Updated {name}")
                continue
        updated_lines.append(line)

    for name in keys:
        if name not in present:
            updated_lines.append(f'{name}="{keys[name]}"\n')
            print(f"Added {name}")

    env_path.write_text("".join(updated_lines))
    print(f"\nUpdated .env file: {env_path}")


def main():
    """Main function."""
    print("CheckMate Auth Key Generator")
    print("=" * 50)

    keys = generate_all_keys()
    if len(sys.argv) > 1:
        env_path = Path(sys.argv[1])
        if not env_path.exists():
            print(f"{env_path} not found")
            sys.exit(1)
        update_env_file(env_path, keys)
        return

    for key_name, key_value in keys.items():
        print(f'{key_name}="{key_value}"')
    print("=" * 50)
    print("Keep these keys secret!")


if __name__ == "__main__":
    main()
