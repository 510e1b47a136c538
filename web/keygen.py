"""Print fresh cookie keys for an env file. Run: python -m web.keygen"""
import secrets


def main() -> None:
    print(f"COOKIE_ENCRYPTION_KEY={secrets.token_hex(16)}")
    print(f"COOKIE_SIGNING_KEY={secrets.token_hex(32)}")


if __name__ == "__main__":
    main()
